"""Box geometry for node cards and parent-to-child connectors.

Cards hang from their anchor: `(x, y)` is the top-left corner. Connectors
always leave a parent through the middle of its bottom edge and enter a
child through the middle of its top edge.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

Point = Tuple[float, float]


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: float

    @classmethod
    def spanning(cls, x0: float, y0: float, x1: float, y1: float) -> "Rect":
        return cls(x0, y0, x1 - x0, y1 - y0)

    @property
    def x1(self) -> float:
        return self.x + self.w

    @property
    def y1(self) -> float:
        return self.y + self.h

    def top_port(self) -> Point:
        """Where an incoming connector attaches."""
        return (self.x + self.w / 2, self.y)

    def bottom_port(self) -> Point:
        """Where outgoing connectors leave."""
        return (self.x + self.w / 2, self.y1)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}


def union(rects: Iterable[Rect]) -> Optional[Rect]:
    """Smallest rect covering all `rects`, or None when there are none."""
    bounds: Optional[Rect] = None
    for r in rects:
        if bounds is None:
            bounds = r
            continue
        bounds = Rect.spanning(
            min(bounds.x, r.x),
            min(bounds.y, r.y),
            max(bounds.x1, r.x1),
            max(bounds.y1, r.y1),
        )
    return bounds


def route_step(parent: Rect, child: Rect) -> List[Point]:
    """Step connector: drop to the midline, run across, drop into the child.

    Collapses to one vertical segment when the two ports share an x.
    """
    start = parent.bottom_port()
    end = child.top_port()
    if start[0] == end[0]:
        return [start, end]
    mid = (start[1] + end[1]) / 2
    return [start, (start[0], mid), (end[0], mid), end]
