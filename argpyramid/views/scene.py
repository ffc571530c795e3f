"""Render-ready view of a pyramid: positioned nodes plus derived edges.

Renderers consume this; they never read or write positions on the tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..core.config import DEFAULT_SETTINGS, PyramidSettings
from ..core.models import PyramidNode, is_finite_number
from .geometry import Point, Rect, route_step, union

EDGE_TYPE = "smoothstep"


@dataclass(frozen=True)
class SceneEdge:
    id: str
    source: str
    target: str
    type: str = EDGE_TYPE
    points: List[Point] = field(default_factory=list, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.type,
            "points": [list(p) for p in self.points],
        }


@dataclass
class Scene:
    nodes: List[PyramidNode]
    rects: Dict[str, Rect]
    edges: List[SceneEdge]
    bounds: Optional[Rect] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [
                {
                    "id": n.id,
                    "parentId": n.parent_id,
                    "label": n.label,
                    "rect": self.rects[n.id].to_dict(),
                }
                for n in self.nodes
            ],
            "edges": [e.to_dict() for e in self.edges],
            "bounds": self.bounds.to_dict() if self.bounds else None,
        }


def node_rect(node: PyramidNode, settings: PyramidSettings = DEFAULT_SETTINGS) -> Rect:
    w = node.width if is_finite_number(node.width) and node.width > 0 else settings.default_width
    h = node.height if is_finite_number(node.height) and node.height > 0 else settings.default_height
    return Rect(node.x, node.y, float(w), float(h))


def build_edges(nodes: Sequence[PyramidNode], rects: Optional[Dict[str, Rect]] = None) -> List[SceneEdge]:
    """One edge per node with an existing parent, id `e-<parent>-<child>`."""
    ids = {n.id for n in nodes}
    edges: List[SceneEdge] = []
    for n in nodes:
        if n.parent_id is None or n.parent_id not in ids:
            continue
        pts: List[Point] = []
        if rects is not None:
            pts = route_step(rects[n.parent_id], rects[n.id])
        edges.append(SceneEdge(id=f"e-{n.parent_id}-{n.id}", source=n.parent_id, target=n.id, points=pts))
    return edges


def build_scene(nodes: Sequence[PyramidNode], settings: PyramidSettings = DEFAULT_SETTINGS) -> Scene:
    rects = {n.id: node_rect(n, settings) for n in nodes}
    return Scene(
        nodes=list(nodes),
        rects=rects,
        edges=build_edges(nodes, rects),
        bounds=union(rects.values()),
    )
