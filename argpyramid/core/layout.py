"""Centered tree layout.

Widths aggregate bottom-up, positions are assigned top-down:

- a leaf's subtree width is its own width;
- an inner node's subtree width is the sum of its children's subtree widths
  plus one `subtree_gap` between each pair of siblings;
- children are placed left to right, in collection order, centered under
  their parent, one `gap_y` lower.

Both passes walk an explicit stack, so deep chains and malformed parent
links (cycles) terminate. A node reached a second time counts as a leaf.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from .config import DEFAULT_SETTINGS, PyramidSettings
from .models import ROOT_ID, PyramidNode, Snapshot, is_finite_number


class _Shape:
    """Parent -> children index over a snapshot."""

    def __init__(self, nodes: Sequence[PyramidNode], settings: PyramidSettings):
        self.settings = settings
        self.by_id: Dict[str, PyramidNode] = {}
        self.children: Dict[str, List[str]] = {}
        for n in nodes:
            self.by_id.setdefault(n.id, n)
            if n.parent_id is not None:
                self.children.setdefault(n.parent_id, []).append(n.id)

    def own_width(self, node_id: str) -> float:
        node = self.by_id.get(node_id)
        w = node.width if node is not None else None
        if is_finite_number(w) and w > 0:
            return float(w)
        return self.settings.default_width

    def preorder(self, start: str) -> List[str]:
        """Distinct node ids reachable from `start`, parents before children."""
        order: List[str] = []
        seen = set()
        stack = [start]
        while stack:
            node_id = stack.pop()
            if node_id in seen:
                continue
            seen.add(node_id)
            order.append(node_id)
            stack.extend(reversed(self.children.get(node_id, [])))
        return order

    def subtree_widths(self, start: str) -> Dict[str, float]:
        widths: Dict[str, float] = {}
        for node_id in reversed(self.preorder(start)):
            kids = self.children.get(node_id, [])
            if not kids:
                widths[node_id] = self.own_width(node_id)
                continue
            total = sum(widths.get(c, self.own_width(c)) for c in kids)
            widths[node_id] = total + self.settings.subtree_gap * (len(kids) - 1)
        return widths


def subtree_width(
    nodes: Sequence[PyramidNode],
    node_id: str,
    settings: Optional[PyramidSettings] = None,
) -> float:
    """Horizontal space `node_id` and its descendants need."""
    return _Shape(nodes, settings or DEFAULT_SETTINGS).subtree_widths(node_id)[node_id]


def _place(shape: _Shape, root_id: str, center_x: float, y: float) -> Dict[str, Tuple[float, float]]:
    widths = shape.subtree_widths(root_id)
    gap = shape.settings.subtree_gap
    out: Dict[str, Tuple[float, float]] = {}

    stack = [(root_id, center_x, y)]
    while stack:
        node_id, cx, cy = stack.pop()
        if node_id in out:
            continue
        out[node_id] = (cx, cy)

        kids = shape.children.get(node_id, [])
        if not kids:
            continue
        kid_widths = [widths.get(c, shape.own_width(c)) for c in kids]
        running = cx - (sum(kid_widths) + gap * (len(kids) - 1)) / 2
        child_y = cy + shape.settings.gap_y
        for child_id, w in zip(kids, kid_widths):
            stack.append((child_id, running + w / 2, child_y))
            running += w + gap
    return out


def layout_tree(
    nodes: Snapshot,
    root_id: str = ROOT_ID,
    center_x: Optional[float] = None,
    y: Optional[float] = None,
    settings: Optional[PyramidSettings] = None,
) -> Snapshot:
    """Position every node reachable from `root_id`.

    Returns a new snapshot. If `root_id` is not in the collection the input is
    returned unchanged; callers detect that by checking the root is present.
    Nodes unreachable from the root keep their previous position.
    """
    settings = settings or DEFAULT_SETTINGS
    if not any(n.id == root_id for n in nodes):
        return nodes

    cx = settings.root_x if center_x is None else center_x
    cy = settings.root_y if y is None else y

    positions = _place(_Shape(nodes, settings), root_id, cx, cy)

    out: List[PyramidNode] = []
    for n in nodes:
        pos = positions.get(n.id)
        if pos is None or pos == (n.x, n.y):
            out.append(n)
        else:
            out.append(replace(n, x=pos[0], y=pos[1]))
    return tuple(out)
