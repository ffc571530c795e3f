from __future__ import annotations

import math
import uuid
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

ROOT_ID = "root"

MAX_CHILDREN = 5
NODE_CAP = 200

DEFAULT_NODE_WIDTH = 320.0
DEFAULT_NODE_HEIGHT = 140.0

# Stored when a measured size is not a finite number.
FALLBACK_WIDTH = 200.0
FALLBACK_HEIGHT = 40.0

MIN_WIDTH, MAX_WIDTH = 80.0, 2000.0
MIN_HEIGHT, MAX_HEIGHT = 24.0, 2000.0

ROOT_LABEL = "Write your conclusion here"
CHILD_LABEL = "Write a reason"


@dataclass(frozen=True)
class PyramidNode:
    """A single statement in the pyramid.

    `x`/`y` are derived by the layout engine and never set by callers.
    """

    id: str
    parent_id: Optional[str]
    label: str = ""
    width: Optional[float] = DEFAULT_NODE_WIDTH
    height: Optional[float] = DEFAULT_NODE_HEIGHT
    x: float = 0.0
    y: float = 0.0

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)


Snapshot = Tuple[PyramidNode, ...]


def make_node_id() -> str:
    """Generate a fresh node id."""
    return uuid.uuid4().hex


def default_tree(label: str = ROOT_LABEL, x: float = 400.0, y: float = 40.0) -> Snapshot:
    return (PyramidNode(id=ROOT_ID, parent_id=None, label=label, x=x, y=y),)


def find_node(nodes: Iterable[PyramidNode], node_id: str) -> Optional[PyramidNode]:
    for n in nodes:
        if n.id == node_id:
            return n
    return None


def children_of(nodes: Iterable[PyramidNode], parent_id: Optional[str]) -> List[PyramidNode]:
    """Direct children in collection order."""
    return [n for n in nodes if n.parent_id == parent_id]


def child_counts(nodes: Iterable[PyramidNode]) -> Dict[str, int]:
    return dict(Counter(n.parent_id for n in nodes if n.parent_id is not None))


def is_finite_number(v) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def clamp_size(width, height) -> Tuple[float, float]:
    """Clamp a measured size to the node bounds."""
    w = max(MIN_WIDTH, min(float(width), MAX_WIDTH)) if is_finite_number(width) else FALLBACK_WIDTH
    h = max(MIN_HEIGHT, min(float(height), MAX_HEIGHT)) if is_finite_number(height) else FALLBACK_HEIGHT
    return w, h


def tree_problems(nodes: Sequence[PyramidNode]) -> List[str]:
    """Return every structural invariant the collection violates.

    An empty list means the collection is a valid pyramid.
    """
    problems: List[str] = []

    ids = Counter(n.id for n in nodes)
    for node_id, count in ids.items():
        if count > 1:
            problems.append(f"duplicate id {node_id!r} ({count} nodes)")

    roots = [n for n in nodes if n.parent_id is None]
    if len(roots) != 1:
        problems.append(f"expected exactly one root, found {len(roots)}")
    elif roots[0].id != ROOT_ID:
        problems.append(f"root must use id {ROOT_ID!r}, found {roots[0].id!r}")

    if len(nodes) > NODE_CAP:
        problems.append(f"{len(nodes)} nodes exceeds cap of {NODE_CAP}")

    for parent_id, count in child_counts(nodes).items():
        if count > MAX_CHILDREN:
            problems.append(f"node {parent_id!r} has {count} children (max {MAX_CHILDREN})")

    parent_of = {n.id: n.parent_id for n in nodes}
    for n in nodes:
        if n.parent_id is not None and n.parent_id not in parent_of:
            problems.append(f"node {n.id!r} references missing parent {n.parent_id!r}")

    if has_cycle(nodes):
        problems.append("parent references form a cycle")

    return problems


def is_valid_tree(nodes: Sequence[PyramidNode]) -> bool:
    return not tree_problems(nodes)


def has_cycle(nodes: Iterable[PyramidNode]) -> bool:
    """True if some ancestor chain loops instead of ending at a top-level node."""
    parent_of: Dict[str, Optional[str]] = {}
    for n in nodes:
        parent_of.setdefault(n.id, n.parent_id)

    settled: Set[str] = set()
    for start in parent_of:
        path: Set[str] = set()
        cur: Optional[str] = start
        while cur is not None and cur in parent_of and cur not in settled:
            if cur in path:
                return True
            path.add(cur)
            cur = parent_of[cur]
        settled |= path
    return False


def has_usable_root(nodes: Sequence[PyramidNode]) -> bool:
    """The reserved root exists, is top-level and no parent chain loops."""
    root = find_node(nodes, ROOT_ID)
    return root is not None and root.parent_id is None and not has_cycle(nodes)
