"""Validated tree mutations.

Every operation reads a snapshot, builds a candidate, checks it and returns
either the candidate or the *same* input snapshot object. Nothing here
mutates a snapshot in place, so a rejected call is never partially visible.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Callable, Dict, Optional, Sequence, Set

from .config import DEFAULT_SETTINGS, PyramidSettings
from .layout import layout_tree
from .models import (
    MAX_CHILDREN,
    NODE_CAP,
    ROOT_ID,
    PyramidNode,
    Snapshot,
    clamp_size,
    find_node,
    has_cycle,
    make_node_id,
)

logger = logging.getLogger(__name__)


def _has(nodes: Sequence[PyramidNode], node_id: str) -> bool:
    return any(n.id == node_id for n in nodes)


def _usable(laid: Snapshot, *required: str) -> bool:
    """Root and `required` ids survived layout and no parent chain loops."""
    return all(_has(laid, i) for i in (ROOT_ID,) + required) and not has_cycle(laid)


def add_child(
    nodes: Snapshot,
    parent_id: str,
    *,
    settings: PyramidSettings = DEFAULT_SETTINGS,
    new_id: Optional[str] = None,
) -> Snapshot:
    """Append a placeholder child under `parent_id` and re-layout."""
    parent = find_node(nodes, parent_id)
    if parent is None:
        logger.debug("add_child: parent %r not found", parent_id)
        return nodes
    if sum(1 for n in nodes if n.parent_id == parent_id) >= MAX_CHILDREN:
        logger.debug("add_child: %r already has %d children", parent_id, MAX_CHILDREN)
        return nodes
    if len(nodes) >= NODE_CAP:
        logger.debug("add_child: node cap %d reached", NODE_CAP)
        return nodes

    child_id = new_id or make_node_id()
    if _has(nodes, child_id):
        logger.warning("add_child: id %r already in use", child_id)
        return nodes

    child = PyramidNode(
        id=child_id,
        parent_id=parent_id,
        label=settings.child_label,
        width=settings.default_width,
        height=settings.default_height,
        x=parent.x,
        y=parent.y + settings.gap_y,
    )
    laid = layout_tree(tuple(nodes) + (child,), ROOT_ID, settings=settings)

    if not _usable(laid, child_id):
        logger.warning("add_child: candidate tree is malformed, keeping previous tree")
        return nodes
    return laid


def removal_set(nodes: Sequence[PyramidNode], node_id: str) -> Set[str]:
    """`node_id` plus every node whose ancestor chain passes through it."""
    doomed = {node_id}
    changed = True
    while changed:
        changed = False
        for n in nodes:
            if n.id not in doomed and n.parent_id is not None and n.parent_id in doomed:
                doomed.add(n.id)
                changed = True
    return doomed


def delete_node(
    nodes: Snapshot,
    node_id: str,
    *,
    settings: PyramidSettings = DEFAULT_SETTINGS,
) -> Snapshot:
    """Remove `node_id` and its whole subtree. The root cannot be deleted."""
    if node_id == ROOT_ID:
        logger.debug("delete_node: refusing to delete the root")
        return nodes
    if not _has(nodes, node_id):
        return nodes

    doomed = removal_set(nodes, node_id)
    if ROOT_ID in doomed:
        logger.warning("delete_node: %r is an ancestor of the root, keeping previous tree", node_id)
        return nodes
    remaining = tuple(n for n in nodes if n.id not in doomed)
    laid = layout_tree(remaining, ROOT_ID, settings=settings)
    if not _usable(laid):
        logger.warning("delete_node: candidate tree is malformed, keeping previous tree")
        return nodes
    return laid


def set_label(nodes: Snapshot, node_id: str, value: str) -> Snapshot:
    """Relabel one node. Labels never affect layout."""
    node = find_node(nodes, node_id)
    if node is None or node.label == value:
        return nodes
    return tuple(replace(n, label=value) if n.id == node_id else n for n in nodes)


def set_node_size(nodes: Snapshot, node_id: str, width, height) -> Snapshot:
    """Store a clamped measured size without re-running layout.

    Re-layout is an explicit action (`relayout`); tying it to measurement
    made measure -> layout -> remeasure oscillate.
    """
    node = find_node(nodes, node_id)
    if node is None:
        return nodes
    w, h = clamp_size(width, height)
    if (node.width, node.height) == (w, h):
        return nodes
    return tuple(replace(n, width=w, height=h) if n.id == node_id else n for n in nodes)


def relayout(nodes: Snapshot, *, settings: PyramidSettings = DEFAULT_SETTINGS) -> Snapshot:
    laid = layout_tree(nodes, ROOT_ID, settings=settings)
    if not _usable(laid):
        logger.warning("relayout: no root to lay out from or parent links loop")
        return nodes
    return laid


class PyramidEditor:
    """The mutation surface handed to whatever renders the tree.

    Holds the current snapshot and a side-table of the last successful
    add per parent, used to debounce rapid repeated adds. Races on that
    table only make an add land slightly early or late.

    Example:
        editor = PyramidEditor(load_nodes(), on_commit=save_nodes)
        editor.add_child("root")
    """

    def __init__(
        self,
        nodes: Sequence[PyramidNode],
        *,
        settings: Optional[PyramidSettings] = None,
        on_commit: Optional[Callable[[Snapshot], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or DEFAULT_SETTINGS
        self._nodes: Snapshot = tuple(nodes)
        self._on_commit = on_commit
        self._clock = clock
        self._last_add: Dict[str, float] = {}

    @property
    def nodes(self) -> Snapshot:
        return self._nodes

    def _commit(self, candidate: Snapshot) -> bool:
        if candidate is self._nodes:
            return False
        self._nodes = candidate
        if self._on_commit is not None:
            self._on_commit(candidate)
        return True

    def is_add_disabled(self, node_id: str) -> bool:
        last = self._last_add.get(node_id)
        if last is None:
            return False
        return self._clock() - last < self.settings.add_cooldown_s

    def add_child(self, parent_id: str) -> Optional[str]:
        """Add a child under `parent_id`. Returns the new id, or None if rejected."""
        now = self._clock()
        last = self._last_add.get(parent_id)
        if last is not None and now - last < self.settings.add_cooldown_s:
            return None

        candidate = add_child(self._nodes, parent_id, settings=self.settings)
        if not self._commit(candidate):
            return None
        self._last_add[parent_id] = now
        return candidate[-1].id

    def delete_node(self, node_id: str) -> bool:
        return self._commit(delete_node(self._nodes, node_id, settings=self.settings))

    def set_label(self, node_id: str, value: str) -> bool:
        return self._commit(set_label(self._nodes, node_id, value))

    def set_node_size(self, node_id: str, width, height) -> bool:
        return self._commit(set_node_size(self._nodes, node_id, width, height))

    def relayout(self) -> bool:
        return self._commit(relayout(self._nodes, settings=self.settings))

    def scene(self):
        """Positioned nodes and derived edges for renderers."""
        from ..views.scene import build_scene

        return build_scene(self._nodes, self.settings)

    def replace(self, nodes: Sequence[PyramidNode]) -> None:
        """Swap in a whole new tree, e.g. after an import."""
        self._last_add.clear()
        self._commit(tuple(nodes))
