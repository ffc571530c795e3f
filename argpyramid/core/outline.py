"""Outline and record codecs for pyramid trees.

Two interchange forms are supported:

- outline text: one `- label` bullet per node, two spaces of indentation
  per level (`*` bullets and tab indentation are accepted on import);
- records: a JSON array of node records,
  `{"id", "type", "position": {"x", "y"}, "data": {"id", "parentId", "label", "width", "height"}}`.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence

from .config import DEFAULT_SETTINGS, PyramidSettings
from .layout import layout_tree
from .models import (
    ROOT_ID,
    PyramidNode,
    Snapshot,
    has_cycle,
    is_finite_number,
    make_node_id,
    tree_problems,
)

logger = logging.getLogger(__name__)

BULLET_RE = re.compile(r"^(\s*)[-*]\s+(.*)$")
LINE_BREAK_RE = re.compile(r"\r?\n")
SYNTHETIC_ROOT_LABEL = "root"
DEFAULT_EXPORT_NAME = "pyramid"
NODE_TYPE = "text"


class OutlineImportError(ValueError):
    """Raised when imported text or records cannot become a tree."""


# --- outline text ---


def nodes_to_markdown(nodes: Sequence[PyramidNode]) -> str:
    """Render the tree as an indented bullet list, pre-order."""
    by_parent: Dict[Optional[str], List[PyramidNode]] = {}
    for n in nodes:
        by_parent.setdefault(n.parent_id, []).append(n)

    lines: List[str] = []
    emitted = set()

    def write(parent_id: Optional[str], depth: int) -> None:
        for child in by_parent.get(parent_id, []):
            if child.id in emitted:
                continue
            emitted.add(child.id)
            label = LINE_BREAK_RE.sub(" ", child.label or "")
            lines.append(f"{'  ' * depth}- {label}")
            write(child.id, depth + 1)

    write(None, 0)
    return "\n".join(lines)


def parse_markdown(text: str, settings: PyramidSettings = DEFAULT_SETTINGS) -> Snapshot:
    """Parse bullet-list text into an (un-laid-out) tree.

    A node's parent is the most recent bullet one level shallower. A single
    top-level bullet becomes the root; several get a synthetic root.
    """
    nodes: List[PyramidNode] = []
    last_at_depth: Dict[int, str] = {}

    for raw in LINE_BREAK_RE.split(text):
        m = BULLET_RE.match(raw)
        if not m:
            continue
        leading = m.group(1).replace("\t", "  ")
        depth = len(leading) // 2
        node_id = make_node_id()
        parent_id = None if depth == 0 else last_at_depth.get(depth - 1)
        nodes.append(
            PyramidNode(
                id=node_id,
                parent_id=parent_id,
                label=m.group(2).strip(),
                width=settings.default_width,
                height=settings.default_height,
                x=settings.root_x,
                y=settings.root_y,
            )
        )
        last_at_depth[depth] = node_id

    top = [n for n in nodes if n.parent_id is None]
    if not top:
        raise OutlineImportError("outline contains no bullet items")

    if len(top) == 1:
        old_id = top[0].id
        return tuple(
            replace(n, id=ROOT_ID) if n.id == old_id
            else replace(n, parent_id=ROOT_ID) if n.parent_id == old_id
            else n
            for n in nodes
        )

    root = PyramidNode(
        id=ROOT_ID,
        parent_id=None,
        label=SYNTHETIC_ROOT_LABEL,
        width=settings.default_width,
        height=settings.default_height,
        x=settings.root_x,
        y=settings.root_y,
    )
    return (root,) + tuple(replace(n, parent_id=ROOT_ID) if n.parent_id is None else n for n in nodes)


# --- records ---


def node_to_record(node: PyramidNode) -> Dict[str, Any]:
    return {
        "id": node.id,
        "type": NODE_TYPE,
        "position": {"x": node.x, "y": node.y},
        "data": {
            "id": node.id,
            "parentId": node.parent_id,
            "label": node.label,
            "width": node.width,
            "height": node.height,
        },
    }


def nodes_to_records(nodes: Sequence[PyramidNode]) -> List[Dict[str, Any]]:
    return [node_to_record(n) for n in nodes]


def is_node_record(rec: Any) -> bool:
    return (
        isinstance(rec, dict)
        and isinstance(rec.get("id"), str)
        and isinstance(rec.get("data"), dict)
        and isinstance(rec["data"].get("id"), str)
    )


def _num(v: Any, default: Optional[float]) -> Optional[float]:
    return float(v) if is_finite_number(v) else default


def records_to_nodes(records: Any, settings: PyramidSettings = DEFAULT_SETTINGS) -> Snapshot:
    """Validate raw records and convert them to nodes.

    Every record needs a string `id` and a `data` mapping with a string `id`.
    A repeated id keeps its first record; later copies get fresh ids.
    """
    if not isinstance(records, list):
        raise OutlineImportError("expected a JSON array of node records")
    if not records:
        raise OutlineImportError("no node records to import")
    if not all(is_node_record(r) for r in records):
        raise OutlineImportError("invalid node structure")

    seen = set()
    out: List[PyramidNode] = []
    for rec in records:
        data = rec["data"]
        node_id = rec["id"]
        if node_id in seen:
            fresh = make_node_id()
            logger.warning("Duplicate node id %r in import, renamed to %r", node_id, fresh)
            node_id = fresh
        seen.add(node_id)

        parent_id = data.get("parentId")
        if parent_id is not None and not isinstance(parent_id, str):
            parent_id = str(parent_id)
        position = rec.get("position") if isinstance(rec.get("position"), dict) else {}
        label = data.get("label")
        out.append(
            PyramidNode(
                id=node_id,
                parent_id=parent_id,
                label=label if isinstance(label, str) else "",
                width=_num(data.get("width"), None),
                height=_num(data.get("height"), None),
                x=_num(position.get("x"), settings.root_x),
                y=_num(position.get("y"), settings.root_y),
            )
        )
    return tuple(out)


# --- import / export ---


def lay_out_import(candidate: Snapshot, settings: PyramidSettings = DEFAULT_SETTINGS) -> Snapshot:
    """Lay out an imported tree, keeping the raw nodes if layout cannot place the root.

    Falling back loses only positions, never imported nodes. Parent links that
    loop cannot be drawn or edited, so they are rejected outright.
    """
    if has_cycle(candidate):
        raise OutlineImportError("parent references form a cycle")

    laid = layout_tree(candidate, ROOT_ID, settings=settings)
    if not laid or not any(n.id == ROOT_ID for n in laid):
        logger.warning("Layout failed during import, using raw nodes")
        return candidate

    problems = tree_problems(laid)
    if problems:
        logger.warning("Imported tree has structural problems: %s", "; ".join(problems))
    return laid


def import_document(filename: str, text: str, settings: PyramidSettings = DEFAULT_SETTINGS) -> Snapshot:
    """Parse an imported file by extension: `.json` records, anything else outline text."""
    name = (filename or "").lower()
    if name.endswith(".json"):
        try:
            records = json.loads(text)
        except json.JSONDecodeError as e:
            raise OutlineImportError(f"malformed JSON: {e.msg}") from e
        candidate = records_to_nodes(records, settings)
    else:
        candidate = parse_markdown(text, settings)
    return lay_out_import(candidate, settings)


def export_filename(name: Optional[str]) -> str:
    """Normalize a user-chosen export name to `<base>.md`."""
    cleaned = re.sub(r"[\\/]", "", (name or "").strip())
    base = cleaned.split(".")[0].strip()
    return f"{base or DEFAULT_EXPORT_NAME}.md"


def export_document(nodes: Sequence[PyramidNode], fmt: str = "md") -> str:
    if fmt == "md":
        return nodes_to_markdown(nodes)
    if fmt == "json":
        return json.dumps(nodes_to_records(nodes), indent=2, ensure_ascii=False)
    raise ValueError(f"unknown export format: {fmt}")
