#!/usr/bin/env python3
"""
argpyramid MCP Server - argument pyramids for LLM agents

Exposes the pyramid mutation surface (add, delete, relabel, resize) plus
outline import/export as MCP tools. The tree is persisted after every
committed change, so agents can build an argument across many calls.

Typical workflow:
1. pyramid_show to see the current outline with node ids
2. pyramid_set_label on the root to state the conclusion
3. pyramid_add_child / pyramid_set_label to add supporting reasons
4. pyramid_export to get the outline text
"""

import json
from enum import Enum
from typing import Optional

from mcp.server.fastmcp import FastMCP
from pydantic import BaseModel, ConfigDict, Field

from .core.config import get_project_dir, load_settings
from .core.models import MAX_CHILDREN, NODE_CAP, PyramidNode, find_node
from .core.mutation import PyramidEditor
from .core.outline import OutlineImportError, export_document, import_document, nodes_to_markdown
from .core.state import get_state_path, load_nodes, save_nodes

# Initialize MCP server
mcp = FastMCP("argpyramid_mcp")

# Created on first use and reused for the whole session
_editor: Optional[PyramidEditor] = None

CHARACTER_LIMIT = 25000


class ResponseFormat(str, Enum):
    """Output format for tool responses."""
    MARKDOWN = "markdown"
    JSON = "json"


# ============================================================================
# Input Models
# ============================================================================

class ShowInput(BaseModel):
    """Input for showing the tree."""
    model_config = ConfigDict(str_strip_whitespace=True, extra='forbid')

    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="'markdown' for an outline with ids, 'json' for positioned nodes and edges"
    )


class NodeInput(BaseModel):
    """Input naming a single node."""
    model_config = ConfigDict(str_strip_whitespace=True, extra='forbid')

    node_id: str = Field(..., description="Node id ('root' for the conclusion)", min_length=1)


class AddChildInput(BaseModel):
    """Input for adding a child node."""
    model_config = ConfigDict(str_strip_whitespace=True, extra='forbid')

    parent_id: str = Field(..., description="Id of the node to add a reason under", min_length=1)
    label: Optional[str] = Field(
        default=None,
        description="Optional label for the new node (placeholder text otherwise)",
        max_length=5000
    )


class SetLabelInput(BaseModel):
    """Input for relabeling a node."""
    model_config = ConfigDict(extra='forbid')

    node_id: str = Field(..., description="Node id", min_length=1)
    label: str = Field(..., description="New label text", max_length=5000)


class SetSizeInput(BaseModel):
    """Input for storing a node size."""
    model_config = ConfigDict(str_strip_whitespace=True, extra='forbid')

    node_id: str = Field(..., description="Node id", min_length=1)
    width: float = Field(..., description="Width in px (clamped to 80-2000)")
    height: float = Field(..., description="Height in px (clamped to 24-2000)")


class ImportInput(BaseModel):
    """Input for importing a tree."""
    model_config = ConfigDict(extra='forbid')

    filename: str = Field(
        default="import.md",
        description="File name; '.json' means node records, anything else outline text",
        min_length=1
    )
    content: str = Field(..., description="File content", min_length=1)


class ExportInput(BaseModel):
    """Input for exporting the tree."""
    model_config = ConfigDict(str_strip_whitespace=True, extra='forbid')

    format: str = Field(default="md", description="'md' for outline text, 'json' for node records", pattern="^(md|json)$")


# ============================================================================
# Helper Functions
# ============================================================================

def _get_editor() -> PyramidEditor:
    """Load the persisted tree once and wire saving on commit."""
    global _editor

    if _editor is None:
        project = get_project_dir()
        settings = load_settings(project)
        state_path = get_state_path(project)
        _editor = PyramidEditor(
            load_nodes(state_path, settings),
            settings=settings,
            on_commit=lambda nodes: save_nodes(nodes, state_path),
        )
    return _editor


def _outline_with_ids(nodes) -> str:
    tagged = [PyramidNode(id=n.id, parent_id=n.parent_id, label=f"`{n.id}` {n.label}") for n in nodes]
    return nodes_to_markdown(tagged)


def _truncate_response(response: str, message: str = "") -> str:
    """Truncate response if too long."""
    if len(response) <= CHARACTER_LIMIT:
        return response

    truncated = response[:CHARACTER_LIMIT - 200]
    truncated += f"\n\n---\n**TRUNCATED**: Response exceeded {CHARACTER_LIMIT} characters. {message}"
    return truncated


# ============================================================================
# MCP Tools
# ============================================================================

@mcp.tool(
    name="pyramid_show",
    annotations={
        "title": "Show Pyramid",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False
    }
)
async def pyramid_show(params: ShowInput) -> str:
    """
    Show the current argument pyramid.

    Returns:
        Outline with node ids (markdown) or positioned nodes and edges (json)
    """
    editor = _get_editor()
    if params.response_format == ResponseFormat.JSON:
        return _truncate_response(json.dumps(editor.scene().to_dict(), indent=2, ensure_ascii=False))
    return _truncate_response(f"# Pyramid ({len(editor.nodes)} nodes)\n\n" + _outline_with_ids(editor.nodes))


@mcp.tool(
    name="pyramid_add_child",
    annotations={
        "title": "Add Reason",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": False
    }
)
async def pyramid_add_child(params: AddChildInput) -> str:
    """
    Add a child node (a supporting reason) under an existing node.

    Rejected when the parent does not exist, already has 5 children, the tree
    holds 200 nodes, or a child was added to the same parent moments ago.

    Example:
        pyramid_add_child(parent_id="root", label="Releases get smaller")
    """
    editor = _get_editor()
    new_id = editor.add_child(params.parent_id)
    if new_id is None:
        if find_node(editor.nodes, params.parent_id) is None:
            return f"Error: node '{params.parent_id}' not found."
        return (
            f"Error: could not add under '{params.parent_id}' "
            f"(max {MAX_CHILDREN} children per node, {NODE_CAP} nodes total, or added too quickly)."
        )
    if params.label is not None:
        editor.set_label(new_id, params.label)
    return f"Added `{new_id}` under `{params.parent_id}`."


@mcp.tool(
    name="pyramid_delete_node",
    annotations={
        "title": "Delete Node",
        "readOnlyHint": False,
        "destructiveHint": True,
        "idempotentHint": True,
        "openWorldHint": False
    }
)
async def pyramid_delete_node(params: NodeInput) -> str:
    """
    Delete a node together with everything beneath it. The root cannot be deleted.
    """
    editor = _get_editor()
    before = len(editor.nodes)
    if not editor.delete_node(params.node_id):
        return f"Error: could not delete '{params.node_id}'."
    return f"Deleted {before - len(editor.nodes)} node(s)."


@mcp.tool(
    name="pyramid_set_label",
    annotations={
        "title": "Relabel Node",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False
    }
)
async def pyramid_set_label(params: SetLabelInput) -> str:
    """Replace the text of a node."""
    editor = _get_editor()
    if find_node(editor.nodes, params.node_id) is None:
        return f"Error: node '{params.node_id}' not found."
    editor.set_label(params.node_id, params.label)
    return f"Updated `{params.node_id}`."


@mcp.tool(
    name="pyramid_set_node_size",
    annotations={
        "title": "Store Node Size",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False
    }
)
async def pyramid_set_node_size(params: SetSizeInput) -> str:
    """
    Store a node's measured size. Does not move anything; call pyramid_relayout afterwards.
    """
    editor = _get_editor()
    if find_node(editor.nodes, params.node_id) is None:
        return f"Error: node '{params.node_id}' not found."
    editor.set_node_size(params.node_id, params.width, params.height)
    node = find_node(editor.nodes, params.node_id)
    return f"`{node.id}` is {node.width:g}x{node.height:g}."


@mcp.tool(
    name="pyramid_is_add_disabled",
    annotations={
        "title": "Check Add Cooldown",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False
    }
)
async def pyramid_is_add_disabled(params: NodeInput) -> str:
    """Report whether adding under a node is briefly disabled after a recent add."""
    return json.dumps({"node_id": params.node_id, "disabled": _get_editor().is_add_disabled(params.node_id)})


@mcp.tool(
    name="pyramid_relayout",
    annotations={
        "title": "Re-layout Pyramid",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False
    }
)
async def pyramid_relayout() -> str:
    """Recompute every node position from the tree shape and stored sizes."""
    editor = _get_editor()
    editor.relayout()
    return f"Laid out {len(editor.nodes)} nodes."


@mcp.tool(
    name="pyramid_import",
    annotations={
        "title": "Import Pyramid",
        "readOnlyHint": False,
        "destructiveHint": True,
        "idempotentHint": False,
        "openWorldHint": False
    }
)
async def pyramid_import(params: ImportInput) -> str:
    """
    Replace the whole tree from outline text or a JSON array of node records.

    On failure the current tree is left untouched.
    """
    editor = _get_editor()
    try:
        nodes = import_document(params.filename, params.content, editor.settings)
    except OutlineImportError as e:
        return f"Error: import failed: {e}"
    editor.replace(nodes)
    return f"Imported {len(nodes)} nodes."


@mcp.tool(
    name="pyramid_export",
    annotations={
        "title": "Export Pyramid",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False
    }
)
async def pyramid_export(params: ExportInput) -> str:
    """Export the tree as outline text ('md') or node records ('json')."""
    return _truncate_response(export_document(_get_editor().nodes, params.format))


# Entry point for running the server
def main():
    """Run the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
