"""Core domain types and algorithms."""

from .config import DEFAULT_SETTINGS, PyramidSettings, load_settings
from .layout import layout_tree, subtree_width
from .models import (
    MAX_CHILDREN,
    NODE_CAP,
    ROOT_ID,
    PyramidNode,
    Snapshot,
    children_of,
    default_tree,
    find_node,
    has_cycle,
    has_usable_root,
    is_valid_tree,
    make_node_id,
    tree_problems,
)
from .mutation import (
    PyramidEditor,
    add_child,
    delete_node,
    relayout,
    removal_set,
    set_label,
    set_node_size,
)
from .outline import (
    OutlineImportError,
    export_document,
    export_filename,
    import_document,
    nodes_to_markdown,
    nodes_to_records,
    parse_markdown,
    records_to_nodes,
)
from .state import clear_state, load_nodes, save_nodes

__all__ = [
    # models
    "MAX_CHILDREN",
    "NODE_CAP",
    "ROOT_ID",
    "PyramidNode",
    "Snapshot",
    "children_of",
    "default_tree",
    "find_node",
    "has_cycle",
    "has_usable_root",
    "is_valid_tree",
    "make_node_id",
    "tree_problems",
    # config
    "DEFAULT_SETTINGS",
    "PyramidSettings",
    "load_settings",
    # layout
    "layout_tree",
    "subtree_width",
    # mutation
    "PyramidEditor",
    "add_child",
    "delete_node",
    "relayout",
    "removal_set",
    "set_label",
    "set_node_size",
    # outline
    "OutlineImportError",
    "export_document",
    "export_filename",
    "import_document",
    "nodes_to_markdown",
    "nodes_to_records",
    "parse_markdown",
    "records_to_nodes",
    # state
    "clear_state",
    "load_nodes",
    "save_nodes",
]
