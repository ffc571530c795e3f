#!/usr/bin/env python3
"""
argpyramid CLI - build argument pyramids from the terminal

Usage:
    argpyramid show                        Print the tree as an outline
    argpyramid add <parent-id>             Add a reason under a node
    argpyramid delete <id>                 Delete a node and its subtree
    argpyramid label <id> <text>           Relabel a node
    argpyramid resize <id> <w> <h>         Store a node size
    argpyramid relayout                    Recompute positions
    argpyramid import <file>               Replace the tree from .md or .json
    argpyramid export [name]               Write the tree to <name>.md
    argpyramid scene                       Print positioned nodes and edges as JSON
    argpyramid reset                       Start over with a root-only tree
"""

import argparse
import json
import logging
import sys
from pathlib import Path


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="argpyramid: structured-argument pyramids",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    argpyramid show --ids
    argpyramid add root
    argpyramid label root "We should move to weekly releases"
    argpyramid import notes.md
    argpyramid export weekly-releases
        """
    )
    parser.add_argument("--project", "-p", help="Project directory (default: $PYRAMID_PROJECT_DIR or cwd)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log rejected operations")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    show_parser = subparsers.add_parser("show", help="Print the tree as an outline")
    show_parser.add_argument("--ids", action="store_true", help="Prefix each line with the node id")

    add_parser = subparsers.add_parser("add", help="Add a child node")
    add_parser.add_argument("parent", help="Parent node id")
    add_parser.add_argument("--label", "-l", help="Label for the new node")

    delete_parser = subparsers.add_parser("delete", help="Delete a node and its subtree")
    delete_parser.add_argument("id", help="Node id")

    label_parser = subparsers.add_parser("label", help="Relabel a node")
    label_parser.add_argument("id", help="Node id")
    label_parser.add_argument("text", help="New label")

    resize_parser = subparsers.add_parser("resize", help="Store a node size (does not re-layout)")
    resize_parser.add_argument("id", help="Node id")
    resize_parser.add_argument("width", type=float)
    resize_parser.add_argument("height", type=float)

    subparsers.add_parser("relayout", help="Recompute node positions")

    import_parser = subparsers.add_parser("import", help="Replace the tree from an outline or JSON file")
    import_parser.add_argument("file", help="Path to .md/.markdown/.json file")

    export_parser = subparsers.add_parser("export", help="Export the tree")
    export_parser.add_argument("name", nargs="?", default="pyramid", help="Base file name")
    export_parser.add_argument("--format", "-f", choices=["md", "json"], default="md")
    export_parser.add_argument("--out-dir", "-o", default=".", help="Output directory")

    subparsers.add_parser("scene", help="Print positioned nodes and edges as JSON")
    subparsers.add_parser("reset", help="Replace the tree with a root-only tree")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    from .core.config import get_project_dir, load_settings
    from .core.mutation import PyramidEditor
    from .core.state import get_state_path, load_nodes, save_nodes

    project = Path(args.project) if args.project else get_project_dir()
    settings = load_settings(project)
    state_path = get_state_path(project)

    editor = PyramidEditor(
        load_nodes(state_path, settings),
        settings=settings,
        on_commit=lambda nodes: save_nodes(nodes, state_path),
    )

    handlers = {
        "show": cmd_show,
        "add": cmd_add,
        "delete": cmd_delete,
        "label": cmd_label,
        "resize": cmd_resize,
        "relayout": cmd_relayout,
        "import": cmd_import,
        "export": cmd_export,
        "scene": cmd_scene,
        "reset": cmd_reset,
    }
    return handlers[args.command](editor, args)


def cmd_show(editor, args):
    """Handle show command."""
    from .core.outline import nodes_to_markdown

    if not args.ids:
        print(nodes_to_markdown(editor.nodes))
        return 0

    from .core.models import PyramidNode

    # Re-render with ids by swapping labels on a throwaway copy.
    tagged = [PyramidNode(id=n.id, parent_id=n.parent_id, label=f"[{n.id}] {n.label}") for n in editor.nodes]
    print(nodes_to_markdown(tagged))
    return 0


def cmd_add(editor, args):
    """Handle add command."""
    new_id = editor.add_child(args.parent)
    if new_id is None:
        print(f"Could not add a child under: {args.parent}", file=sys.stderr)
        return 1
    if args.label:
        editor.set_label(new_id, args.label)
    print(new_id)
    return 0


def cmd_delete(editor, args):
    """Handle delete command."""
    if not editor.delete_node(args.id):
        print(f"Could not delete: {args.id}", file=sys.stderr)
        return 1
    print(f"Deleted {args.id}")
    return 0


def cmd_label(editor, args):
    """Handle label command."""
    from .core.models import find_node

    if find_node(editor.nodes, args.id) is None:
        print(f"Node not found: {args.id}", file=sys.stderr)
        return 1
    editor.set_label(args.id, args.text)
    return 0


def cmd_resize(editor, args):
    """Handle resize command."""
    from .core.models import find_node

    if find_node(editor.nodes, args.id) is None:
        print(f"Node not found: {args.id}", file=sys.stderr)
        return 1
    editor.set_node_size(args.id, args.width, args.height)
    node = find_node(editor.nodes, args.id)
    print(f"{node.id}: {node.width:g}x{node.height:g}")
    return 0


def cmd_relayout(editor, args):
    """Handle relayout command."""
    if not editor.relayout():
        print("Nothing to lay out", file=sys.stderr)
        return 1
    print(f"Laid out {len(editor.nodes)} nodes")
    return 0


def cmd_import(editor, args):
    """Handle import command."""
    from .core.outline import OutlineImportError, import_document

    path = Path(args.file)
    try:
        text = path.read_text(encoding="utf-8")
        nodes = import_document(path.name, text, editor.settings)
    except (OSError, OutlineImportError) as e:
        print(f"Error: import failed: {e}", file=sys.stderr)
        return 1

    editor.replace(nodes)
    print(f"Imported {len(nodes)} nodes from {path.name}")
    return 0


def cmd_export(editor, args):
    """Handle export command."""
    from .core.outline import export_document, export_filename

    out_name = export_filename(args.name)
    if args.format == "json":
        out_name = out_name[: -len(".md")] + ".json"
    out_path = Path(args.out_dir) / out_name
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(export_document(editor.nodes, args.format), encoding="utf-8")
    except OSError as e:
        print(f"Error: export failed: {e}", file=sys.stderr)
        return 1
    print(f"Exported to: {out_path}")
    return 0


def cmd_scene(editor, args):
    """Handle scene command."""
    print(json.dumps(editor.scene().to_dict(), indent=2, ensure_ascii=False))
    return 0


def cmd_reset(editor, args):
    """Handle reset command."""
    from .core.models import default_tree

    s = editor.settings
    editor.replace(default_tree(s.root_label, s.root_x, s.root_y))
    print("Reset to a root-only tree")
    return 0


if __name__ == "__main__":
    sys.exit(main())
