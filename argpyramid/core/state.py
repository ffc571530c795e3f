"""Persisted pyramid state.

The whole tree is stored as one keyed record in `state.json` inside the
artifact directory. It is read once at startup and rewritten after every
committed mutation.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Optional, Sequence

from .config import DEFAULT_SETTINGS, PyramidSettings, get_project_dir
from .models import PyramidNode, Snapshot, default_tree, has_usable_root, tree_problems
from .outline import OutlineImportError, nodes_to_records, records_to_nodes

logger = logging.getLogger(__name__)

STATE_VERSION = 1
STORAGE_KEY = "pyramid-tool-nodes"

_STATE_LOCK = threading.RLock()


def get_pyramid_dir(project_dir: Path) -> Path:
    """Return the directory used for pyramid artifacts.

    Defaults to `<project_dir>/.pyramid`.
    Override with `PYRAMID_ARTIFACT_DIR` (absolute path recommended).
    """

    override = (os.environ.get("PYRAMID_ARTIFACT_DIR") or "").strip()
    if override:
        p = Path(override)
        return p if p.is_absolute() else (Path.cwd() / p).resolve()
    return project_dir / ".pyramid"


def get_state_path(project_dir: Optional[Path] = None) -> Path:
    return get_pyramid_dir(project_dir or get_project_dir()) / "state.json"


def _fresh(settings: PyramidSettings) -> Snapshot:
    return default_tree(settings.root_label, settings.root_x, settings.root_y)


def _back_up(path: Path) -> None:
    try:
        path.replace(path.with_name(path.name + ".bak"))
    except OSError:
        pass


def load_nodes(path: Optional[Path] = None, settings: PyramidSettings = DEFAULT_SETTINGS) -> Snapshot:
    """Load the stored tree, or a root-only tree if nothing usable is stored.

    A stored tree without a top-level `root` node, or whose parent links
    loop, is treated like a corrupt file. Lesser structural problems are
    logged and the tree is kept as stored.
    """
    with _STATE_LOCK:
        path = path or get_state_path()
        if not path.exists():
            return _fresh(settings)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f) or {}
            if int(data.get("state_version") or 0) != STATE_VERSION:
                logger.warning("Ignoring state with unknown version in %s", path)
                return _fresh(settings)
            nodes = records_to_nodes(data.get(STORAGE_KEY), settings)
        except (OSError, ValueError, AttributeError, TypeError) as e:
            # OutlineImportError and JSONDecodeError are both ValueErrors.
            logger.warning("Could not load %s (%s), starting from a fresh tree", path, e)
            if not isinstance(e, OutlineImportError):
                _back_up(path)
            return _fresh(settings)

        problems = tree_problems(nodes)
        if not has_usable_root(nodes):
            logger.warning(
                "Stored tree in %s is unusable (%s), starting from a fresh tree",
                path,
                "; ".join(problems),
            )
            _back_up(path)
            return _fresh(settings)
        if problems:
            logger.warning("Stored tree in %s has structural problems: %s", path, "; ".join(problems))
        return nodes


def save_nodes(nodes: Sequence[PyramidNode], path: Optional[Path] = None) -> Path:
    """Write the tree atomically and return the state path."""
    with _STATE_LOCK:
        path = path or get_state_path()
        tmp = path.with_name(path.name + ".tmp")
        tmp.parent.mkdir(parents=True, exist_ok=True)
        payload = {"state_version": STATE_VERSION, STORAGE_KEY: nodes_to_records(nodes)}
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(json.dumps(payload, indent=2, ensure_ascii=False))
        tmp.replace(path)
        return path


def clear_state(path: Optional[Path] = None) -> None:
    path = path or get_state_path()
    if path.exists():
        path.unlink()
