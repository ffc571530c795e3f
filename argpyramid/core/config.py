"""Tunable layout and editing settings.

Settings come from an optional `pyramid.yaml` in the project directory:

    layout:
      root_x: 400
      gap_y: 300
    editor:
      add_cooldown_ms: 200
      child_label: "Write a reason"

Both sections are optional and unknown keys are ignored.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from .models import CHILD_LABEL, DEFAULT_NODE_HEIGHT, DEFAULT_NODE_WIDTH, ROOT_LABEL

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "pyramid.yaml"


@dataclass(frozen=True)
class PyramidSettings:
    root_x: float = 400.0
    root_y: float = 40.0
    gap_y: float = 300.0
    subtree_gap: float = 80.0
    default_width: float = DEFAULT_NODE_WIDTH
    default_height: float = DEFAULT_NODE_HEIGHT
    add_cooldown_ms: float = 200.0
    root_label: str = ROOT_LABEL
    child_label: str = CHILD_LABEL

    @property
    def add_cooldown_s(self) -> float:
        return self.add_cooldown_ms / 1000.0


DEFAULT_SETTINGS = PyramidSettings()

_NUMERIC = {f.name for f in fields(PyramidSettings) if f.type in ("float", float)}
_TEXT = {f.name for f in fields(PyramidSettings) if f.type in ("str", str)}
_SIGNED = {"root_x", "root_y"}


def get_project_dir() -> Path:
    return Path(os.environ.get("PYRAMID_PROJECT_DIR", os.getcwd()))


def settings_from_dict(data: Dict[str, Any]) -> PyramidSettings:
    """Build settings from a parsed YAML mapping, skipping bad values."""
    flat: Dict[str, Any] = {}
    for section in ("layout", "editor"):
        block = data.get(section)
        if isinstance(block, dict):
            flat.update(block)

    overrides: Dict[str, Any] = {}
    for key, value in flat.items():
        if key in _NUMERIC:
            try:
                num = float(value)
            except (TypeError, ValueError):
                logger.warning("Ignoring non-numeric setting %s=%r", key, value)
                continue
            if not math.isfinite(num) or (num < 0 and key not in _SIGNED):
                logger.warning("Ignoring out-of-range setting %s=%r", key, value)
                continue
            overrides[key] = num
        elif key in _TEXT:
            overrides[key] = str(value)
    return replace(DEFAULT_SETTINGS, **overrides)


def load_settings(project_dir: Optional[Path] = None) -> PyramidSettings:
    """Load settings from pyramid.yaml, falling back to defaults."""
    import yaml

    path = (project_dir or get_project_dir()) / CONFIG_FILENAME
    if not path.exists():
        return DEFAULT_SETTINGS

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Could not read %s: %s", path, e)
        return DEFAULT_SETTINGS

    if not isinstance(data, dict):
        return DEFAULT_SETTINGS
    return settings_from_dict(data)
