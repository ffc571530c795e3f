"""Tests for persistence and settings."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from argpyramid.core.config import DEFAULT_SETTINGS, PyramidSettings, load_settings
from argpyramid.core.models import ROOT_ID, PyramidNode, default_tree
from argpyramid.core.mutation import PyramidEditor, add_child, set_label
from argpyramid.core.state import STORAGE_KEY, get_state_path, load_nodes, save_nodes


def test_missing_state_gives_root_only_tree(tmp_path: Path) -> None:
    nodes = load_nodes(tmp_path / "state.json")
    assert [n.id for n in nodes] == [ROOT_ID]


def test_save_then_load_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "state.json"
    nodes = set_label(add_child(default_tree(), ROOT_ID, new_id="a"), "a", "reason")

    assert save_nodes(nodes, path) == path
    assert not path.with_name("state.json.tmp").exists()

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["state_version"] == 1
    assert [r["id"] for r in data[STORAGE_KEY]] == [ROOT_ID, "a"]
    assert load_nodes(path) == nodes


def test_corrupt_state_is_backed_up(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text("{ definitely not json", encoding="utf-8")

    nodes = load_nodes(path)
    assert [n.id for n in nodes] == [ROOT_ID]
    assert path.with_name("state.json.bak").exists()
    assert not path.exists()


def test_wrong_version_or_empty_records_fall_back(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"state_version": 99, STORAGE_KEY: []}), encoding="utf-8")
    assert [n.id for n in load_nodes(path)] == [ROOT_ID]

    path.write_text(json.dumps({"state_version": 1, STORAGE_KEY: []}), encoding="utf-8")
    assert [n.id for n in load_nodes(path)] == [ROOT_ID]


def test_stored_tree_without_usable_root_is_backed_up(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    cyclic = (PyramidNode(id=ROOT_ID, parent_id="x"), PyramidNode(id="x", parent_id=ROOT_ID))
    for stored in [cyclic, (PyramidNode(id="top", parent_id=None),)]:
        save_nodes(stored, path)
        assert load_nodes(path) == default_tree()
        assert path.with_name("state.json.bak").exists()
        assert not path.exists()


def test_stored_tree_problems_are_logged(tmp_path: Path, caplog) -> None:
    path = tmp_path / "state.json"
    nodes = default_tree() + (PyramidNode(id="stray", parent_id="ghost"), PyramidNode(id="top", parent_id=None))
    save_nodes(nodes, path)

    with caplog.at_level(logging.WARNING, logger="argpyramid.core.state"):
        loaded = load_nodes(path)

    assert [n.id for n in loaded] == [ROOT_ID, "stray", "top"]
    assert "missing parent 'ghost'" in caplog.text
    assert "expected exactly one root, found 2" in caplog.text


def test_fresh_tree_uses_configured_root_label(tmp_path: Path) -> None:
    settings = PyramidSettings(root_label="Thesis")
    assert load_nodes(tmp_path / "state.json", settings)[0].label == "Thesis"


def test_editor_persists_each_commit(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    editor = PyramidEditor(load_nodes(path), on_commit=lambda nodes: save_nodes(nodes, path))

    child = editor.add_child(ROOT_ID)
    editor.set_label(child, "persisted")

    reloaded = load_nodes(path)
    assert [n.label for n in reloaded if n.id == child] == ["persisted"]


def test_state_path_honors_env(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("PYRAMID_ARTIFACT_DIR", raising=False)
    monkeypatch.setenv("PYRAMID_PROJECT_DIR", str(tmp_path))
    assert get_state_path() == tmp_path / ".pyramid" / "state.json"

    monkeypatch.setenv("PYRAMID_ARTIFACT_DIR", str(tmp_path / "artifacts"))
    assert get_state_path() == tmp_path / "artifacts" / "state.json"


def test_settings_default_without_file(tmp_path: Path) -> None:
    assert load_settings(tmp_path) == DEFAULT_SETTINGS


def test_settings_from_yaml(tmp_path: Path) -> None:
    (tmp_path / "pyramid.yaml").write_text(
        "layout:\n"
        "  gap_y: 120\n"
        "  subtree_gap: oops\n"
        "  root_x: -5\n"
        "  default_width: -1\n"
        "editor:\n"
        "  add_cooldown_ms: 500\n"
        "  child_label: Because\n"
        "  unknown_key: 1\n",
        encoding="utf-8",
    )
    settings = load_settings(tmp_path)
    assert settings.gap_y == 120
    assert settings.subtree_gap == DEFAULT_SETTINGS.subtree_gap
    assert settings.root_x == -5
    assert settings.default_width == DEFAULT_SETTINGS.default_width
    assert settings.add_cooldown_s == 0.5
    assert settings.child_label == "Because"


def test_unreadable_yaml_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / "pyramid.yaml").write_text("layout: [unclosed\n", encoding="utf-8")
    assert load_settings(tmp_path) == DEFAULT_SETTINGS

    (tmp_path / "pyramid.yaml").write_text("- just\n- a list\n", encoding="utf-8")
    assert load_settings(tmp_path) == DEFAULT_SETTINGS
