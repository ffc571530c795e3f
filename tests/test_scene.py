from __future__ import annotations

from argpyramid.core.models import ROOT_ID, PyramidNode, default_tree
from argpyramid.core.mutation import PyramidEditor, add_child
from argpyramid.views.geometry import Rect, route_step, union
from argpyramid.views.scene import build_edges, build_scene, node_rect


def test_edges_are_derived_from_parent_links():
    nodes = add_child(add_child(default_tree(), ROOT_ID, new_id="a"), "a", new_id="b")
    edges = build_edges(nodes)
    assert [(e.id, e.source, e.target, e.type) for e in edges] == [
        ("e-root-a", ROOT_ID, "a", "smoothstep"),
        ("e-a-b", "a", "b", "smoothstep"),
    ]


def test_dangling_parent_has_no_edge():
    nodes = default_tree() + (PyramidNode(id="x", parent_id="ghost"),)
    assert build_edges(nodes) == []


def test_step_route_between_parent_and_child():
    nodes = add_child(add_child(default_tree(), ROOT_ID, new_id="a"), ROOT_ID, new_id="b")
    scene = build_scene(nodes)

    assert scene.rects[ROOT_ID] == Rect(400, 40, 320, 140)
    first = scene.edges[0]
    assert first.points == [(560, 180), (560, 260), (360, 260), (360, 340)]


def test_ports_sit_mid_edge():
    r = Rect(10, 20, 100, 50)
    assert r.top_port() == (60, 20)
    assert r.bottom_port() == (60, 70)
    assert (r.x1, r.y1) == (110, 70)


def test_aligned_ports_route_straight():
    pts = route_step(Rect(0, 0, 100, 50), Rect(0, 200, 100, 50))
    assert pts == [(50, 50), (50, 200)]


def test_scene_bounds_cover_all_nodes():
    nodes = add_child(add_child(default_tree(), ROOT_ID, new_id="a"), ROOT_ID, new_id="b")
    bounds = build_scene(nodes).bounds
    assert bounds == Rect(200, 40, 720, 440)
    assert union([]) is None


def test_node_rect_falls_back_to_default_size():
    rect = node_rect(PyramidNode(id="n", parent_id=None, width=None, height=float("nan"), x=1, y=2))
    assert rect == Rect(1, 2, 320, 140)


def test_editor_scene_to_dict():
    editor = PyramidEditor(default_tree())
    editor.add_child(ROOT_ID)
    data = editor.scene().to_dict()
    assert [n["id"] for n in data["nodes"]][0] == ROOT_ID
    assert len(data["edges"]) == 1
    assert data["edges"][0]["points"][0] == [560.0, 180.0]
    assert data["bounds"]["w"] == 320
