"""Tests for the centered tree layout."""

from argpyramid.core.config import PyramidSettings
from argpyramid.core.layout import layout_tree, subtree_width
from argpyramid.core.models import ROOT_ID, PyramidNode


def _node(node_id, parent_id, width=320.0):
    return PyramidNode(id=node_id, parent_id=parent_id, width=width)


def _pos(nodes):
    return {n.id: (n.x, n.y) for n in nodes}


def test_two_children_are_symmetric_under_root():
    nodes = (_node(ROOT_ID, None), _node("a", ROOT_ID), _node("b", ROOT_ID))

    assert subtree_width(nodes, ROOT_ID) == 720
    laid = _pos(layout_tree(nodes, ROOT_ID, 400, 40))

    assert laid[ROOT_ID] == (400, 40)
    assert laid["a"] == (200, 340)
    assert laid["b"] == (600, 340)


def test_defaults_come_from_settings():
    nodes = (_node(ROOT_ID, None), _node("a", ROOT_ID))
    laid = _pos(layout_tree(nodes))
    assert laid[ROOT_ID] == (400, 40)
    assert laid["a"] == (400, 340)

    custom = PyramidSettings(root_x=0, root_y=0, gap_y=100, subtree_gap=10)
    nodes = nodes + (_node("b", ROOT_ID),)
    laid = _pos(layout_tree(nodes, settings=custom))
    assert laid["a"] == (-165, 100)
    assert laid["b"] == (165, 100)


def test_leaf_width_falls_back_to_default_when_invalid():
    nodes = (_node(ROOT_ID, None), _node("a", ROOT_ID, width=None), _node("b", ROOT_ID, width=0))
    assert subtree_width(nodes, "a") == 320
    assert subtree_width(nodes, "b") == 320
    assert subtree_width(nodes, ROOT_ID) == 720


def test_nested_subtrees_use_aggregated_widths():
    nodes = (
        _node(ROOT_ID, None),
        _node("a", ROOT_ID),
        _node("b", ROOT_ID, width=100),
        _node("a1", "a", width=200),
        _node("a2", "a", width=200),
    )
    # a spans 200 + 80 + 200 = 480; total = 480 + 80 + 100 = 660
    assert subtree_width(nodes, "a") == 480
    laid = _pos(layout_tree(nodes, ROOT_ID, 400, 40))

    assert laid["a"] == (400 - 330 + 240, 340)
    assert laid["b"] == (400 - 330 + 480 + 80 + 50, 340)
    assert laid["a1"] == (310 - 240 + 100, 640)
    assert laid["a2"] == (310 - 240 + 380, 640)


def test_sibling_order_is_collection_order():
    nodes = (_node(ROOT_ID, None), _node("z", ROOT_ID), _node("a", ROOT_ID))
    laid = _pos(layout_tree(nodes))
    assert laid["z"][0] < laid["a"][0]


def test_layout_is_deterministic_and_ignores_prior_positions():
    base = (_node(ROOT_ID, None), _node("a", ROOT_ID), _node("b", "a"), _node("c", "a"))
    moved = tuple(PyramidNode(id=n.id, parent_id=n.parent_id, width=n.width, x=999, y=-5) for n in base)
    assert layout_tree(base) == layout_tree(base)
    assert _pos(layout_tree(base)) == _pos(layout_tree(moved))


def test_missing_root_returns_input_unchanged():
    nodes = (_node("a", None), _node("b", "a"))
    assert layout_tree(nodes, ROOT_ID) is nodes


def test_unreachable_nodes_keep_their_position():
    stray = PyramidNode(id="stray", parent_id="ghost", x=7, y=9)
    laid = _pos(layout_tree((_node(ROOT_ID, None), stray)))
    assert laid["stray"] == (7, 9)


def test_self_parented_root_terminates():
    laid = layout_tree((_node(ROOT_ID, ROOT_ID),))
    assert _pos(laid) == {ROOT_ID: (400, 40)}


def test_cycle_through_root_terminates():
    nodes = (_node(ROOT_ID, "x"), _node("x", ROOT_ID))
    assert _pos(layout_tree(nodes)) == {ROOT_ID: (400, 40), "x": (400, 340)}
    assert subtree_width(nodes, ROOT_ID) == 320


def test_deep_chain_is_laid_out_without_recursion_limit():
    nodes = [_node(ROOT_ID, None)]
    for i in range(3000):
        nodes.append(_node(f"n{i}", nodes[-1].id))
    laid = layout_tree(tuple(nodes))

    assert laid[-1].position == (400, 40 + 3000 * 300)
    assert subtree_width(tuple(nodes), ROOT_ID) == 320
