import itertools

import pytest

from config import LayoutConfig
from layout import adjust_nodes_coordinates, get_nodes_at_depth, horizontal_overlap, nodes_overlap
from models import PERSON, ROOT, UNION, HierarchyNode, PersonNode, UnionNode
from pedigree import layout_pedigree
from tidy import pedigree_separation, tidy_tree


def _person(name, depth, x, **kwargs):
    return HierarchyNode(PERSON, PersonNode(name, **kwargs), depth=depth, x=x)


def test_horizontal_overlap_threshold():
    nodes = [_person("a", 1, 0.0)]
    # exactly one symbol apart is allowed
    assert not horizontal_overlap(nodes, 35.0, 1, [], 35)
    assert horizontal_overlap(nodes, 34.9, 1, [], 35)
    assert horizontal_overlap(nodes, -34.9, 1, [], 35)
    assert not horizontal_overlap(nodes, 10.0, 2, [], 35)


def test_horizontal_overlap_skips_hidden_and_excluded():
    nodes = [
        _person("a", 1, 0.0),
        _person("b", 1, 100.0, hidden=True),
        HierarchyNode(UNION, UnionNode("u", PersonNode("m"), PersonNode("f")), depth=1, x=200.0),
    ]
    assert not horizontal_overlap(nodes, 5.0, 1, ["a"], 35)
    assert not horizontal_overlap(nodes, 105.0, 1, [], 35)
    assert not horizontal_overlap(nodes, 205.0, 1, [], 35)


def test_horizontal_overlap_tolerance():
    nodes = [_person("a", 1, 0.0)]
    assert horizontal_overlap(nodes, 50.0, 1, [], 35, tolerance=1.5)
    assert not horizontal_overlap(nodes, 50.0, 1, [], 35)


def test_nodes_overlap_checks_the_moved_subtree():
    parent = HierarchyNode(UNION, UnionNode("u", PersonNode("m"), PersonNode("f")), depth=1, x=0.0)
    child = _person("c", 2, 0.0)
    parent.children = [child]
    other = _person("o", 2, 60.0)
    nodes = [parent, child, other]
    assert not nodes_overlap(parent, -20.0, nodes, 35)
    assert nodes_overlap(parent, -40.0, nodes, 35)


def test_get_nodes_at_depth():
    nodes = [_person("b", 1, 50.0), _person("a", 1, -5.0), _person("c", 2, 0.0)]
    assert [n.name for n in get_nodes_at_depth(nodes, 1)] == ["a", "b"]
    assert [n.name for n in get_nodes_at_depth(nodes, 1, exclude=["a"])] == ["b"]


def test_pedigree_separation():
    root = HierarchyNode(PERSON, PersonNode("r"))
    a, b = _person("a", 1, 0), _person("b", 1, 0)
    a.parent = b.parent = root
    assert pedigree_separation(a, b) == 1.2
    c = _person("c", 1, 0)
    c.parent = HierarchyNode(PERSON, PersonNode("s"))
    assert pedigree_separation(a, c) == 2.2
    c.data.hidden = True
    assert pedigree_separation(a, c) == 1.2


def test_tidy_tree_node_size():
    root = HierarchyNode(PERSON, PersonNode("r"))
    a, b = _person("a", 1, 0), _person("b", 1, 0)
    root.children = [a, b]
    a.parent = b.parent = root
    tidy_tree(root, node_size=(10, 100))
    assert root.x == pytest.approx(0)
    assert a.x == pytest.approx(-6)
    assert b.x == pytest.approx(6)
    assert a.y == b.y == 100
    assert root.y == 0


def test_trio_layout(trio):
    result = layout_pedigree(trio)
    m21, f21, ch1 = (result.node(n) for n in ("m21", "f21", "ch1"))
    union = next(n for n in result.nodes if n.is_union)

    dx = 35 * 1.65 * 1.2
    assert m21.x == pytest.approx(-dx)
    assert f21.x == pytest.approx(dx)
    assert union.x == pytest.approx(0)
    assert ch1.x == pytest.approx(0)
    assert m21.y == f21.y == pytest.approx(35 * 3.5)
    assert ch1.y == pytest.approx(2 * 35 * 3.5)


def test_layout_fits_to_size(family):
    result = layout_pedigree(family, LayoutConfig(width=800, height=600))
    xs = [n.x for n in result.nodes]
    assert min(xs) >= 0
    assert all(n.y >= 0 for n in result.nodes)


def test_no_overlap_after_adjustment(family):
    config = LayoutConfig()
    result = layout_pedigree(family, config)
    visible = [n for n in result.nodes if not n.hidden]
    for a, b in itertools.combinations(visible, 2):
        if a.depth == b.depth:
            assert abs(a.x - b.x) >= config.symbol_size, (a, b)


def test_unions_between_partners(family):
    result = layout_pedigree(family)
    for union in (n for n in result.nodes if n.is_union):
        father = result.node(union.data.father.name)
        mother = result.node(union.data.mother.name)
        assert min(father.x, mother.x) <= union.x <= max(father.x, mother.x)


def _couple(union_x, children, others=()):
    """Partners at -100 and 100 with their union at `union_x` and the given children."""
    father = _person("m21", 1, -100.0, sex="M")
    mother = _person("f21", 1, 100.0, sex="F")
    union = HierarchyNode(
        UNION, UnionNode("u1", father=father.data, mother=mother.data), depth=1, x=union_x
    )
    union.children = list(children)
    root = HierarchyNode(ROOT, id=0, children=[father, union, mother, *others])
    for node in root.children:
        node.parent = root
    for child in union.children:
        child.parent = union
    return root, union


def test_adjust_centres_single_child():
    child = _person("ch1", 2, 40.0)
    root, union = _couple(40.0, [child])
    adjust_nodes_coordinates(root, 35)
    assert union.x == 0.0
    assert child.x == 0.0


def test_adjust_moves_child_towards_hidden_sibling():
    hidden = _person("h", 2, -40.0, hidden=True)
    child = _person("ch1", 2, 60.0)
    root, union = _couple(60.0, [hidden, child])
    adjust_nodes_coordinates(root, 35)
    assert union.x == 0.0
    assert child.x == 0.0
    assert hidden.x == -40.0


def test_adjust_keeps_child_moving_away_from_hidden_sibling():
    hidden = _person("h", 2, 20.0, hidden=True)
    child = _person("ch1", 2, 60.0)
    root, union = _couple(60.0, [child, hidden])
    adjust_nodes_coordinates(root, 35)
    assert union.x == 0.0
    assert child.x == 60.0


def test_adjust_shifts_children_with_union():
    a, b = _person("a", 2, 10.0), _person("b", 2, 70.0)
    root, union = _couple(40.0, [a, b])
    adjust_nodes_coordinates(root, 35)
    assert union.x == 0.0
    assert (a.x, b.x) == (-30.0, 30.0)


def test_adjust_does_not_shift_into_other_nodes():
    a, b = _person("a", 2, 10.0), _person("b", 2, 70.0)
    stranger = _person("s", 2, -40.0)
    root, union = _couple(40.0, [a, b], others=[stranger])
    adjust_nodes_coordinates(root, 35)
    assert union.x == 0.0
    assert (a.x, b.x) == (10.0, 70.0)


def test_adjust_snaps_stray_union_between_partners():
    blocker = _person("x1", 1, 0.0)
    child = _person("ch1", 2, 150.0)
    root, union = _couple(150.0, [child], others=[blocker])
    adjust_nodes_coordinates(root, 35)
    # the middle is taken but the union may not stay outside its partners
    assert union.x == 0.0
    assert child.x == 150.0


def test_adjust_leaves_blocked_union_inside_partners():
    blocker = _person("x1", 1, 0.0)
    root, union = _couple(60.0, [_person("ch1", 2, 60.0)], others=[blocker])
    adjust_nodes_coordinates(root, 35)
    assert union.x == 60.0
