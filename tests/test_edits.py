import pytest

from edits import add_child, add_parents, add_partner, add_sibling, delete_person, move_person
from errors import PedigreeError, PedigreeValidationError
from graph import get_person
from pedigree import layout_pedigree


def _names(dataset):
    return [p.name for p in dataset]


def _new(before, after):
    old = set(_names(before))
    return [p for p in after if p.name not in old]


def test_add_child_creates_partner(trio):
    records = add_child(trio, "ch1", "M")
    assert len(records) == 5
    assert len(trio) == 3

    partner, child = _new(trio, records)
    assert partner.sex == "M"
    assert partner.noparents
    assert (child.mother, child.father) == ("ch1", partner.name)
    assert _names(records)[2:] == [partner.name, "ch1", child.name]
    layout_pedigree(records)


def test_add_twin_children(family):
    records = add_child(family, "sib", "F", count=2, twin_type="mztwin")
    a, b = _new(family, records)
    assert (a.mother, a.father) == ("w", "sib")
    assert a.mztwin == b.mztwin == "1"
    assert _names(records).index(a.name) == 5


def test_add_child_rejects_bad_twin_type(trio):
    with pytest.raises(ValueError):
        add_child(trio, "ch1", "F", twin_type="triplet")


def test_add_partner(trio):
    records = add_partner(trio, "m21")
    partner, child = _new(trio, records)
    assert partner.sex == "F"
    assert partner.top_level and partner.noparents
    assert child.sex == "U"
    assert (child.mother, child.father) == (partner.name, "m21")
    assert _names(records)[:3] == ["m21", partner.name, child.name]


def test_add_partner_needs_known_sex(trio):
    trio[2].sex = "U"
    with pytest.raises(PedigreeValidationError):
        add_partner(trio, "ch1")


def test_add_sibling_as_twin(twins):
    records = add_sibling(twins, "ch1", "F", twin_type="dztwin")
    (newbie,) = _new(twins, records)
    assert (newbie.mother, newbie.father) == ("f21", "m21")
    assert get_person(records, "ch1").dztwin == newbie.dztwin == "1"
    assert _names(records)[-1] == newbie.name
    # the input keeps its records untouched
    assert get_person(twins, "ch1").dztwin is None


def test_add_sibling_left_of_founder(trio):
    records = add_sibling(trio, "m21", "M", add_lhs=True)
    newbie = records[0]
    assert newbie.top_level
    assert newbie.mother is None


def test_add_sibling_unknown_person(trio):
    with pytest.raises(PedigreeError):
        add_sibling(trio, "nobody", "M")


def test_add_parents_to_founder(trio):
    layout = layout_pedigree(trio)
    records = add_parents(trio, "m21", layout)
    mother, father = records[:2]
    assert (mother.sex, father.sex) == ("F", "M")
    assert mother.top_level and father.top_level

    m21 = get_person(records, "m21")
    f21 = get_person(records, "f21")
    assert (m21.mother, m21.father) == (mother.name, father.name)
    assert not m21.noparents and not m21.top_level
    assert f21.noparents

    result = layout_pedigree(records)
    assert result.node(mother.name).depth == 1
    assert result.node("m21").depth == 2
    assert result.node("ch1").depth == 3


def test_add_parents_twice_fails(trio):
    layout = layout_pedigree(trio)
    with pytest.raises(PedigreeError, match="already has parents"):
        add_parents(trio, "ch1", layout)


def test_delete_leaf(family):
    layout = layout_pedigree(family)
    result = delete_person(family, "gc1", layout)
    assert result.committed
    assert result.deleted == ["gc1"]
    assert "gc1" not in _names(result.dataset)
    assert "gc1" in _names(family)


def test_delete_needs_confirmation_when_it_splits(branch):
    layout = layout_pedigree(branch)
    result = delete_person(branch, "sib", layout)
    assert not result.committed
    assert result.needs_confirmation
    assert result.unconnected == ["gc"]
    assert result.dataset is branch
    assert _names(branch) == ["m21", "f21", "ch1", "sib", "w", "gc"]


def test_delete_confirmed(branch):
    layout = layout_pedigree(branch)
    result = delete_person(branch, "sib", layout, confirm=True)
    assert result.committed
    assert set(result.deleted) == {"sib", "w"}
    assert _names(result.dataset) == ["m21", "f21", "ch1", "gc"]

    gc = get_person(result.dataset, "gc")
    assert gc.top_level
    assert gc.mother is None and gc.father is None
    layout_pedigree(result.dataset)


def test_move_person(family):
    layout = layout_pedigree(family)
    gc1, gc2 = layout.node("gc1"), layout.node("gc2")
    assert gc2.x < gc1.x

    records = move_person(family, "gc2", layout, gc1.x + 10)
    moved = layout_pedigree(records)
    assert moved.node("gc2").x > moved.node("gc1").x


def test_move_without_neighbour(family):
    layout = layout_pedigree(family)
    k = layout.node("k")
    records = move_person(family, "k", layout, k.x - 1)
    assert _names(records) == _names(family)
    assert records is not family
