from models import PERSON, ROOT, UNION, HierarchyNode, PersonNode, UnionNode, copy_dataset, make_id


def test_person_from_dict():
    person = PersonNode.from_dict({
        "name": "ch1",
        "sex": "F",
        "mother": {"name": "f21"},
        "father": "m21",
        "status": 1,
        "affected": True,
    })
    assert person.mother == "f21"
    assert person.father == "m21"
    assert person.status == "1"
    assert person.extra == {"affected": True}
    assert person.has_parents


def test_person_to_dict_omits_unset_fields():
    person = PersonNode("ch1", "F", mother="f21", father="m21", proband=True, extra={"yob": 1990})
    assert person.to_dict() == {
        "name": "ch1",
        "sex": "F",
        "father": "m21",
        "mother": "f21",
        "proband": True,
        "status": "0",
        "yob": 1990,
    }


def test_copy_dataset_is_independent(trio):
    trio[2].extra["yob"] = 1990
    copied = copy_dataset(trio)
    copied[2].extra["yob"] = 2000
    copied[0].sex = "F"
    assert trio[2].extra["yob"] == 1990
    assert trio[0].sex == "M"


def test_make_id_avoids_taken():
    taken = {make_id() for _ in range(20)}
    name = make_id(4, taken=taken)
    assert len(name) == 4
    assert name not in taken


def test_hierarchy_navigation():
    root = HierarchyNode(ROOT, id=0)
    f, m = PersonNode("f21", "F"), PersonNode("m21", "M")
    union = HierarchyNode(UNION, UnionNode("u1", father=m, mother=f))
    child = HierarchyNode(PERSON, PersonNode("ch1", "F"))
    root.children = [union]
    union.children = [child]
    union.parent = root
    child.parent = union

    assert root.name == "hidden_root"
    assert union.hidden and union.is_union
    assert not child.hidden and child.is_person
    assert root.descendants() == [root, union, child]
    assert child.ancestors() == [child, union, root]
    assert root.flatten() == [child, union, root]
