"""
Dataset edits: add relatives, delete people and drag-reorder.

Every helper works on a copy of the dataset and validates it before
returning, so a failed edit never leaves a half-changed dataset behind.
Helpers that depend on the current drawing take the last PedigreeLayout.
"""

from dataclasses import dataclass, field
import logging

from errors import DeletionError, PedigreeError, PedigreeValidationError
from graph import (
    get_adopted_siblings,
    get_all_siblings,
    get_children,
    get_depth,
    get_index,
    get_partner_names,
    get_partners,
    get_person,
    unconnected,
)
from layout import get_nodes_at_depth
from models import HierarchyNode, PersonNode, copy_dataset, make_id
from pedigree import PedigreeLayout
from twins import TWIN_TYPES, check_twins, get_unique_twin_id, set_twins
from validation import validate_pedigree

logger = logging.getLogger(__name__)

# Upper bound for sibling ids when looking for the right-hand neighbour
MAX_SIBLING_ID = 10000


@dataclass
class DeleteResult:
    dataset: list[PersonNode]
    committed: bool = True
    needs_confirmation: bool = False
    unconnected: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)


def _require(dataset: list[PersonNode], name: str) -> PersonNode:
    person = get_person(dataset, name)
    if person is None:
        raise PedigreeError(f"No person named {name!r} in the pedigree")
    return person


def _require_node(layout: PedigreeLayout, name: str) -> HierarchyNode:
    node = layout.node(name)
    if node is None:
        raise PedigreeError(f"{name!r} is not in the current layout")
    return node


def _opposite_sex(person: PersonNode) -> str:
    if person.sex == "F":
        return "M"
    if person.sex == "M":
        return "F"
    raise PedigreeValidationError(
        f"Cannot add a partner for {person.name}: sex must be 'M' or 'F', got {person.sex!r}"
    )


def _check_twin_type(twin_type: str | None):
    if twin_type is not None and twin_type not in TWIN_TYPES:
        raise ValueError(f"Invalid twin type: {twin_type!r}")


def _new_person(dataset: list[PersonNode], sex: str, **kwargs) -> PersonNode:
    return PersonNode(name=make_id(4, taken=[p.name for p in dataset]), sex=sex, **kwargs)


def _insert_sibling(
    dataset: list[PersonNode],
    person: PersonNode,
    sex: str,
    add_lhs: bool = False,
    twin_type: str | None = None,
) -> PersonNode:
    newbie = _new_person(dataset, sex, famid=person.famid)
    if person.top_level:
        newbie.top_level = True
    else:
        newbie.mother = person.mother
        newbie.father = person.father

    if twin_type and not set_twins(dataset, person, newbie, twin_type):
        raise PedigreeError(f"No {twin_type} token left for {person.name}")

    idx = get_index(dataset, person.name)
    dataset.insert(idx if add_lhs else idx + 1, newbie)
    return newbie


def _validated(dataset: list[PersonNode]) -> list[PersonNode]:
    validate_pedigree(dataset)
    return dataset


# ============================================================================
# Additions
# ============================================================================


def add_sibling(
    dataset: list[PersonNode],
    name: str,
    sex: str,
    add_lhs: bool = False,
    twin_type: str | None = None,
) -> list[PersonNode]:
    """Add a sibling next to `name`, optionally as a twin."""
    _check_twin_type(twin_type)
    records = copy_dataset(dataset)
    _insert_sibling(records, _require(records, name), sex, add_lhs, twin_type)
    return _validated(records)


def add_child(
    dataset: list[PersonNode],
    name: str,
    sex: str,
    count: int = 1,
    twin_type: str | None = None,
) -> list[PersonNode]:
    """
    Add `count` children to `name`.

    The children go with the co-parent of the person's first child. A person
    without children first gets a new partner, placed as a married-in spouse.
    With `twin_type` all new children share a fresh twin token.
    """
    _check_twin_type(twin_type)
    records = copy_dataset(dataset)
    person = _require(records, name)

    children = get_children(records, person)
    if children:
        first = children[0]
        partner_name = first.mother if first.father == person.name else first.father
        idx = get_index(records, first.name)
    else:
        partner = _insert_sibling(records, person, _opposite_sex(person), add_lhs=person.sex == "F")
        partner.noparents = True
        partner_name = partner.name
        idx = get_index(records, person.name) + 1

    token = None
    if twin_type:
        token = get_unique_twin_id(records, twin_type)
        if token is None:
            raise PedigreeError(f"No {twin_type} token left")

    for i in range(count):
        child = _new_person(records, sex, famid=person.famid)
        if person.sex == "F":
            child.mother, child.father = person.name, partner_name
        else:
            child.mother, child.father = partner_name, person.name
        if token:
            setattr(child, twin_type, token)
        records.insert(idx + i, child)

    return _validated(records)


def add_partner(dataset: list[PersonNode], name: str) -> list[PersonNode]:
    """Add a married-in partner of opposite sex and one child of unknown sex."""
    records = copy_dataset(dataset)
    person = _require(records, name)
    partner = _insert_sibling(records, person, _opposite_sex(person), add_lhs=person.sex == "F")
    partner.noparents = True

    child = _new_person(records, "U", famid=person.famid)
    if person.sex == "F":
        child.mother, child.father = person.name, partner.name
    else:
        child.mother, child.father = partner.name, person.name
    idx = max(get_index(records, person.name), get_index(records, partner.name)) + 1
    records.insert(idx, child)
    return _validated(records)


def add_parents(dataset: list[PersonNode], name: str, layout: PedigreeLayout) -> list[PersonNode]:
    """
    Add a mother and father to `name`.

    A founder gets a new founder couple above every current founder, who all
    become their structural children. A married-in spouse gets a couple
    placed beside the parent generation of their partner, on the side the
    layout ids point to.

    Raises:
        PedigreeError: `name` already has parents or is not in the layout.
    """
    records = copy_dataset(dataset)
    person = _require(records, name)
    node = _require_node(layout, name)
    if person.has_parents and not person.noparents:
        raise PedigreeError(f"{name} already has parents")

    depth = node.depth
    partner_name = None
    children = get_children(records, person)
    if children:
        first = children[0]
        partner_name = first.father if first.mother == person.name else first.mother

    if depth == 1:
        mother = _new_person(records, "F", top_level=True, famid=person.famid)
        father = _new_person(records, "M", top_level=True, famid=person.famid)
        founders = [
            p
            for p in records
            if p.top_level or get_depth(records, p.name) == 2
        ]
        records[0:0] = [mother, father]
        for p in founders:
            p.top_level = False
            p.noparents = True
            p.mother = mother.name
            p.father = father.name
    else:
        if not (person.mother and person.father):
            raise PedigreeError(f"Cannot place parents for {name}: no structural parents")
        node_mother = _require_node(layout, person.mother)
        node_father = _require_node(layout, person.father)
        pid = layout.node(partner_name).id if partner_name and layout.node(partner_name) else None

        # Ids of the nearest siblings to the left and right
        rid = MAX_SIBLING_ID
        lid = node.id
        for sib in get_all_siblings(records, person):
            sib_node = layout.node(sib.name)
            if sib_node is None:
                continue
            if node.id < sib_node.id < rid:
                rid = sib_node.id
            if sib_node.id < lid:
                lid = sib_node.id
        add_lhs = lid >= node.id or (pid == lid and rid < MAX_SIBLING_ID)
        logger.debug("lid=%s rid=%s nid=%s add_lhs=%s", lid, rid, node.id, add_lhs)

        if (not add_lhs and node_father.id > node_mother.id) or (
            add_lhs and node_father.id < node_mother.id
        ):
            anchor = _require(records, person.father)
        else:
            anchor = _require(records, person.mother)

        father = _insert_sibling(records, anchor, "M", add_lhs)
        mother = _insert_sibling(records, anchor, "F", add_lhs)
        faidx = get_index(records, father.name)
        moidx = get_index(records, mother.name)
        if faidx > moidx:
            records[faidx], records[moidx] = records[moidx], records[faidx]

        for orphan in get_adopted_siblings(records, person):
            orphan_node = layout.node(orphan.name)
            if orphan_node is None:
                continue
            if (add_lhs or node.id < orphan_node.id) and orphan_node.id < rid:
                orphan.mother = mother.name
                orphan.father = father.name

        if depth == 2:
            mother.top_level = father.top_level = True
        elif depth > 2:
            mother.noparents = father.noparents = True

    person.mother = mother.name
    person.father = father.name
    person.noparents = False
    person.top_level = False

    if partner_name and node.partner_unions:
        partner = get_person(records, partner_name)
        if partner is not None and partner.noparents:
            partner.mother = mother.name
            partner.father = father.name

    return _validated(records)


# ============================================================================
# Deletion
# ============================================================================


def _remove(dataset: list[PersonNode], name: str) -> PersonNode | None:
    idx = get_index(dataset, name)
    if idx < 0:
        return None
    return dataset.pop(idx)


def _orphan(dataset: list[PersonNode], child: PersonNode):
    child.noparents = True
    partners = get_partners(dataset, child)
    partner = partners[0] if partners else None
    if partner is not None and partner.mother != child.mother:
        child.mother = partner.mother
        child.father = partner.father
    else:
        child.mother = child.father = None


def _release_dangling(dataset: list[PersonNode]):
    # People whose parents were deleted become founders
    names = {p.name for p in dataset}
    for p in dataset:
        if (p.mother and p.mother not in names) or (p.father and p.father not in names):
            p.mother = p.father = None
        if not p.has_parents and p.noparents:
            p.noparents = False
            p.top_level = True


def delete_person(
    dataset: list[PersonNode], name: str, layout: PedigreeLayout, confirm: bool = False
) -> DeleteResult:
    """
    Delete a person and tidy up what their removal leaves behind.

    Married-in and founder partners go with the person. The couple's children
    move to their own partner's parents or become founders. Parents of deleted
    people who are left without other children are removed as well.

    If the deletion splits a pedigree that was connected before, nothing is
    committed unless `confirm` is set: the result then carries the
    unconnected names and `needs_confirmation`.

    Raises:
        DeletionError: The remaining dataset would be invalid.
    """
    records = copy_dataset(dataset)
    person = _require(records, name)
    node = _require_node(layout, name)
    deletes: list[PersonNode] = []
    removed_self = False

    if node.partner_unions:
        for union in node.partner_unions:
            for partner in (union.data.mother, union.data.father):
                rec = get_person(records, partner.name)
                if rec is None:
                    continue
                if rec.name == name or rec.noparents or rec.top_level:
                    _remove(records, rec.name)
                    deletes.append(rec)
            for child in union.children or []:
                rec = get_person(records, child.name)
                if rec is not None:
                    _orphan(records, rec)
    else:
        _remove(records, person.name)
        removed_self = True

    # Remove ancestors left without descendants
    ancestors_removed: list[PersonNode] = []
    for gone in deletes:
        if get_all_siblings(records, gone):
            continue
        gone_node = layout.node(gone.name)
        for ancestor in gone_node.ancestors() if gone_node else []:
            if ancestor.is_union:
                for parent in (ancestor.data.mother, ancestor.data.father):
                    removed = _remove(records, parent.name)
                    if removed is not None:
                        ancestors_removed.append(removed)

    _release_dangling(records)
    check_twins(records)

    if not records:
        raise DeletionError(f"Deleting {name} would leave an empty pedigree")
    try:
        validate_pedigree(records)
    except PedigreeValidationError as err:
        raise DeletionError(f"Deletion of {name} is disallowed: {err}") from err

    deleted = [d.name for d in deletes + ancestors_removed]
    if removed_self:
        deleted.insert(0, name)
    uc = unconnected(records)
    if uc and not confirm and not unconnected(dataset):
        logger.warning("Deleting %s would split the pedigree: %s", name, uc)
        return DeleteResult(
            dataset=dataset,
            committed=False,
            needs_confirmation=True,
            unconnected=uc,
            deleted=deleted,
        )
    return DeleteResult(dataset=records, unconnected=uc, deleted=deleted)


# ============================================================================
# Drag reorder
# ============================================================================


def move_person(
    dataset: list[PersonNode], name: str, layout: PedigreeLayout, new_x: float
) -> list[PersonNode]:
    """
    Reorder `name` in the dataset after a horizontal drag to `new_x`.

    The person (and their partner, when they have exactly one) is moved next
    to the nearest node on the side they were dragged towards. Returns an
    unchanged copy when there is no neighbour in that direction.
    """
    records = copy_dataset(dataset)
    person = _require(records, name)
    node = _require_node(layout, name)

    partners = get_partner_names(records, person)
    partner_name = partners[0] if len(partners) == 1 else None

    left = right = None
    for other in get_nodes_at_depth(layout.nodes, node.depth, exclude=[name]):
        if other.x < new_x and (left is None or other.x > left.x):
            left = other
        elif other.x > new_x and (right is None or other.x < right.x):
            right = other

    adjacent = left if new_x > node.x else right
    if adjacent is None:
        return records

    adj_idx = get_index(records, adjacent.name)
    idx = get_index(records, name)
    records.insert(adj_idx, records.pop(idx))
    if partner_name and partner_name != adjacent.name:
        records.insert(adj_idx, records.pop(get_index(records, partner_name)))
    return _validated(records)
