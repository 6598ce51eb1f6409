"""Conversion of the flat pedigree dataset into a rooted layout hierarchy."""

from collections import Counter
from dataclasses import replace
import logging
from typing import Callable, TypeVar

from errors import TreeStructureError
from graph import get_children_from_female, get_depth, get_index, get_partners
from models import (
    PERSON,
    ROOT,
    UNION,
    HierarchyNode,
    PartnerLink,
    PersonNode,
    ProbandDistance,
    UnionNode,
    make_id,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============================================================================
# Top level grouping
# ============================================================================


def group_top_level(dataset: list[PersonNode]) -> list[PersonNode]:
    """
    Move founders to the front of the dataset, each followed by their partners.

    Records at mother-chain depth 2 count as founders too. Partners are only
    pulled up when they have no parent references of their own. Changed
    records are copies; the input list and its records are not mutated.
    """
    top_names = {
        p.name for p in dataset if p.top_level or get_depth(dataset, p.name) == 2
    }

    ordered: list[str] = []
    for person in dataset:
        if person.name not in top_names or person.name in ordered:
            continue
        ordered.append(person.name)
        for partner in get_partners(dataset, person):
            if partner.name not in ordered and not partner.has_parents:
                ordered.append(partner.name)

    flagged = set(ordered)
    records = {
        p.name: (replace(p, top_level=True) if p.name in flagged and not p.top_level else p)
        for p in dataset
    }
    rest = [records[p.name] for p in dataset if p.name not in flagged]
    return [records[name] for name in ordered] + rest


# ============================================================================
# Ordering helpers
# ============================================================================


def middle_balanced_sort(items: list[T], key: Callable[[T], float]) -> list[T]:
    """
    Order items so the smallest |key| sits in the middle.

    Items are sorted by ascending |key|. The first goes to index len//2, the
    rest alternate left then right of it, growing outwards. Two items are
    simply sorted by their signed key.
    """
    if len(items) <= 1:
        return list(items)
    if len(items) == 2:
        return sorted(items, key=key)

    ordered = sorted(items, key=lambda item: abs(key(item)))
    result: list = [None] * len(ordered)
    middle = len(ordered) // 2
    result[middle] = ordered[0]

    offset = 1
    left = True
    for item in ordered[1:]:
        if left:
            result[middle - offset] = item
            left = False
        else:
            result[middle + offset] = item
            left = True
            offset += 1
    return result


def _same_twins(a: HierarchyNode, b: HierarchyNode) -> bool:
    if not (a.is_person and b.is_person):
        return False
    if a.data.mztwin and a.data.mztwin == b.data.mztwin:
        return True
    return bool(a.data.dztwin) and a.data.dztwin == b.data.dztwin


def sort_twins(children: list[HierarchyNode]):
    """Stable in-place grouping: co-twins follow the first of their group."""
    grouped: list[HierarchyNode] = []
    for child in children:
        if any(child is g for g in grouped):
            continue
        grouped.append(child)
        grouped.extend(
            c for c in children if c is not child and _same_twins(child, c)
            and not any(c is g for g in grouped)
        )
    children[:] = grouped


def _twin_block(children: list[HierarchyNode], members: list[HierarchyNode]) -> list[HierarchyNode]:
    """
    Lay out one twin group with the couples its members belong to.

    The first twin's couples go on its left and the other twins' couples on
    their right, so the twins themselves stay next to each other.
    """
    names = {m.name for m in members}
    by_name = {c.name: c for c in children if c.is_person}
    block: list[HierarchyNode] = []
    for i, member in enumerate(members):
        couple: list[HierarchyNode] = []
        for union in children:
            if not union.is_union or any(union is b for b in block):
                continue
            partners = (union.data.father.name, union.data.mother.name)
            if member.name not in partners:
                continue
            couple.append(union)
            for name in partners:
                spouse = by_name.get(name)
                if (
                    spouse is not None
                    and name not in names
                    and not any(spouse is b for b in block + couple)
                ):
                    couple.append(spouse)
        if i == 0:
            block.extend(reversed(couple))
            block.append(member)
        else:
            block.append(member)
            block.extend(couple)
    return block


def order_children(children: list[HierarchyNode]) -> list[HierarchyNode]:
    """
    Sort by (id, attachment order), then pull each twin group together.

    A twin group, with its members' couples, takes the place of whichever
    of its nodes sorts first.
    """
    ordered = sorted(children, key=lambda c: c.sort_key)
    by_attachment = sorted(children, key=lambda c: c.order)
    placed: list[HierarchyNode] = []
    for child in by_attachment:
        if not child.is_person or not child.data.twin_token:
            continue
        if any(child is p for p in placed):
            continue
        members = [child] + [
            c for c in by_attachment if c is not child and _same_twins(child, c)
        ]
        if len(members) < 2:
            continue
        block = [
            b for b in _twin_block(children, members) if not any(b is p for p in placed)
        ]
        start = min(next(i for i, c in enumerate(ordered) if c is b) for b in block)
        rest = [c for c in ordered if not any(c is b for b in block)]
        ordered = rest[:start] + block + rest[start:]
        placed.extend(block)
    return ordered


def grandparents_index(dataset: list[PersonNode], female: str, male: str) -> tuple[int, int]:
    """
    Walk both partners' maternal lines in step until one of them ends.

    Returns the dataset indices reached as (female side, male side). The walk
    stops at founders and at `noparents` records.
    """
    midx = get_index(dataset, female)
    fidx = get_index(dataset, male)
    seen = set()
    while (
        midx >= 0
        and fidx >= 0
        and (midx, fidx) not in seen
        and dataset[midx].mother
        and dataset[fidx].mother
        and not dataset[midx].noparents
        and not dataset[fidx].noparents
    ):
        seen.add((midx, fidx))
        midx = get_index(dataset, dataset[midx].mother)
        fidx = get_index(dataset, dataset[fidx].mother)
    return midx, fidx


# ============================================================================
# Builder
# ============================================================================


class TreeBuilder:
    """
    Builds the hierarchy from one dataset snapshot.

    Person nodes are created once per record and reused wherever the record
    is attached again, so each person is a single node even when the
    relational graph has loops. Ids come from a running counter multiplied by
    the signed display distance. Children are sorted by (id, attachment
    order), with each twin group moved to the place of its first member.
    """

    def __init__(self, dataset: list[PersonNode], distances: dict[str, ProbandDistance]):
        self.dataset = dataset
        self.distances = distances
        self.nodes: dict[str, HierarchyNode] = {}
        self.counter = 1
        self.partner_links: list[PartnerLink] = []
        self.union_names: set[str] = set()
        self.names = {p.name for p in dataset}
        self.root = HierarchyNode(ROOT, id=0)

    def person_node(self, person: PersonNode) -> HierarchyNode:
        node = self.nodes.get(person.name)
        if node is None:
            dist = self.distances.get(person.name)
            node = HierarchyNode(
                PERSON,
                person,
                display_proband_distance=dist.display if dist else None,
                real_proband_distance=dist.real if dist else None,
            )
            self.nodes[person.name] = node
        return node

    def next_id(self, distance: float) -> float:
        value = self.counter * distance
        self.counter += 1
        return value

    def set_children_id(self, children: list[HierarchyNode]):
        sort_twins(children)
        for child in children:
            if child.id is None:
                child.id = self.next_id(child.display_proband_distance or 1)

    def couple_id(self, node: HierarchyNode, distance: float) -> float:
        # twins keep the id they were given with their group
        if node.id is not None and node.data.twin_token:
            return node.id
        return self.next_id(distance)

    def _real(self, node: HierarchyNode) -> int:
        return node.real_proband_distance or 0

    def _current_nodes(self) -> dict[str, HierarchyNode]:
        return {n.name: n for n in self.root.flatten() if n.is_person}

    def find_pairs(self, ref: HierarchyNode) -> list[tuple[HierarchyNode, HierarchyNode]]:
        """Partner pairs among the unplaced children of `ref` whose partners are both in the tree."""
        current = self._current_nodes()
        pairs: list[tuple[HierarchyNode, HierarchyNode]] = []
        for child in ref.children:
            if child.id is not None or not child.is_person:
                continue
            for person in self.dataset:
                if child.name not in (person.mother, person.father):
                    continue
                female = current.get(person.mother)
                male = current.get(person.father)
                if female is None or male is None:
                    logger.debug("Skipping half-placed pair %s x %s", person.mother, person.father)
                    continue
                if not any(f is female and m is male for f, m in pairs):
                    pairs.append((female, male))
        return pairs

    def balance(self, pairs):
        def pair_distance(pair) -> int:
            return self._real(pair[0]) + self._real(pair[1])

        father_side = [p for p in pairs if pair_distance(p) < 0]
        unplaced = [p for p in pairs if pair_distance(p) == 0]
        mother_side = [p for p in pairs if pair_distance(p) > 0]
        return (
            middle_balanced_sort(father_side, pair_distance)
            + unplaced
            + middle_balanced_sort(mother_side, pair_distance)
        )

    def add_union(self, ref: HierarchyNode, female: HierarchyNode, male: HierarchyNode):
        female.children = []
        name = make_id(4, taken=self.names | self.union_names)
        self.union_names.add(name)
        union = HierarchyNode(
            UNION,
            UnionNode(name, father=male.data, mother=female.data, famid=female.data.famid),
            children=[
                self.person_node(p)
                for p in get_children_from_female(self.dataset, female.data, male.data)
            ],
        )

        if female.id is None and male.id is None:
            self.set_children_id(ref.children)

        female_distance = female.display_proband_distance or 1
        male_distance = male.display_proband_distance or 1
        # zero for a couple straddling the proband, which keeps the union between them
        union_distance = (female_distance + male_distance) / 2

        midx, fidx = grandparents_index(self.dataset, female.name, male.name)
        if fidx < midx:
            male.id = self.couple_id(male, male_distance)
            union.id = self.next_id(union_distance)
            female.id = self.couple_id(female, female_distance)
        else:
            female.id = self.couple_id(female, female_distance)
            union.id = self.next_id(union_distance)
            male.id = self.couple_id(male, male_distance)

        female.partner_unions.append(union)
        male.partner_unions.append(union)
        ref.children.append(union)

    def build(self, ref: HierarchyNode, top: bool = False):
        if ref.children is None:
            if ref.is_person:
                ref.children = [
                    self.person_node(p) for p in get_children_from_female(self.dataset, ref.data)
                ]
            else:
                ref.children = []

        pairs = self.find_pairs(ref)
        if top:
            pairs = self.balance(pairs)

        for female, male in pairs:
            self.add_union(ref, female, male)
        self.partner_links.extend(PartnerLink(female, male) for female, male in pairs)

        self.set_children_id(ref.children)
        for child in ref.children:
            self.build(child)

    def finalize(self):
        """Set parent links, depths and the child order (see order_children)."""
        stack = [self.root]
        self.root.parent = None
        self.root.depth = 0
        seen: set[int] = set()
        while stack:
            node = stack.pop()
            if id(node) in seen:
                raise TreeStructureError(f"{node.name} is attached to the tree more than once")
            seen.add(id(node))
            if node.children is None:
                node.children = []
            for i, child in enumerate(node.children):
                child.order = i
                child.parent = node
                child.depth = node.depth + 1
            node.children[:] = order_children(node.children)
            stack.extend(node.children)

    def run(self) -> tuple[HierarchyNode, list[PartnerLink]]:
        self.root.children = [self.person_node(p) for p in self.dataset if p.top_level]
        self.build(self.root, top=True)
        self.finalize()
        logger.debug(
            "Built tree with %d nodes and %d partner links",
            len(self.root.flatten()),
            len(self.partner_links),
        )
        return self.root, self.partner_links


def build_tree(
    dataset: list[PersonNode], distances: dict[str, ProbandDistance]
) -> tuple[HierarchyNode, list[PartnerLink]]:
    """
    Build the layout hierarchy.

    Args:
        dataset: Records, founders first (see group_top_level).
        distances: Proband distance table for this dataset.

    Returns:
        The synthetic root node and the partner links in build order.
    """
    return TreeBuilder(dataset, distances).run()


def flatten(root: HierarchyNode) -> list[HierarchyNode]:
    return root.flatten()


def check_tree(root: HierarchyNode, dataset: list[PersonNode]):
    """Raise TreeStructureError unless every visible record is in the tree exactly once."""
    counts = Counter(n.name for n in root.flatten() if n.is_person)
    missing = [p.name for p in dataset if not p.hidden and counts[p.name] == 0]
    repeated = [p.name for p in dataset if counts[p.name] > 1]
    if missing or repeated:
        raise TreeStructureError(
            "Number of visible nodes different to number in the dataset "
            f"(missing: {missing}, repeated: {repeated})"
        )
