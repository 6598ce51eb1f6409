"""NetworkX graph building and relationship queries over a pedigree dataset."""

import logging

import networkx as nx

from models import HierarchyNode, PersonNode

logger = logging.getLogger(__name__)

# Connectivity search is capped so malformed cyclic data cannot run away
MAX_CONNECTIVITY_PASSES = 200


def build_graph(dataset: list[PersonNode]) -> nx.DiGraph:
    """
    Build a NetworkX directed graph from the dataset.

    PARENT_OF edges go parent -> child and are only added for children with
    real parentage (not `noparents`). SPOUSE_OF edges go father -> mother for
    every pair that co-parents at least one record.
    """
    G = nx.DiGraph()
    names = set()
    for person in dataset:
        G.add_node(person.name, person=person)
        names.add(person.name)

    for person in dataset:
        if person.mother not in names or person.father not in names:
            continue
        G.add_edge(person.father, person.mother, relationship_type="SPOUSE_OF")
        if not person.noparents:
            G.add_edge(person.mother, person.name, relationship_type="PARENT_OF")
            G.add_edge(person.father, person.name, relationship_type="PARENT_OF")

    return G


def get_parent_graph(G: nx.DiGraph) -> nx.DiGraph:
    """Subgraph view holding only the PARENT_OF edges."""
    return nx.subgraph_view(
        G, filter_edge=lambda u, v: G.edges[u, v].get("relationship_type") == "PARENT_OF"
    )


# ============================================================================
# Lookups
# ============================================================================


def get_index(dataset: list[PersonNode], name: str | None) -> int:
    """Position of `name` in the dataset, or -1."""
    for i, person in enumerate(dataset):
        if person.name == name:
            return i
    return -1


def get_person(dataset: list[PersonNode], name: str | None) -> PersonNode | None:
    if not name:
        return None
    idx = get_index(dataset, name)
    return dataset[idx] if idx >= 0 else None


def get_proband_index(dataset: list[PersonNode]) -> int | None:
    for i, person in enumerate(dataset):
        if person.proband:
            return i
    return None


def get_proband(dataset: list[PersonNode]) -> PersonNode | None:
    idx = get_proband_index(dataset)
    return dataset[idx] if idx is not None else None


def set_proband(dataset: list[PersonNode], name: str, is_proband: bool = True):
    """Make `name` the only proband (or clear it)."""
    for person in dataset:
        person.proband = is_proband if person.name == name else False


# ============================================================================
# Relationships
# ============================================================================


def get_partners(dataset: list[PersonNode], person: PersonNode) -> list[PersonNode]:
    """
    Return everyone who co-parents at least one record with `person`.

    Records whose mother or father does not resolve are skipped. The result is
    de-duplicated and keeps dataset order of first appearance.
    """
    partners: list[PersonNode] = []
    for other in dataset:
        mother = get_person(dataset, other.mother)
        father = get_person(dataset, other.father)
        if mother is None or father is None:
            continue
        if mother.name == person.name and father not in partners:
            partners.append(father)
        if father.name == person.name and mother not in partners:
            partners.append(mother)
    return partners


def get_partner_names(dataset: list[PersonNode], person: PersonNode) -> list[str]:
    return [p.name for p in get_partners(dataset, person)]


def get_children(
    dataset: list[PersonNode],
    person: PersonNode,
    partner: PersonNode | None = None,
    sex: str | None = None,
) -> list[PersonNode]:
    """
    Return the children of `person`, optionally only those with `partner`.

    Records flagged `noparents` are structural placements and never count as
    children here.
    """
    children = []
    for p in dataset:
        if p.noparents or person.name not in (p.mother, p.father):
            continue
        if partner is not None and partner.name not in (p.mother, p.father):
            continue
        if sex is None or p.sex == sex:
            children.append(p)
    return children


def get_children_from_female(
    dataset: list[PersonNode], female: PersonNode, male: PersonNode | None = None
) -> list[PersonNode]:
    """
    Children owned by a female for tree building, optionally with one male.

    Mothers own the canonical child list so a pair's children are never
    counted twice. `noparents` records are included: they hang under the
    union for placement only.
    """
    if female.sex != "F":
        return []
    children = []
    for p in dataset:
        if p.mother != female.name:
            continue
        if male is not None and p.father != male.name:
            continue
        if p not in children:
            children.append(p)
    return children


def get_siblings(
    dataset: list[PersonNode], person: PersonNode | None, sex: str | None = None
) -> list[PersonNode]:
    """Full siblings (same mother and father) of `person`, excluding themselves."""
    if person is None or not person.mother or person.noparents:
        return []
    return [
        other
        for other in dataset
        if other.name != person.name
        and not other.noparents
        and other.mother == person.mother
        and other.father == person.father
        and (sex is None or other.sex == sex)
    ]


def get_all_siblings(
    dataset: list[PersonNode], person: PersonNode, sex: str | None = None
) -> list[PersonNode]:
    """Full, half and adopted siblings: anyone sharing either parent."""
    return [
        other
        for other in dataset
        if other.name != person.name
        and (other.mother == person.mother or other.father == person.father)
        and (sex is None or other.sex == sex)
    ]


def get_adopted_siblings(dataset: list[PersonNode], person: PersonNode) -> list[PersonNode]:
    """`noparents` records placed under the same parents as `person`."""
    return [
        other
        for other in dataset
        if other.name != person.name
        and other.noparents
        and other.mother == person.mother
        and other.father == person.father
    ]


def are_twins(a: PersonNode, b: PersonNode) -> bool:
    if not a.mztwin and a.dztwin:
        return a.dztwin == b.dztwin
    return a.mztwin is not None and a.mztwin == b.mztwin


def get_twins(dataset: list[PersonNode], person: PersonNode) -> list[PersonNode]:
    """Siblings that share the person's mz or dz twin token."""
    return [s for s in get_siblings(dataset, person) if are_twins(person, s)]


def ancestors(dataset: list[PersonNode], person: PersonNode | HierarchyNode) -> list[PersonNode]:
    """
    Return `person` followed by all of their ancestors.

    The walk follows PARENT_OF edges only, so it ends at founders and at
    `noparents` records.
    """
    if isinstance(person, HierarchyNode):
        person = person.data
    G = build_graph(dataset)
    if person.name not in G:
        return [person]
    found = nx.ancestors(get_parent_graph(G), person.name)
    return [person] + [p for p in dataset if p.name in found]


def consanguinity(
    node_a: HierarchyNode | None, node_b: HierarchyNode | None, dataset: list[PersonNode]
) -> bool:
    """
    Test if two partners should be drawn as consanguineous.

    Partners at different depths always count: this is a drawing convention
    for cross-generation partnerships, not a statement of blood relation.
    """
    if node_a is None or node_b is None:
        return False
    if node_a.depth != node_b.depth:
        return True

    names_a = {p.name for p in ancestors(dataset, node_a)}
    names_b = {p.name for p in ancestors(dataset, node_b)}
    return not names_a.isdisjoint(names_b)


def unconnected(dataset: list[PersonNode], max_passes: int = MAX_CONNECTIVITY_PASSES) -> list[str]:
    """
    Return the names of people not connected to the proband.

    Breadth-first search over parent/child and partner edges, starting at the
    proband (or the first record if there is none).
    """
    if not dataset:
        raise ValueError("empty pedigree data set")

    target = get_proband(dataset)
    if target is None:
        logger.warning("No proband defined, checking connectivity from %s", dataset[0].name)
        target = dataset[0]

    U = build_graph(dataset).to_undirected(as_view=True)
    reached = nx.single_source_shortest_path_length(U, target.name, cutoff=max_passes)
    return [p.name for p in dataset if p.name not in reached]


def get_depth(dataset: list[PersonNode], name: str) -> int:
    """Depth along the mother chain, founders (`top_level`) count as 2."""
    idx = get_index(dataset, name)
    depth = 1
    seen = set()
    while idx >= 0 and idx not in seen and (dataset[idx].mother or dataset[idx].top_level):
        seen.add(idx)
        idx = get_index(dataset, dataset[idx].mother)
        depth += 1
    return depth
