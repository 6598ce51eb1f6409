"""Dataset validation for pedigree data."""

import logging
from collections import defaultdict

import networkx as nx

from errors import PedigreeValidationError
from graph import get_index, get_siblings, unconnected
from models import PersonNode
from twins import TWIN_TOKENS

logger = logging.getLogger(__name__)


def _label(person: PersonNode) -> str:
    return f"{person.display_name or 'unnamed'} (IndivID: {person.name})"


def _check_parents(dataset: list[PersonNode], person: PersonNode):
    if not (person.mother or person.father):
        return
    label = _label(person)
    if not person.mother or not person.father:
        if person.noparents:
            return
        raise PedigreeValidationError(f"Missing parent for {label}")

    midx = get_index(dataset, person.mother)
    fidx = get_index(dataset, person.father)
    if midx == -1:
        raise PedigreeValidationError(
            f"The mother (IndivID: {person.mother}) of family member {label} "
            "is missing from the pedigree."
        )
    if fidx == -1:
        raise PedigreeValidationError(
            f"The father (IndivID: {person.father}) of family member {label} "
            "is missing from the pedigree."
        )
    if dataset[midx].sex != "F":
        raise PedigreeValidationError(
            f"The mother of family member {label} is not specified as female. "
            "All mothers in the pedigree must have sex specified as 'F'."
        )
    if dataset[fidx].sex != "M":
        raise PedigreeValidationError(
            f"The father of family member {label} is not specified as male. "
            "All fathers in the pedigree must have sex specified as 'M'."
        )


def _check_cycles(dataset: list[PersonNode]):
    # Only real parentage counts, `noparents` placements are not descent
    parent_graph = nx.DiGraph()
    for person in dataset:
        if person.noparents:
            continue
        for parent in (person.mother, person.father):
            if parent:
                parent_graph.add_edge(parent, person.name)

    try:
        cycle = nx.find_cycle(parent_graph, orientation="original")
    except nx.NetworkXNoCycle:
        return
    cycle_nodes = [edge[0] for edge in cycle]
    raise PedigreeValidationError(
        f"Cycle detected in parent-child relationships: {cycle_nodes}"
    )


def twin_warnings(dataset: list[PersonNode]) -> list[str]:
    """Report ambiguous twin data. Never raises."""
    warnings: list[str] = []
    groups: dict[tuple[str, str], list[PersonNode]] = defaultdict(list)

    for person in dataset:
        for twin_type in ("mztwin", "dztwin"):
            token = getattr(person, twin_type)
            if token is None:
                continue
            if token not in TWIN_TOKENS:
                warnings.append(f"Invalid {twin_type} token {token!r} for {_label(person)}")
                continue
            groups[(twin_type, token)].append(person)

    for (twin_type, token), members in groups.items():
        if len(members) == 1:
            warnings.append(
                f"{twin_type} token {token!r} is only held by {_label(members[0])}"
            )
            continue
        first = members[0]
        siblings = {s.name for s in get_siblings(dataset, first)}
        strangers = [m.name for m in members[1:] if m.name not in siblings]
        if strangers:
            warnings.append(
                f"{twin_type} token {token!r} is shared by non-siblings: "
                f"{[first.name] + strangers}"
            )
    return warnings


def validate_pedigree(dataset: list[PersonNode]) -> list[str]:
    """
    Validate a pedigree dataset before layout.

    Raises PedigreeValidationError for:
    - Missing or unresolvable parents
    - Parent sex mismatches
    - Missing or duplicate names
    - More than one family id or proband
    - Cycles in parent-child relationships

    Returns a list of warning messages (unconnected people, ambiguous twins).
    """
    unique_names: set[str] = set()
    famids: list[str] = []
    probands: list[str] = []

    for person in dataset:
        _check_parents(dataset, person)

        if not person.name:
            raise PedigreeValidationError(f"{_label(person)} has no IndivID.")
        if person.name in unique_names:
            raise PedigreeValidationError(
                f"IndivID for family member {_label(person)} is not unique."
            )
        unique_names.add(person.name)

        if person.famid and person.famid not in famids:
            famids.append(person.famid)
        if person.proband:
            probands.append(person.name)

    if len(famids) > 1:
        raise PedigreeValidationError(f"More than one family found: {', '.join(famids)}.")
    if len(probands) > 1:
        raise PedigreeValidationError(f"More than one proband found: {', '.join(probands)}.")

    _check_cycles(dataset)

    warnings: list[str] = []
    if dataset:
        uc = unconnected(dataset)
        if uc:
            warnings.append(f"Individuals unconnected to pedigree: {uc}")
    warnings.extend(twin_warnings(dataset))

    for w in warnings:
        logger.warning(w)
    return warnings
