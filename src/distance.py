"""Signed generational distance of every person from the proband."""

import logging

from graph import get_children, get_partners, get_person, get_proband, get_siblings
from models import PersonNode, ProbandDistance

logger = logging.getLogger(__name__)

FATHER_SIDE = -1
MOTHER_SIDE = 1


def compute_distances_from_proband(dataset: list[PersonNode]) -> dict[str, ProbandDistance]:
    """
    Compute the signed proband distance of everyone reachable from the proband.

    The father's side is negative and the mother's side positive. Partners
    share the person's magnitude, direct relatives (parents, siblings,
    children) are one further away. The walk only continues into relatives on
    the same side and never visits a person twice, so it terminates on
    consanguineous loops.

    Args:
        dataset: Person records, left unchanged.

    Returns:
        Mapping of person name to ProbandDistance. People that are not
        reached have no entry. Empty when there is no proband.
    """
    proband = get_proband(dataset)
    if proband is None:
        logger.warning("No proband defined, skipping proband distances")
        return {}

    table: dict[str, ProbandDistance] = {proband.name: ProbandDistance(0, 0)}
    visited: set[str] = set()

    father = get_person(dataset, proband.father)
    mother = get_person(dataset, proband.mother)
    if father is not None:
        table[father.name] = ProbandDistance(FATHER_SIDE, FATHER_SIDE)
    if mother is not None:
        table[mother.name] = ProbandDistance(MOTHER_SIDE, MOTHER_SIDE)

    def assign(person: PersonNode, sign: int) -> list[PersonNode]:
        # Annotate the unassigned neighbours of `person`, return the walk candidates
        d = abs(table[person.name].display)
        partners = get_partners(dataset, person)
        relatives = [
            r
            for r in [
                get_person(dataset, person.father),
                get_person(dataset, person.mother),
                *get_siblings(dataset, person),
                *get_children(dataset, person),
            ]
            if r is not None
        ]
        for partner in partners:
            if partner.name not in table:
                table[partner.name] = ProbandDistance(sign * d, sign * d)
        for relative in relatives:
            if relative.name not in table:
                table[relative.name] = ProbandDistance(sign * (d + 1), sign * (d + 1))
        return relatives + partners

    def walk(start: PersonNode, sign: int):
        # Depth-first, same visiting order as a recursive walk
        stack = [iter([start])]
        while stack:
            person = next(stack[-1], None)
            if person is None:
                stack.pop()
                continue
            if person.name in visited or table[person.name].real * sign <= 0:
                continue
            visited.add(person.name)
            stack.append(iter(assign(person, sign)))

    if father is not None:
        walk(father, FATHER_SIDE)
    if mother is not None:
        walk(mother, MOTHER_SIDE)

    logger.debug("Proband distances for %d of %d people", len(table), len(dataset))
    return table


def override_display_distance(
    distances: dict[str, ProbandDistance], name: str, display: int
) -> dict[str, ProbandDistance]:
    """Return a copy of `distances` with the display distance of `name` replaced."""
    if name not in distances:
        raise KeyError(f"No proband distance for {name}")
    updated = dict(distances)
    updated[name] = ProbandDistance(display, distances[name].real)
    return updated
