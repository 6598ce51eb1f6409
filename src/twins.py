"""Twin group bookkeeping."""

import logging

from models import PersonNode

logger = logging.getLogger(__name__)

# At most ten twin groups of each type per pedigree
TWIN_TOKENS = "123456789A"
TWIN_TYPES = ("mztwin", "dztwin")


def _check_type(twin_type: str):
    if twin_type not in TWIN_TYPES:
        raise ValueError(f"Unknown twin type: {twin_type!r}")


def get_unique_twin_id(dataset: list[PersonNode], twin_type: str) -> str | None:
    """First token not yet used for `twin_type`, or None when all are taken."""
    _check_type(twin_type)
    used = {getattr(p, twin_type) for p in dataset}
    for token in TWIN_TOKENS:
        if token not in used:
            return token
    return None


def _copy_vitals(src: PersonNode, dst: PersonNode):
    if src.extra.get("yob"):
        dst.extra["yob"] = src.extra["yob"]
    if src.extra.get("age") and src.status == "0":
        dst.extra["age"] = src.extra["age"]


def set_twins(dataset: list[PersonNode], d1: PersonNode, d2: PersonNode, twin_type: str) -> bool:
    """
    Make `d2` a twin of `d1`.

    `d1` keeps its token if it has one, otherwise a fresh token is taken.
    Year of birth (and age, when alive) is copied from `d1` to `d2`.
    Returns False when every token is already in use.
    """
    _check_type(twin_type)
    if not getattr(d1, twin_type):
        token = get_unique_twin_id(dataset, twin_type)
        if token is None:
            logger.warning("No %s token left for %s", twin_type, d1.name)
            return False
        setattr(d1, twin_type, token)
    setattr(d2, twin_type, getattr(d1, twin_type))
    _copy_vitals(d1, d2)
    return True


def sync_twins(dataset: list[PersonNode], d1: PersonNode):
    """Copy shared attributes from `d1` to its co-twins (sex only for mz twins)."""
    if not d1.twin_token:
        return
    twin_type = "mztwin" if d1.mztwin else "dztwin"
    token = getattr(d1, twin_type)
    for d2 in dataset:
        if d2.name == d1.name or getattr(d2, twin_type) != token:
            continue
        if twin_type == "mztwin":
            d2.sex = d1.sex
        _copy_vitals(d1, d2)


def check_twins(dataset: list[PersonNode]):
    """Drop twin tokens that are held by a single person."""
    for twin_type in TWIN_TYPES:
        counts: dict[str, int] = {}
        for p in dataset:
            token = getattr(p, twin_type)
            if token:
                counts[token] = counts.get(token, 0) + 1
        for p in dataset:
            token = getattr(p, twin_type)
            if token and counts[token] < 2:
                logger.debug("Removing lone %s token %s from %s", twin_type, token, p.name)
                setattr(p, twin_type, None)
