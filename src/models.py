"""Data classes for pedigree records and the layout hierarchy."""

from dataclasses import dataclass, field, fields, replace
import random
import string

SEXES = ("M", "F", "U")

# Hierarchy node kinds
ROOT = "root"
PERSON = "person"
UNION = "union"


@dataclass
class PersonNode:
    name: str
    sex: str = "U"  # M, F or U
    father: str | None = None
    mother: str | None = None
    famid: str | None = None
    display_name: str = ""
    top_level: bool = False
    noparents: bool = False  # parents intentionally unspecified
    proband: bool = False
    hidden: bool = False
    mztwin: str | None = None
    dztwin: str | None = None
    divorced: str | None = None  # name of the divorced partner
    adopted_in: bool = False
    adopted_out: bool = False
    status: str = "0"  # 0 = alive, 1 = deceased
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, record: dict) -> "PersonNode":
        """Build a person from an object literal; unknown keys are kept in `extra`."""
        known = {f.name for f in fields(cls)} - {"extra"}
        kwargs = {k: v for k, v in record.items() if k in known}
        for key in ("father", "mother"):
            # Parents may arrive as nested records rather than names
            if isinstance(kwargs.get(key), dict):
                kwargs[key] = kwargs[key].get("name")
        if "status" in kwargs:
            kwargs["status"] = str(kwargs["status"])
        extra = {k: v for k, v in record.items() if k not in known}
        return cls(extra=extra, **kwargs)

    def to_dict(self) -> dict:
        """Convert back to an object literal, omitting unset fields."""
        record: dict = {"name": self.name, "sex": self.sex}
        for f in fields(self):
            if f.name in ("name", "sex", "extra"):
                continue
            value = getattr(self, f.name)
            if value is None or value is False or (f.name == "display_name" and not value):
                continue
            record[f.name] = value
        record.update(self.extra)
        return record

    @property
    def has_parents(self) -> bool:
        return self.mother is not None or self.father is not None

    @property
    def twin_token(self) -> str | None:
        return self.mztwin or self.dztwin


@dataclass
class UnionNode:
    """Synthetic node standing for one partner pair; parent of the pair's children."""

    name: str
    father: PersonNode
    mother: PersonNode
    famid: str | None = None
    hidden: bool = True


@dataclass(frozen=True)
class ProbandDistance:
    display: int
    real: int


@dataclass(eq=False)
class HierarchyNode:
    """
    A node of the layout tree.

    `kind` tags what `data` holds: the synthetic root (no data), a person or a
    partner union. Nodes compare by identity.
    """

    kind: str
    data: PersonNode | UnionNode | None = None
    id: float | None = None
    depth: int = 0
    x: float = 0.0
    y: float = 0.0
    parent: "HierarchyNode | None" = None
    children: "list[HierarchyNode] | None" = None
    partner_unions: "list[HierarchyNode]" = field(default_factory=list)
    display_proband_distance: int | None = None
    real_proband_distance: int | None = None
    order: int = 0  # attachment order, second sort key after `id`

    def __repr__(self) -> str:
        return (
            f"HierarchyNode({self.kind} {self.name!r}, id={self.id}, depth={self.depth}, "
            f"x={self.x:.1f}, y={self.y:.1f})"
        )

    @property
    def name(self) -> str:
        return self.data.name if self.data is not None else "hidden_root"

    @property
    def is_union(self) -> bool:
        return self.kind == UNION

    @property
    def is_person(self) -> bool:
        return self.kind == PERSON

    @property
    def hidden(self) -> bool:
        return self.kind != PERSON or self.data.hidden

    @property
    def sort_key(self) -> tuple[float, int]:
        return (self.id if self.id is not None else 0, self.order)

    def descendants(self) -> "list[HierarchyNode]":
        """Return this node and all of its descendants, breadth-first."""
        nodes = [self]
        i = 0
        while i < len(nodes):
            nodes.extend(nodes[i].children or [])
            i += 1
        return nodes

    def ancestors(self) -> "list[HierarchyNode]":
        """Return this node followed by its parents up to the root."""
        chain = []
        node = self
        while node is not None:
            chain.append(node)
            node = node.parent
        return chain

    def flatten(self) -> "list[HierarchyNode]":
        """Return the subtree in post-order (children before parents)."""
        flat: list[HierarchyNode] = []

        def recurse(node: HierarchyNode):
            for child in node.children or []:
                recurse(child)
            flat.append(node)

        recurse(self)
        return flat


@dataclass
class PartnerLink:
    female: HierarchyNode
    male: HierarchyNode


def load_dataset(records: list[dict]) -> list[PersonNode]:
    """Convert a list of object literals into person records."""
    return [PersonNode.from_dict(r) for r in records]


def copy_dataset(dataset: list[PersonNode]) -> list[PersonNode]:
    """Deep enough copy for edits: new records, new `extra` dicts."""
    return [replace(p, extra=dict(p.extra)) for p in dataset]


def make_id(length: int = 4, taken=()) -> str:
    """Random letter id that is not in `taken`."""
    taken = set(taken)
    while True:
        text = "".join(random.choice(string.ascii_letters) for _ in range(length))
        if text not in taken:
            return text
