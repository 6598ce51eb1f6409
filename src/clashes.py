"""Partner link clash detection and connector routing."""

from dataclasses import dataclass, field
import logging

from config import LayoutConfig
from graph import consanguinity, get_partner_names
from models import HierarchyNode, PartnerLink, PersonNode

logger = logging.getLogger(__name__)

# Offset between the two strokes of a consanguineous link
CONSANGUINITY_SHIFT = 3
# Divorce break glyph position along the connector
DIVORCE_POSITION = 0.66

Point = tuple[float, float]


@dataclass
class PartnerPath:
    """Routed connector for one partner link, as data for a renderer."""

    female: str
    male: str
    d: str
    segments: list[tuple[Point, Point]] = field(default_factory=list)
    clashes: list[str] = field(default_factory=list)
    consanguineous: bool = False
    divorced: bool = False

    @property
    def detoured(self) -> bool:
        return bool(self.clashes)


def _fmt(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


class PathBuilder:
    """Accumulates an SVG-style path string and its straight segments."""

    def __init__(self):
        self.commands: list[str] = []
        self.segments: list[tuple[Point, Point]] = []
        self.pos: Point | None = None

    def move_to(self, x: float, y: float) -> "PathBuilder":
        self.commands.append(f"M{_fmt(x)},{_fmt(y)}")
        self.pos = (x, y)
        return self

    def line_to(self, x: float, y: float) -> "PathBuilder":
        self.commands.append(f"L{_fmt(x)},{_fmt(y)}")
        if self.pos is not None:
            self.segments.append((self.pos, (x, y)))
        self.pos = (x, y)
        return self

    @property
    def d(self) -> str:
        return " ".join(self.commands)


# ============================================================================
# Clash detection
# ============================================================================


def check_partner_link_clashes(
    nodes: list[HierarchyNode], link: PartnerLink
) -> list[HierarchyNode]:
    """Visible nodes on the female's row strictly between the two partners."""
    female, male = link.female, link.male
    if female is None or male is None:
        return []
    x1, x2 = sorted((female.x, male.x))
    dy = female.y
    return [n for n in nodes if not n.hidden and n.y == dy and x1 < n.x < x2]


def find_clashing_nodes(
    nodes: list[HierarchyNode], links: list[PartnerLink]
) -> list[HierarchyNode]:
    clashing: list[HierarchyNode] = []
    for link in links:
        for node in check_partner_link_clashes(nodes, link):
            if not any(node is c for c in clashing):
                clashing.append(node)
    return clashing


def raise_clashing_nodes(
    clashing: list[HierarchyNode],
    dataset: list[PersonNode],
    nodes: list[HierarchyNode],
    symbol_size: float,
) -> dict[str, float]:
    """
    Lift clashing nodes above the connector row.

    A node is raised by two symbol sizes when it has no partners or when one
    of its partners clashes too; otherwise the connector is routed around it.
    The first partner union of a raised node follows it to the same height.

    Returns:
        New y of every node that was moved, by name.
    """
    names = {n.name for n in clashing}
    raised: dict[str, float] = {}
    for node in clashing:
        partners = get_partner_names(dataset, node.data)
        if not partners or any(p in names for p in partners):
            node.y -= symbol_size * 2
            raised[node.name] = node.y
            if node.partner_unions:
                union = node.partner_unions[0]
                union.y = node.y
                raised[union.name] = union.y
    if raised:
        logger.debug("Raised %d nodes out of %d clashing", len(raised), len(nodes))
    return raised


# ============================================================================
# Routing
# ============================================================================


def clash_runs(clash: list[HierarchyNode], dx: float) -> list[list[HierarchyNode]]:
    """Group x-sorted clashing nodes whose detours would touch."""
    runs: list[list[HierarchyNode]] = []
    for node in sorted(clash, key=lambda n: n.x):
        if runs and node.x - runs[-1][-1].x <= 2 * dx:
            runs[-1].append(node)
        else:
            runs.append([node])
    return runs


def _detour(
    path: PathBuilder,
    runs: list[list[HierarchyNode]],
    dx: float,
    dy1: float,
    dy2: float,
    union: HierarchyNode | None,
    cshift: float,
):
    for run in runs:
        dx1 = run[0].x - dx - cshift
        dx2 = run[-1].x + dx + cshift
        if union is not None and dx1 < union.x < dx2:
            union.y = dy2
        path.line_to(dx1, dy1 - cshift)
        path.line_to(dx1, dy2 - cshift)
        path.line_to(dx2, dy2 - cshift)
        path.line_to(dx2, dy1 - cshift)


def _pair_union(link: PartnerLink) -> HierarchyNode | None:
    unions = link.female.partner_unions
    for union in unions:
        if union.data.father.name == link.male.name and union.data.mother.name == link.female.name:
            return union
    return unions[0] if unions else None


def route_partner_link(
    link: PartnerLink,
    nodes: list[HierarchyNode],
    dataset: list[PersonNode],
    config: LayoutConfig,
) -> PartnerPath:
    """
    Route the connector between two partners.

    The connector is a straight line on the female's row, with a rectangular
    detour over each run of clashing nodes. The pair's union node is moved to
    the connector height. Consanguineous partners get a double line (crossing
    diagonals across rows), and divorced partners without clashes get a
    break glyph.
    """
    female, male = link.female, link.male
    symbol = config.symbol_size
    related = consanguinity(female, male, dataset)
    divorced = bool(female.data.divorced) and female.data.divorced == male.name

    x1, x2 = sorted((female.x, male.x))
    dy1 = female.y
    dy2 = dy1
    dx = 0.0
    runs: list[list[HierarchyNode]] = []
    union = None

    clash = check_partner_link_clashes(nodes, link)
    if clash:
        dx = symbol / 2 + config.detour_padding
        dy2 = dy1 - symbol / 2 - config.detour_margin
        union = _pair_union(link)
        if union is not None:
            union.y = dy1
        runs = clash_runs(clash, dx)

    path = PathBuilder()
    if related and abs(female.y - male.y) > 0.1:
        left, right = (female, male) if female.x < male.x else (male, female)
        shift = CONSANGUINITY_SHIFT
        path.move_to(x1, left.y).line_to(x2, right.y - shift)
        path.move_to(x1, left.y - shift).line_to(x2, right.y)
    else:
        path.move_to(x1, dy1)
        _detour(path, runs, dx, dy1, dy2, union, 0)
        path.line_to(x2, dy1)
        if related:
            shift = CONSANGUINITY_SHIFT
            path.move_to(x1, dy1 - shift)
            _detour(path, runs, dx, dy1, dy2, union, shift)
            path.line_to(x2, dy1 - shift)
        if divorced and not clash:
            xm = x1 + (x2 - x1) * DIVORCE_POSITION
            path.move_to(xm + 6, dy1 - 6).line_to(xm - 6, dy1 + 6)
            path.move_to(xm + 10, dy1 - 6).line_to(xm - 2, dy1 + 6)

    return PartnerPath(
        female=female.name,
        male=male.name,
        d=path.d,
        segments=path.segments,
        clashes=[n.name for n in clash],
        consanguineous=related,
        divorced=divorced,
    )


def route_partner_links(
    links: list[PartnerLink],
    nodes: list[HierarchyNode],
    dataset: list[PersonNode],
    config: LayoutConfig,
) -> list[PartnerPath]:
    return [
        route_partner_link(link, nodes, dataset, config)
        for link in links
        if link.female is not None and link.male is not None
    ]
