"""Full layout pipeline and the per-diagram layout context."""

from dataclasses import dataclass, field
import logging

from clashes import PartnerPath, find_clashing_nodes, raise_clashing_nodes, route_partner_links
from config import LayoutConfig
from distance import compute_distances_from_proband
from errors import PedigreeValidationError
from layout import adjust_nodes_coordinates
from models import HierarchyNode, PartnerLink, PersonNode, ProbandDistance, copy_dataset
from tidy import make_separation, tidy_tree, tree_dimensions
from tree import build_tree, check_tree, flatten, group_top_level
from validation import validate_pedigree

logger = logging.getLogger(__name__)


@dataclass
class PedigreeLayout:
    dataset: list[PersonNode]  # working copy, founders first
    root: HierarchyNode
    nodes: list[HierarchyNode]
    partner_links: list[PartnerLink]
    distances: dict[str, ProbandDistance]
    clashing: list[HierarchyNode] = field(default_factory=list)
    raised: dict[str, float] = field(default_factory=dict)
    paths: list[PartnerPath] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def node(self, name: str) -> HierarchyNode | None:
        for n in self.nodes:
            if n.name == name:
                return n
        return None

    @property
    def person_nodes(self) -> list[HierarchyNode]:
        return [n for n in self.nodes if n.is_person]


def layout_pedigree(dataset: list[PersonNode], config: LayoutConfig | None = None) -> PedigreeLayout:
    """
    Lay out a pedigree.

    Steps: validate, group founders, proband distances, build the tree,
    tidy layout, structure check, coordinate adjustment, clash handling and
    partner link routing. The input records are never modified.

    Args:
        dataset: Person records.
        config: Layout parameters, defaults when omitted.

    Returns:
        The finished PedigreeLayout.

    Raises:
        PedigreeValidationError: The dataset is invalid or empty.
        TreeStructureError: The built tree does not hold every record once.
    """
    config = config or LayoutConfig()
    records = copy_dataset(dataset)
    if not records:
        raise PedigreeValidationError("Empty pedigree dataset")

    warnings = validate_pedigree(records) if config.validate else []
    records = group_top_level(records)
    logger.info("Laying out %d people", len(records))

    distances = compute_distances_from_proband(records)
    root, links = build_tree(records, distances)

    separation = make_separation(config)
    if config.fit_to_size:
        tidy_tree(root, separation, size=tree_dimensions(records, config))
    else:
        dx = config.symbol_size * config.node_separation
        tidy_tree(root, separation, node_size=(dx, config.row_height))

    check_tree(root, records)
    adjust_nodes_coordinates(root, config.symbol_size, config.overlap_tolerance)

    nodes = flatten(root)
    clashing = find_clashing_nodes(nodes, links)
    if clashing:
        logger.info("Clashing nodes: %s", [n.name for n in clashing])
    raised = raise_clashing_nodes(clashing, records, nodes, config.symbol_size)
    paths = route_partner_links(links, nodes, records, config)

    if config.debug:
        for n in nodes:
            logger.debug("%r", n)

    return PedigreeLayout(
        dataset=records,
        root=root,
        nodes=nodes,
        partner_links=links,
        distances=distances,
        clashing=clashing,
        raised=raised,
        paths=paths,
        warnings=warnings,
    )


class PedigreeContext:
    """
    Caller-owned store of the latest layout of each diagram instance.

    Every structural edit is followed by a fresh `build`; nothing is patched
    incrementally.
    """

    def __init__(self, config: LayoutConfig | None = None):
        self.config = config or LayoutConfig()
        self._layouts: dict[str, PedigreeLayout] = {}

    def __contains__(self, instance_id: str) -> bool:
        return instance_id in self._layouts

    def build(
        self, instance_id: str, dataset: list[PersonNode], config: LayoutConfig | None = None
    ) -> PedigreeLayout:
        result = layout_pedigree(dataset, config or self.config)
        self._layouts[instance_id] = result
        return result

    def current(self, instance_id: str) -> PedigreeLayout:
        try:
            return self._layouts[instance_id]
        except KeyError:
            raise KeyError(f"No layout built for {instance_id!r}") from None

    def node(self, instance_id: str, name: str) -> HierarchyNode | None:
        return self.current(instance_id).node(name)

    def discard(self, instance_id: str):
        self._layouts.pop(instance_id, None)
