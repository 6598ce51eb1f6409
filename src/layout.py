"""Post-processing of tidy tree coordinates: union centring and overlap removal."""

import logging
from typing import Iterable

from models import HierarchyNode

logger = logging.getLogger(__name__)


def horizontal_overlap(
    nodes: Iterable[HierarchyNode],
    x: float,
    depth: int,
    exclude: Iterable[str],
    symbol_size: float,
    tolerance: float = 1.0,
) -> bool:
    """
    Test if position `x` at `depth` is too close to a visible node.

    Too close means strictly less than `symbol_size * tolerance` apart, so a
    gap of exactly one symbol is allowed. Nodes named in `exclude` are ignored.
    """
    exclude = set(exclude)
    for node in nodes:
        if node.depth != depth or node.hidden or node.name in exclude:
            continue
        if abs(x - node.x) < symbol_size * tolerance:
            return True
    return False


def nodes_overlap(
    node: HierarchyNode,
    diff: float,
    nodes: list[HierarchyNode],
    symbol_size: float,
    tolerance: float = 1.0,
) -> bool:
    """Test if moving every descendant of `node` by -diff would overlap a node outside its subtree."""
    descendants = node.descendants()
    names = {d.name for d in descendants}
    for descendant in descendants:
        if descendant is node:
            continue
        if horizontal_overlap(
            nodes, descendant.x - diff, descendant.depth, names, symbol_size, tolerance
        ):
            return True
    return False


def get_nodes_at_depth(
    nodes: Iterable[HierarchyNode], depth: int, exclude: Iterable[str] = ()
) -> list[HierarchyNode]:
    """Visible nodes at `depth` sorted by x."""
    exclude = set(exclude)
    return sorted(
        (n for n in nodes if n.depth == depth and not n.hidden and n.name not in exclude),
        key=lambda n: n.x,
    )


def adjust_nodes_coordinates(root: HierarchyNode, symbol_size: float, tolerance: float = 1.0):
    """
    Centre union nodes between partners and remove kinks from child links.

    Works children first. Each union is moved to the middle of its partners
    when that spot is free, and its children follow:

    - a single visible child is moved under the union if its spot is free
    - with one visible and one hidden child, the visible one is moved if its
      spot is free and it does not pass its hidden sibling
    - otherwise the whole subtree follows the union when nothing overlaps

    A union that stays outside its partners' span is snapped to the middle.
    """
    nodes = root.descendants()
    by_name = {n.name: n for n in nodes}

    def overlap(x: float, depth: int, exclude: Iterable[str]) -> bool:
        return horizontal_overlap(nodes, x, depth, exclude, symbol_size, tolerance)

    def adjust(node: HierarchyNode):
        for child in node.children or []:
            adjust(child)
        if not node.is_union:
            return

        father = by_name.get(node.data.father.name)
        mother = by_name.get(node.data.mother.name)
        if father is None or mother is None:
            return

        x_middle = (father.x + mother.x) / 2
        diff = node.x - x_middle
        children = node.children or []

        if not overlap(x_middle, node.depth, [node.name]):
            node.x = x_middle
            hidden = [c for c in children if c.hidden]
            if len(children) == 2 and len(hidden) == 1:
                hidden_child = hidden[0]
                child = children[0] if children[1] is hidden_child else children[1]
                towards = (child.x < hidden_child.x and x_middle < hidden_child.x) or (
                    child.x > hidden_child.x and x_middle > hidden_child.x
                )
                if towards and not overlap(x_middle, child.depth, [child.name]):
                    child.x = x_middle
            elif len(children) == 1 and not children[0].hidden:
                if not overlap(x_middle, children[0].depth, [children[0].name]):
                    children[0].x = x_middle
            elif diff != 0 and not nodes_overlap(node, diff, nodes, symbol_size, tolerance):
                if len(children) == 1:
                    children[0].x = x_middle
                else:
                    descendants = node.descendants()
                    logger.debug(
                        "Adjusting %s, %d descendants, diff=%.2f",
                        node.name,
                        len(descendants),
                        diff,
                    )
                    for descendant in descendants:
                        if descendant is not node:
                            descendant.x -= diff
        elif min(father.x, mother.x) > node.x or node.x > max(father.x, mother.x):
            node.x = x_middle

    adjust(root)
