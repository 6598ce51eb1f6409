"""Linear-time tidy tree layout (Walker's algorithm with Buchheim's fixes)."""

from dataclasses import dataclass, field
import logging
from typing import Callable

from config import LayoutConfig
from graph import get_children, get_depth
from models import HierarchyNode, PersonNode

logger = logging.getLogger(__name__)

Separation = Callable[[HierarchyNode, HierarchyNode], float]


@dataclass(eq=False)
class TNode:
    node: HierarchyNode | None
    number: int = 0  # position among siblings
    parent: "TNode | None" = None
    children: "list[TNode]" = field(default_factory=list)
    # layout fields
    prelim: float = 0.0
    mod: float = 0.0
    change: float = 0.0
    shift: float = 0.0
    thread: "TNode | None" = None
    ancestor: "TNode | None" = None
    default_ancestor: "TNode | None" = None

    def __post_init__(self):
        self.ancestor = self


def pedigree_separation(
    a: HierarchyNode, b: HierarchyNode, sibling: float = 1.2, cousin: float = 2.2
) -> float:
    """Tighter spacing for siblings and next to hidden nodes."""
    if a.parent is b.parent or a.hidden or b.hidden:
        return sibling
    return cousin


def make_separation(config: LayoutConfig) -> Separation:
    def separation(a: HierarchyNode, b: HierarchyNode) -> float:
        return pedigree_separation(a, b, config.sibling_separation, config.cousin_separation)

    return separation


def _wrap(root: HierarchyNode) -> TNode:
    tree = TNode(root)
    stack = [tree]
    while stack:
        t = stack.pop()
        for i, child in enumerate(t.node.children or []):
            c = TNode(child, number=i, parent=t)
            t.children.append(c)
            stack.append(c)
    # Dummy parent so the root has siblings like any other node
    tree.parent = TNode(None, children=[tree])
    return tree


def _next_left(v: TNode) -> TNode | None:
    return v.children[0] if v.children else v.thread


def _next_right(v: TNode) -> TNode | None:
    return v.children[-1] if v.children else v.thread


def _move_subtree(wl: TNode, wr: TNode, shift: float):
    change = shift / (wr.number - wl.number)
    wr.change -= change
    wr.shift += shift
    wl.change += change
    wr.prelim += shift
    wr.mod += shift


def _execute_shifts(v: TNode):
    shift = change = 0.0
    for w in reversed(v.children):
        w.prelim += shift
        w.mod += shift
        change += w.change
        shift += w.shift + change


def _next_ancestor(vil: TNode, v: TNode, ancestor: TNode) -> TNode:
    return vil.ancestor if vil.ancestor.parent is v.parent else ancestor


def _apportion(v: TNode, w: TNode | None, ancestor: TNode, separation: Separation) -> TNode:
    if w is None:
        return ancestor
    vir = vor = v
    vil = w
    vol = v.parent.children[0]
    sir = vir.mod
    sor = vor.mod
    sil = vil.mod
    sol = vol.mod
    while True:
        vil = _next_right(vil)
        vir = _next_left(vir)
        if vil is None or vir is None:
            break
        vol = _next_left(vol)
        vor = _next_right(vor)
        vor.ancestor = v
        shift = vil.prelim + sil - vir.prelim - sir + separation(vil.node, vir.node)
        if shift > 0:
            _move_subtree(_next_ancestor(vil, v, ancestor), v, shift)
            sir += shift
            sor += shift
        sil += vil.mod
        sir += vir.mod
        sol += vol.mod
        sor += vor.mod
    if vil is not None and _next_right(vor) is None:
        vor.thread = vil
        vor.mod += sil - sor
    if vir is not None and _next_left(vol) is None:
        vol.thread = vir
        vol.mod += sir - sol
        ancestor = v
    return ancestor


def _first_walk(v: TNode, separation: Separation):
    for child in v.children:
        _first_walk(child, separation)

    siblings = v.parent.children
    w = siblings[v.number - 1] if v.number else None
    if v.children:
        _execute_shifts(v)
        midpoint = (v.children[0].prelim + v.children[-1].prelim) / 2
        if w is not None:
            v.prelim = w.prelim + separation(v.node, w.node)
            v.mod = v.prelim - midpoint
        else:
            v.prelim = midpoint
    elif w is not None:
        v.prelim = w.prelim + separation(v.node, w.node)
    v.parent.default_ancestor = _apportion(
        v, w, v.parent.default_ancestor or siblings[0], separation
    )


def _second_walk(v: TNode):
    stack = [v]
    while stack:
        t = stack.pop()
        t.node.x = t.prelim + t.parent.mod
        t.mod += t.parent.mod
        stack.extend(t.children)


def tidy_tree(
    root: HierarchyNode,
    separation: Separation = pedigree_separation,
    size: tuple[float, float] | None = None,
    node_size: tuple[float, float] | None = None,
) -> HierarchyNode:
    """
    Assign x and y to every node of the hierarchy.

    Args:
        root: Hierarchy with depths already set.
        separation: Distance between neighbouring nodes, in layout units.
        size: Fit the tree into a (width, height) box.
        node_size: Scale layout units by (dx, dy) instead of fitting.

    Returns:
        The same root, with coordinates set.
    """
    if size is None and node_size is None:
        size = (1, 1)

    t = _wrap(root)
    _first_walk(t, separation)
    t.parent.mod = -t.prelim
    _second_walk(t)

    nodes = root.descendants()
    if node_size is not None:
        dx, dy = node_size
        for node in nodes:
            node.x *= dx
            node.y = node.depth * dy
        return root

    dx, dy = size
    left = min(nodes, key=lambda n: n.x)
    right = max(nodes, key=lambda n: n.x)
    bottom = max(nodes, key=lambda n: n.depth)
    s = 1 if left is right else separation(left, right) / 2
    tx = s - left.x
    kx = dx / (right.x + s + tx)
    ky = dy / (bottom.depth or 1)
    for node in nodes:
        node.x = (node.x + tx) * kx
        node.y = node.depth * ky
    return root


def tree_dimensions(dataset: list[PersonNode], config: LayoutConfig) -> tuple[float, float]:
    """
    Estimate the (width, height) needed to draw the pedigree.

    Each generation gets a score from its people, their number of children
    and whether they have a father. The widest generation sets the width.
    """
    symbol = config.symbol_size
    generation: dict[int, float] = {}
    max_score = 0.0
    for person in dataset:
        depth = get_depth(dataset, person.name)
        children = get_children(dataset, person)
        score = 1 + (0.55 + len(children) * 0.25 if children else 0) + (0.25 if person.father else 0)
        generation[depth] = generation.get(depth, 0) + score
        max_score = max(max_score, generation[depth])

    max_depth = len(generation) * symbol * config.level_separation
    width = max((config.width or 0) - symbol, max_score * symbol * config.node_separation)
    height = max((config.height or 0) - symbol, max_depth)
    logger.debug("Tree dimensions %.1f x %.1f for %d generations", width, height, len(generation))
    return width, height
