"""
Tree assembly and compression.

``assemble_tree`` links the bags of an elimination run into a forest: the
parent of the bag of vertex x is the bag of the member of x's bag that is
eliminated soonest after x.

``compress_tree`` then contracts every tree edge whose bags are nested,
keeping the larger bag, with an explicit worklist so deep trees do not hit
the recursion limit.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set, Tuple

from ..errors import InvariantViolation


@dataclass
class TreeDecomposition:
    """
    Tree decomposition result.

    Attributes:
        bags: List of bags (clusters), each containing variable indices (0-indexed)
        tree_edges: (parent, child) edges between bags forming a forest
        tree_width: Width of the decomposition (max bag size - 1)
        num_bags: Number of bags in the decomposition
        parent: Parent bag of each bag, None for roots
        children: Ordered child bags of each bag
        elimination_order: Vertex elimination order the bags were built from
            (empty when the decomposition was imported)
    """
    bags: List[Set[int]]
    tree_edges: List[Tuple[int, int]]
    tree_width: int
    num_bags: int
    parent: List[Optional[int]] = field(default_factory=list)
    children: List[List[int]] = field(default_factory=list)
    elimination_order: List[int] = field(default_factory=list)

    @property
    def width(self) -> int:
        return self.tree_width

    @property
    def roots(self) -> List[int]:
        return [b for b, p in enumerate(self.parent) if p is None]

    @classmethod
    def from_forest(cls, bags: List[Set[int]], parent: List[Optional[int]],
                    children: List[List[int]],
                    elimination_order: Optional[List[int]] = None) -> "TreeDecomposition":
        tree_edges = [(p, b) for b, p in enumerate(parent) if p is not None]
        return cls(
            bags=bags,
            tree_edges=tree_edges,
            tree_width=max((len(bag) for bag in bags), default=1) - 1,
            num_bags=len(bags),
            parent=parent,
            children=children,
            elimination_order=list(elimination_order or []),
        )


def assemble_tree(bags: Sequence[Set[int]],
                  nodes_order: Sequence[int]) -> Tuple[List[Optional[int]], List[List[int]]]:
    """
    Link elimination bags into a forest.

    Args:
        bags: bags[k] is the bag recorded at elimination step k
        nodes_order: Elimination step of every vertex

    Returns:
        Tuple of (parent, children) indexed by bag
    """
    parent: List[Optional[int]] = [None] * len(bags)
    children: List[List[int]] = [[] for _ in bags]

    for k, bag in enumerate(bags):
        later = [nodes_order[y] for y in bag if nodes_order[y] > k]
        if later:
            p = min(later)
            parent[k] = p
            children[p].append(k)

    return parent, children


def compress_tree(bags: List[Set[int]], parent: List[Optional[int]],
                  children: List[List[int]]):
    """
    Remove bags that are nested in a neighbouring bag.

    Starting from the leaves, each bag is compared with its parent. A bag
    contained in its parent is deleted and its children move to the parent.
    A parent contained in the bag is deleted and the bag takes its place,
    after which the bag is compared with its new parent. Every bag is
    enqueued at most once.

    The inputs are modified in place; compacted copies are returned.

    Returns:
        Tuple of (bags, parent, children) over the surviving bags
    """
    num_bags = len(bags)
    removed = [False] * num_bags
    queued = [False] * num_bags
    queue = deque(b for b in range(num_bags) if not children[b])
    for b in queue:
        queued[b] = True

    while queue:
        b = queue.popleft()
        if removed[b]:
            continue

        nxt = parent[b]
        while nxt is not None:
            p = nxt
            if bags[b] <= bags[p]:
                _remove_into_parent(b, parent, children)
                bags[b] = set()
                removed[b] = True
                break
            if bags[p] <= bags[b]:
                _replace_parent(b, parent, children)
                bags[p] = set()
                removed[p] = True
                nxt = parent[b]
                continue
            break

        if nxt is not None and not queued[nxt]:
            queued[nxt] = True
            queue.append(nxt)

    return _compact(bags, parent, children, removed)


def _remove_into_parent(b, parent, children):
    p = parent[b]
    children[p].remove(b)
    for c in children[b]:
        parent[c] = p
        children[p].append(c)
    children[b] = []
    parent[b] = None


def _replace_parent(b, parent, children):
    p = parent[b]
    pp = parent[p]
    if pp is not None:
        siblings = children[pp]
        siblings[siblings.index(p)] = b
    parent[b] = pp

    for c in children[p]:
        if c != b:
            parent[c] = b
            children[b].append(c)
    children[p] = []
    parent[p] = None


def _compact(bags, parent, children, removed):
    index = {}
    for b in range(len(bags)):
        if not removed[b]:
            index[b] = len(index)

    new_bags = [bags[b] for b in index]
    new_parent = [None if parent[b] is None else index[parent[b]] for b in index]
    new_children = [[index[c] for c in children[b]] for b in index]

    for b, bag in enumerate(new_bags):
        if not bag:
            raise InvariantViolation(f"Surviving bag {b} is empty")
    return new_bags, new_parent, new_children
