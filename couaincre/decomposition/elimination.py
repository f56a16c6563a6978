"""
Greedy vertex elimination.

The engine repeatedly picks the vertex with the lowest heuristic score,
records its closed neighbourhood as a bag, turns its neighbourhood into a
clique (fill-in) and removes it from the graph. The resulting elimination
order and bags are turned into a tree by ``couaincre.decomposition.tree``.

The engine owns the graph it is given and mutates it in place.
"""

import logging
from dataclasses import dataclass
from typing import List, Set

from tqdm import tqdm

from ..errors import ConfigurationError, InvariantViolation
from .heuristics import EliminationHeuristic
from .scheduler import BucketScheduler

logger = logging.getLogger(__name__)


@dataclass
class EliminationResult:
    """
    Outcome of a complete elimination run.

    Attributes:
        order: order[k] is the vertex eliminated at step k
        nodes_order: nodes_order[v] is the step at which v was eliminated
        bags: bags[k] is {order[k]} plus its neighbours at step k
    """
    order: List[int]
    nodes_order: List[int]
    bags: List[Set[int]]

    @property
    def width(self) -> int:
        return max((len(bag) for bag in self.bags), default=1) - 1


class EliminationEngine:
    """
    Drives the elimination of every vertex of a primal graph.

    Args:
        graph: Adjacency sets indexed by vertex (mutated in place)
        heuristic: Scoring strategy used to pick the next vertex
    """

    def __init__(self, graph: List[Set[int]], heuristic: EliminationHeuristic):
        if not graph:
            raise ConfigurationError("Cannot decompose an empty graph")

        self.graph = graph
        self.heuristic = heuristic
        self.num_vertices = len(graph)
        self.order: List[int] = []
        self.nodes_order = [-1] * self.num_vertices
        self.bags: List[Set[int]] = []

        self._scheduler = BucketScheduler(self.num_vertices)
        # descending ids: ties on the initial scores go to the lowest id
        for v in reversed(range(self.num_vertices)):
            self._scheduler.insert(heuristic.evaluate(graph, v), v)

    @property
    def done(self) -> bool:
        return len(self.order) == self.num_vertices

    def _score(self, vertex: int) -> int:
        return self.heuristic.evaluate(self.graph, vertex)

    def step(self) -> int:
        """Eliminate one vertex and return it."""
        if self.done:
            raise InvariantViolation("All vertices have already been eliminated")

        step = len(self.order)
        vertex = self._scheduler.pop_min(self._score)
        if self.nodes_order[vertex] != -1:
            raise InvariantViolation(
                f"Vertex {vertex} eliminated twice (steps {self.nodes_order[vertex]} and {step})"
            )

        nbrs = self.graph[vertex]
        for nbr in nbrs:
            if self.nodes_order[nbr] != -1:
                raise InvariantViolation(
                    f"Bag of vertex {vertex} references eliminated vertex {nbr}"
                )

        self.bags.append({vertex} | nbrs)
        self.order.append(vertex)
        self.nodes_order[vertex] = step

        affected = self.heuristic.affected(self.graph, vertex)

        nbr_list = list(nbrs)
        for i, n1 in enumerate(nbr_list):
            adj = self.graph[n1]
            for n2 in nbr_list[i + 1:]:
                if n2 not in adj:
                    adj.add(n2)
                    self.graph[n2].add(n1)
            adj.discard(vertex)

        self._scheduler.mark_dirty(affected)
        self.graph[vertex] = set()
        return vertex

    def run(self, progress: bool = False) -> EliminationResult:
        """
        Eliminate all remaining vertices.

        Args:
            progress: Show a tqdm progress bar

        Returns:
            EliminationResult with the full order and bags
        """
        remaining = self.num_vertices - len(self.order)
        for _ in tqdm(range(remaining), desc="Eliminating", disable=not progress):
            self.step()

        result = EliminationResult(
            order=self.order,
            nodes_order=self.nodes_order,
            bags=self.bags,
        )
        logger.debug(
            f"{self.heuristic.name} elimination of {self.num_vertices} vertices, "
            f"width {result.width}"
        )
        return result


def eliminate(graph: List[Set[int]], heuristic: EliminationHeuristic,
              progress: bool = False) -> EliminationResult:
    """Convenience wrapper running an ``EliminationEngine`` to completion."""
    return EliminationEngine(graph, heuristic).run(progress=progress)
