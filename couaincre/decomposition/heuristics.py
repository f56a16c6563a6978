"""
Elimination heuristics for the greedy tree decomposition.

A heuristic scores a vertex of the current (partially eliminated) primal
graph; the engine eliminates the vertex with the lowest score. Two variants
are provided:

- MinFill: number of missing edges among the neighbours of the vertex,
  i.e. the fill-in its elimination would add.
- MinDegree: number of neighbours.

After a vertex is chosen, ``affected`` tells the engine which vertices may
have changed score and must be re-evaluated lazily. It is computed on the
graph *before* the chosen vertex is removed.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Set, Type

from ..errors import ConfigurationError


class EliminationHeuristic(ABC):
    """Scoring strategy for choosing the next vertex to eliminate."""

    name: str = ""

    @abstractmethod
    def evaluate(self, graph: List[Set[int]], vertex: int) -> int:
        """Return the (non-negative) cost of eliminating ``vertex`` now."""

    @abstractmethod
    def affected(self, graph: List[Set[int]], vertex: int) -> Set[int]:
        """Return the vertices whose score may change when ``vertex`` is eliminated."""

    @abstractmethod
    def max_score(self, num_vertices: int) -> int:
        """Upper bound on any score on a graph with ``num_vertices`` vertices."""

    def __repr__(self):
        return f"{type(self).__name__}()"


class MinFill(EliminationHeuristic):
    name = "min_fill"

    def evaluate(self, graph, vertex):
        nbrs = graph[vertex]
        missing = 0
        for nbr in nbrs:
            # nbr is never in its own adjacency set, subtract it
            missing += len(nbrs - graph[nbr]) - 1
        return missing // 2

    def affected(self, graph, vertex):
        nbrs = graph[vertex]
        result = set(nbrs)
        for nbr in nbrs:
            result |= graph[nbr]
        result.discard(vertex)
        return result

    def max_score(self, num_vertices):
        if num_vertices < 3:
            return 0
        return (num_vertices - 1) * (num_vertices - 2) // 2


class MinDegree(EliminationHeuristic):
    name = "min_degree"

    def evaluate(self, graph, vertex):
        return len(graph[vertex])

    def affected(self, graph, vertex):
        return set(graph[vertex])

    def max_score(self, num_vertices):
        return max(num_vertices - 1, 0)


HEURISTICS: Dict[str, Type[EliminationHeuristic]] = {
    MinFill.name: MinFill,
    MinDegree.name: MinDegree,
}


def get_heuristic(name: str) -> EliminationHeuristic:
    """
    Instantiate a heuristic by name.

    Accepts ``min_fill`` / ``min_degree`` in any case, with ``-`` or ``_``.

    Raises:
        ConfigurationError: If the name is unknown
    """
    key = name.strip().lower().replace("-", "_")
    if key not in HEURISTICS:
        raise ConfigurationError(
            f"Unknown elimination heuristic '{name}', "
            f"expected one of {sorted(HEURISTICS)}"
        )
    return HEURISTICS[key]()
