"""
Primal graph construction.

The primal graph of a CNF formula has one vertex per variable and an edge
between two variables whenever they occur together in some clause. Vertices
are 0-indexed: DIMACS variable ``x`` becomes vertex ``x - 1``.
"""

from typing import Iterable, List, Sequence, Set, Tuple

from ..errors import ConfigurationError

PrimalGraph = List[Set[int]]


def build_primal_graph(num_variables: int, clauses: Iterable[Sequence[int]]) -> PrimalGraph:
    """
    Build the adjacency sets of the primal graph.

    Args:
        num_variables: Number of variables declared by the formula
        clauses: Clauses as sequences of signed DIMACS literals

    Returns:
        List indexed by vertex, each entry the set of adjacent vertices

    Raises:
        ConfigurationError: If the formula has no variables or a literal
            refers to a variable outside [1, num_variables]
    """
    if num_variables <= 0:
        raise ConfigurationError("Formula declares no variables")

    graph: PrimalGraph = [set() for _ in range(num_variables)]
    for clause_idx, clause in enumerate(clauses):
        vertices = []
        for lit in clause:
            var = abs(lit)
            if var < 1 or var > num_variables:
                raise ConfigurationError(
                    f"Clause {clause_idx} references variable {lit} "
                    f"outside [1, {num_variables}]"
                )
            vertices.append(var - 1)

        for i, v1 in enumerate(vertices):
            for v2 in vertices[i + 1:]:
                if v1 != v2:
                    graph[v1].add(v2)
                    graph[v2].add(v1)

    return graph


def primal_edges(graph: PrimalGraph) -> List[Tuple[int, int]]:
    """Return the sorted edge list ``(u, v)`` with ``u < v``."""
    return [(u, v) for u in range(len(graph)) for v in sorted(graph[u]) if u < v]
