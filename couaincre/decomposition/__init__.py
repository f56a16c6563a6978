"""
Greedy tree decomposition engine.

Builds the primal graph, eliminates vertices in heuristic order using a lazy
bucket scheduler, links the elimination bags into a forest and removes
redundant bags.
"""

from .primal_graph import build_primal_graph, primal_edges
from .heuristics import EliminationHeuristic, MinFill, MinDegree, get_heuristic
from .scheduler import BucketScheduler
from .elimination import EliminationEngine, EliminationResult, eliminate
from .tree import TreeDecomposition, assemble_tree, compress_tree

__all__ = [
    'build_primal_graph',
    'primal_edges',
    'EliminationHeuristic',
    'MinFill',
    'MinDegree',
    'get_heuristic',
    'BucketScheduler',
    'EliminationEngine',
    'EliminationResult',
    'eliminate',
    'TreeDecomposition',
    'assemble_tree',
    'compress_tree',
]
