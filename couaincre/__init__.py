"""
Couaincre: model count bounds through sampled restrictions and greedy tree decompositions.

Submodules:
- decomposition: primal graph, elimination heuristics, lazy bucket scheduler,
  elimination engine, tree assembly and compression
- preprocessing: CNF parsing, decomposition entry points, PACE I/O
- solvers: exact model counter interface (d4, DSharp) and solution sampling
- restrictions: restriction mining and restricted counting
"""

__version__ = "0.1.0"

from .errors import ConfigurationError, CounterError, InvariantViolation
from .preprocessing import CNF, parse_dimacs, parse_dimacs_string, decompose_cnf, TreeDecomposition

__all__ = [
    'CNF',
    'parse_dimacs',
    'parse_dimacs_string',
    'decompose_cnf',
    'TreeDecomposition',
    'ConfigurationError',
    'CounterError',
    'InvariantViolation',
]
