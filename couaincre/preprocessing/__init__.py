"""
Preprocessing utilities for CNF formulas.

Provides:
- CNF parsing (DIMACS format)
- Tree decomposition entry points, PACE I/O and the FlowCutter interface
"""

from .cnf_parser import CNF, parse_dimacs, parse_dimacs_string, write_dimacs
from .tree_decomposition import (
    TreeDecomposition,
    decompose_cnf,
    decompose_graph,
    decompose_with_flowcutter,
    parse_tree_decomposition,
    write_graph_file,
    write_tree_decomposition,
    verify_tree_decomposition,
)

__all__ = [
    # CNF parsing
    'CNF',
    'parse_dimacs',
    'parse_dimacs_string',
    'write_dimacs',
    # Tree decomposition
    'TreeDecomposition',
    'decompose_cnf',
    'decompose_graph',
    'decompose_with_flowcutter',
    'parse_tree_decomposition',
    'write_graph_file',
    'write_tree_decomposition',
    'verify_tree_decomposition',
]
