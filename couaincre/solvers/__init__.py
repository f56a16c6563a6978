"""
Solver interfaces.

Exact #SAT counters (d4, DSharp) run as external binaries; models are
sampled with pycosat.
"""

from .counter import (
    count_models,
    count_models_cnf,
    parse_counter_output,
    is_counter_available,
    get_counter_info,
)
from .sampler import sample_solutions, collect_solutions

__all__ = [
    'count_models',
    'count_models_cnf',
    'parse_counter_output',
    'is_counter_available',
    'get_counter_info',
    'sample_solutions',
    'collect_solutions',
]
