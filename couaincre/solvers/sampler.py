"""
Solution sampling with pycosat.

Models are enumerated with ``pycosat.itersolve``, which blocks every model it
returns, so the samples are pairwise distinct. Fewer than ``n`` samples means
the formula has exactly that many models.
"""

import logging
from itertools import islice
from typing import Iterator, List

import pycosat

from ..preprocessing.cnf_parser import CNF

logger = logging.getLogger(__name__)


def sample_solutions(cnf: CNF, n: int) -> Iterator[List[int]]:
    """
    Yield up to ``n`` distinct models of ``cnf``.

    Each model is a list of signed literals, one per variable 1..num_variables.
    A formula containing the empty clause has no models.
    """
    if n <= 0:
        return iter(())
    if any(not clause for clause in cnf.clauses):
        logger.debug("Formula contains the empty clause")
        return iter(())
    solutions = pycosat.itersolve(cnf.clauses, vars=cnf.num_variables)
    return islice(solutions, n)


def collect_solutions(cnf: CNF, n: int) -> List[List[int]]:
    """Return up to ``n`` models as a list."""
    models = list(sample_solutions(cnf, n))
    logger.debug(f"Sampled {len(models)} model(s) (requested {n})")
    return models
