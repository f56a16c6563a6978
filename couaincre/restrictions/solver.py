"""
Restricted model counting.

Samples models of the formula, mines restrictions that most samples satisfy
and asks the exact counter for the count of the formula with those
restrictions conjoined. Every restricted count is a lower bound on the true
model count; dropping restrictions one by one (last mined first) yields a
non-decreasing sequence of bounds.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from tqdm import tqdm

from .miner import candidate_pairs, collect_statistics, mine_restrictions
from .restriction import Restriction
from ..decomposition.tree import TreeDecomposition
from ..preprocessing.cnf_parser import CNF
from ..solvers.counter import count_models_cnf
from ..solvers.sampler import collect_solutions

logger = logging.getLogger(__name__)


@dataclass
class CountResult:
    """
    Attributes:
        model_count: Best known lower bound (the exact count if ``exact``)
        exact: Whether ``model_count`` is the exact count
        bounds: (elapsed seconds, bound) in the order they were found
        restrictions: Restrictions mined from the samples
    """
    model_count: int
    exact: bool
    bounds: List[Tuple[float, int]] = field(default_factory=list)
    restrictions: List[Restriction] = field(default_factory=list)


class RestrictedCounter:
    """
    Lower-bound model counting through sampled restrictions.

    Args:
        cnf: Formula to count
        counter: Exact counter name ('d4' or 'dsharp')
        num_samples: Number of models to sample
        max_restrictions: Number of restrictions to mine
        decomposition: Optional tree decomposition of the formula
        within_bags: Only consider pairs of variables sharing a bag of the
            decomposition
        exact_width: Count exactly without restrictions when the
            decomposition's width is at most this value
        least_satisfied: Mine the least frequently satisfied restrictions
            instead of the most frequently satisfied ones
        timeout: Timeout per counter call in seconds
        counter_path: Path to the counter executable
        progress: Show a progress bar over the counter calls
    """

    def __init__(
        self,
        cnf: CNF,
        counter: str = 'd4',
        num_samples: int = 1000,
        max_restrictions: int = 10,
        decomposition: Optional[TreeDecomposition] = None,
        within_bags: bool = True,
        exact_width: Optional[int] = None,
        least_satisfied: bool = False,
        timeout: int = 5000,
        counter_path: Optional[str] = None,
        progress: bool = False,
    ):
        self.cnf = cnf
        self.counter = counter
        self.num_samples = num_samples
        self.max_restrictions = max_restrictions
        self.decomposition = decomposition
        self.within_bags = within_bags
        self.exact_width = exact_width
        self.least_satisfied = least_satisfied
        self.timeout = timeout
        self.counter_path = counter_path
        self.progress = progress
        self._start = None

    def _elapsed(self) -> float:
        return time.monotonic() - self._start

    def _count(self, extra_clauses=None) -> Optional[int]:
        return count_models_cnf(
            self.cnf,
            counter=self.counter,
            timeout=self.timeout,
            counter_path=self.counter_path,
            extra_clauses=extra_clauses,
        )

    def solve(self) -> CountResult:
        self._start = time.monotonic()

        logger.info(f"Computing restrictions with number_sample = {self.num_samples}")
        models = collect_solutions(self.cnf, self.num_samples)
        if len(models) < self.num_samples:
            logger.info(f"Exact count {len(models)} found by sampling ({self._elapsed():.1f} secs)")
            return CountResult(len(models), True, [(self._elapsed(), len(models))])

        td = self.decomposition
        if td is not None and self.exact_width is not None and td.tree_width <= self.exact_width:
            logger.info(f"Width {td.tree_width} <= {self.exact_width}, counting without restrictions")
            count = self._count()
            if count is not None:
                return CountResult(count, True, [(self._elapsed(), count)])
            logger.warning("Unrestricted count failed, falling back to restrictions")

        pairs = candidate_pairs(self.cnf.num_variables, td if self.within_bags else None)
        stats = collect_statistics(models, self.cnf.num_variables, pairs)
        restrictions = mine_restrictions(stats, self.max_restrictions, self.least_satisfied)
        logger.debug(f"Restrictions: {', '.join(map(str, restrictions))}")

        result = CountResult(len(models), False, restrictions=restrictions)
        for i in tqdm(range(len(restrictions)), desc="Restricted counts", disable=not self.progress):
            active = restrictions[:len(restrictions) - i]
            clauses = [clause for r in active for clause in r.to_clauses()]
            count = self._count(clauses)
            if count is None:
                logger.warning(f"Counter failed with {len(active)} restriction(s), skipping bound")
                continue
            result.model_count = max(result.model_count, count)
            result.bounds.append((self._elapsed(), count))
            logger.info(f"Lower bound {count} found in {self._elapsed():.1f} seconds")

        return result
