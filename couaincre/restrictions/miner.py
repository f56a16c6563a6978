"""
Restriction mining from sampled models.

Sampled models are stacked into a boolean matrix (samples x variables). For
every variable we count the samples where it is true or false, and for every
candidate pair (u, v) the samples where both agree or differ. Each count is
the number of samples satisfying the corresponding restriction.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import torch

from .restriction import Restriction, RestrictionOp
from ..decomposition.tree import TreeDecomposition

logger = logging.getLogger(__name__)

Pair = Tuple[int, int]


def models_to_tensor(models: Sequence[Sequence[int]], num_variables: int) -> torch.Tensor:
    """Stack models (signed literal lists) into a bool tensor of shape (samples, variables)."""
    values = torch.zeros((len(models), num_variables), dtype=torch.bool)
    for row, model in enumerate(models):
        for lit in model:
            if lit > 0 and lit <= num_variables:
                values[row, lit - 1] = True
    return values


def candidate_pairs(num_variables: int, td: Optional[TreeDecomposition] = None) -> List[Pair]:
    """
    List candidate variable pairs (u, v) with v < u.

    With a decomposition only pairs sharing a bag are candidates; otherwise
    every pair is.
    """
    if td is None:
        if num_variables > 2000:
            logger.warning(f"Considering all pairs of {num_variables} variables")
        return [(u, v) for u in range(num_variables) for v in range(u)]

    pairs = set()
    for bag in td.bags:
        members = sorted(bag)
        for i, u in enumerate(members):
            for v in members[:i]:
                pairs.add((u, v))
    return sorted(pairs)


def collect_statistics(
    models: Sequence[Sequence[int]],
    num_variables: int,
    pairs: Optional[List[Pair]] = None,
) -> List[Tuple[int, Restriction]]:
    """
    Count, for every candidate restriction, the samples satisfying it.

    Candidates are listed per variable u: u true, u false, then u = v and
    u != v for each candidate pair (u, v).

    Returns:
        List of (count, restriction)
    """
    if pairs is None:
        pairs = candidate_pairs(num_variables)

    values = models_to_tensor(models, num_variables)
    num_samples = values.shape[0]
    true_counts = values.sum(dim=0).tolist()

    if pairs:
        us = torch.tensor([p[0] for p in pairs], dtype=torch.long)
        vs = torch.tensor([p[1] for p in pairs], dtype=torch.long)
        equal_counts = (values[:, us] == values[:, vs]).sum(dim=0).tolist()
    else:
        equal_counts = []

    pairs_of = [[] for _ in range(num_variables)]
    for (u, v), equal in zip(pairs, equal_counts):
        pairs_of[u].append((v, equal))

    stats = []
    for u in range(num_variables):
        stats.append((true_counts[u], Restriction(u, None, RestrictionOp.ASSIGN_TRUE)))
        stats.append((num_samples - true_counts[u], Restriction(u, None, RestrictionOp.ASSIGN_FALSE)))
        for v, equal in pairs_of[u]:
            stats.append((equal, Restriction(u, v, RestrictionOp.EQUAL)))
            stats.append((num_samples - equal, Restriction(u, v, RestrictionOp.NOT_EQUAL)))
    return stats


def mine_restrictions(stats: List[Tuple[int, Restriction]], limit: int = 10,
                      least_satisfied: bool = False) -> List[Restriction]:
    """
    Keep the ``limit`` most frequently satisfied restrictions (stable on ties).

    With ``least_satisfied`` the ``limit`` least frequently satisfied ones are
    kept instead.
    """
    ranked = sorted(stats, key=lambda item: item[0] if least_satisfied else -item[0])
    return [restriction for _, restriction in ranked[:limit]]
