"""Restriction mining and restricted model counting."""

from .restriction import Restriction, RestrictionOp
from .miner import candidate_pairs, collect_statistics, mine_restrictions, models_to_tensor
from .solver import CountResult, RestrictedCounter

__all__ = [
    'Restriction',
    'RestrictionOp',
    'candidate_pairs',
    'collect_statistics',
    'mine_restrictions',
    'models_to_tensor',
    'CountResult',
    'RestrictedCounter',
]
