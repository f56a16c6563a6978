"""Unit and binary restrictions conjoined to a formula to bound its model count."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class RestrictionOp(Enum):
    EQUAL = "eq"
    NOT_EQUAL = "neq"
    ASSIGN_TRUE = "true"
    ASSIGN_FALSE = "false"

    @property
    def is_binary(self) -> bool:
        return self in (RestrictionOp.EQUAL, RestrictionOp.NOT_EQUAL)


_FLIPPED = {
    RestrictionOp.EQUAL: RestrictionOp.NOT_EQUAL,
    RestrictionOp.NOT_EQUAL: RestrictionOp.EQUAL,
    RestrictionOp.ASSIGN_TRUE: RestrictionOp.ASSIGN_FALSE,
    RestrictionOp.ASSIGN_FALSE: RestrictionOp.ASSIGN_TRUE,
}


@dataclass(frozen=True)
class Restriction:
    """
    A constraint over one or two 0-indexed variables.

    Attributes:
        x: First variable
        y: Second variable, only for EQUAL / NOT_EQUAL
        op: Kind of restriction
    """
    x: int
    y: Optional[int]
    op: RestrictionOp

    def __post_init__(self):
        if self.op.is_binary != (self.y is not None):
            raise ValueError(f"{self.op.name} restriction with y={self.y}")

    def flip(self) -> "Restriction":
        """Return the complementary restriction."""
        return Restriction(self.x, self.y, _FLIPPED[self.op])

    def to_clauses(self) -> List[List[int]]:
        """Encode as DIMACS clauses (1-indexed literals)."""
        x = self.x + 1
        if self.op is RestrictionOp.ASSIGN_TRUE:
            return [[x]]
        if self.op is RestrictionOp.ASSIGN_FALSE:
            return [[-x]]
        y = self.y + 1
        if self.op is RestrictionOp.EQUAL:
            return [[-x, y], [x, -y]]
        return [[x, y], [-x, -y]]

    def to_dimacs_lines(self) -> List[str]:
        return [" ".join(map(str, clause)) + " 0" for clause in self.to_clauses()]

    def __str__(self):
        if self.op is RestrictionOp.ASSIGN_TRUE:
            return f"x{self.x + 1}"
        if self.op is RestrictionOp.ASSIGN_FALSE:
            return f"-x{self.x + 1}"
        sym = "=" if self.op is RestrictionOp.EQUAL else "!="
        return f"x{self.x + 1} {sym} x{self.y + 1}"
