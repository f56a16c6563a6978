"""
DIMACS CNF reader and writer.

The reader accepts the variations found in benchmark suites: clauses spread
over several lines or sharing one, a missing final ``0``, a trailing ``%``
line and declared clause counts that do not match the body. A ``0`` that
ends no literals is kept as the empty clause. Literal ranges are not checked
here; the primal graph builder rejects out-of-range variables.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Set, Tuple, Union
import re

from ..errors import ConfigurationError

_PROBLEM_LINE = re.compile(r'p\s+cnf\s+(\d+)\s+(\d+)')


@dataclass
class CNF:
    """
    A CNF formula.

    Attributes:
        num_variables: Declared number of variables
        num_clauses: Number of clauses actually read
        clauses: Clauses as lists of signed DIMACS literals
        comments: Comment lines without the leading 'c'
    """
    num_variables: int
    num_clauses: int
    clauses: List[List[int]]
    comments: List[str] = field(default_factory=list)

    def clause_vertices(self) -> List[Set[int]]:
        """Return the 0-indexed variable set of every clause."""
        return [{abs(lit) - 1 for lit in clause} for clause in self.clauses]

    def with_clauses(self, extra: Iterable[Sequence[int]]) -> "CNF":
        """Return a copy with ``extra`` clauses conjoined."""
        clauses = [list(c) for c in self.clauses]
        clauses.extend(list(c) for c in extra)
        return CNF(self.num_variables, len(clauses), clauses, list(self.comments))


def _body_tokens(lines: Iterable[str], header: dict) -> Iterator[Tuple[int, str]]:
    """Yield (line number, token) for clause data, filling ``header`` on the way."""
    for line_num, raw in enumerate(lines, 1):
        text = raw.strip()
        if not text:
            continue
        head = text[0]
        if head == 'c':
            header['comments'].append(text[1:].strip())
        elif head == 'p':
            match = _PROBLEM_LINE.match(text)
            if match is None:
                raise ConfigurationError(f"Invalid problem line at line {line_num}: {text}")
            header['num_variables'] = int(match.group(1))
        elif head == '%':
            return
        else:
            for token in text.split():
                yield line_num, token


def _read(lines: Iterable[str]) -> CNF:
    header = {'comments': [], 'num_variables': None}
    clauses: List[List[int]] = []
    pending: List[int] = []

    for line_num, token in _body_tokens(lines, header):
        try:
            lit = int(token)
        except ValueError as e:
            raise ConfigurationError(f"Invalid literal '{token}' at line {line_num}") from e
        if lit:
            pending.append(lit)
        else:
            # a 0 with nothing pending is the empty clause
            clauses.append(pending)
            pending = []

    if pending:
        clauses.append(pending)

    if header['num_variables'] is None:
        raise ConfigurationError("Missing problem line (p cnf ...)")

    return CNF(header['num_variables'], len(clauses), clauses, header['comments'])


def parse_dimacs(filepath: Union[str, Path]) -> CNF:
    """
    Read a DIMACS CNF file.

    Raises:
        ConfigurationError: If the problem line or a literal is malformed
        FileNotFoundError: If the file does not exist
    """
    filepath = Path(filepath)
    if not filepath.is_file():
        raise FileNotFoundError(f"CNF file not found: {filepath}")

    with open(filepath, 'r') as f:
        return _read(f)


def parse_dimacs_string(content: str) -> CNF:
    return _read(content.splitlines())


def write_dimacs(cnf: CNF, filepath: Union[str, Path], comments: Optional[List[str]] = None) -> None:
    """
    Write ``cnf`` in DIMACS format.

    The header states the number of clauses written, not ``cnf.num_clauses``.
    Extra ``comments`` come before the formula's own.
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    lines = [f"c {text}" for text in (comments or []) + cnf.comments]
    lines.append(f"p cnf {cnf.num_variables} {len(cnf.clauses)}")
    lines.extend(" ".join(str(lit) for lit in [*clause, 0]) for clause in cnf.clauses)
    filepath.write_text("\n".join(lines) + "\n")
