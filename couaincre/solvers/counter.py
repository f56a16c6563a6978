"""
Exact model counter interface.

Runs an external exact #SAT solver (d4 or DSharp) on a DIMACS file and
parses the model count from its output. Counts are returned as Python ints,
since model counts routinely exceed 2^64.
"""

import subprocess
import tempfile
import os
import re
from pathlib import Path
from typing import Dict, List, Optional, Union
import logging

from ..errors import ConfigurationError, CounterError
from ..preprocessing.cnf_parser import CNF, write_dimacs

logger = logging.getLogger(__name__)

COUNTERS: Dict[str, dict] = {
    'd4': {
        'name': 'd4',
        'binary': 'd4',
        'args': [],
        'patterns': [
            r'^c\s+s\s+exact\s+arb\s+int\s+(\d+)\s*$',
            r'^s\s+mc\s+(\d+)\s*$',
            r'^s\s+(\d+)\s*$',
        ],
    },
    'dsharp': {
        'name': 'DSharp',
        'binary': 'dsharp',
        'args': ['-count'],
        'patterns': [
            r'#SAT\s*\(full\)\s*:\s*(\d+)',
            r'#\s*solutions\s*[:=]\s*(\d+)',
            r'Model\s+Count\s*[:=]\s*(\d+)',
        ],
    },
}


def _counter_settings(counter: str) -> dict:
    if counter not in COUNTERS:
        raise ConfigurationError(
            f"Unknown model counter '{counter}', expected one of {sorted(COUNTERS)}"
        )
    return COUNTERS[counter]


def parse_counter_output(output: str, counter: str = 'd4') -> Optional[int]:
    """
    Extract the model count from a counter's stdout.

    Args:
        output: stdout of the counter
        counter: Counter name ('d4' or 'dsharp')

    Returns:
        Model count, or None if no count line was found
    """
    for pattern in _counter_settings(counter)['patterns']:
        match = re.search(pattern, output, re.IGNORECASE | re.MULTILINE)
        if match:
            return int(match.group(1))

    logger.warning(f"Could not parse model count from {counter} output")
    logger.debug(f"{counter} output: {output[:500]}")
    return None


def count_models(
    cnf_file: Union[str, Path],
    counter: str = 'd4',
    timeout: int = 5000,
    counter_path: Optional[str] = None
) -> Optional[int]:
    """
    Compute the exact model count of a DIMACS file.

    Args:
        cnf_file: Path to CNF file in DIMACS format
        counter: Counter name ('d4' or 'dsharp')
        timeout: Timeout in seconds
        counter_path: Path to the counter executable (default: its binary name)

    Returns:
        The model count, or None if the counter times out or fails

    Raises:
        FileNotFoundError: If the CNF file does not exist
        CounterError: If the counter executable cannot be found
    """
    settings = _counter_settings(counter)
    if counter_path is None:
        counter_path = settings['binary']

    cnf_file = Path(cnf_file)
    if not cnf_file.exists():
        raise FileNotFoundError(f"CNF file not found: {cnf_file}")

    cmd = [counter_path, *settings['args'], str(cnf_file)]
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout
        )
    except subprocess.TimeoutExpired:
        logger.info(f"{settings['name']} timed out after {timeout}s for {cnf_file}")
        return None
    except FileNotFoundError as e:
        logger.error(f"{settings['name']} not found at '{counter_path}'")
        raise CounterError(
            f"{settings['name']} model counter not found. Please install it and ensure "
            f"'{counter_path}' is in your PATH."
        ) from e

    if result.returncode != 0:
        # d4 exits with 10 (SAT) / 20 (UNSAT) in competition mode
        logger.debug(f"{settings['name']} returned code {result.returncode}")
        logger.debug(f"stderr: {result.stderr}")

    return parse_counter_output(result.stdout, counter)


def count_models_cnf(
    cnf: CNF,
    counter: str = 'd4',
    timeout: int = 5000,
    counter_path: Optional[str] = None,
    extra_clauses: Optional[List[List[int]]] = None,
) -> Optional[int]:
    """
    Compute the model count of an in-memory formula.

    The formula (with ``extra_clauses`` conjoined) is written to a temporary
    DIMACS file that is removed afterwards.
    """
    if extra_clauses:
        cnf = cnf.with_clauses(extra_clauses)

    with tempfile.NamedTemporaryFile(mode='w', suffix='.cnf', delete=False) as f:
        temp_path = f.name

    try:
        write_dimacs(cnf, temp_path)
        return count_models(temp_path, counter, timeout, counter_path)
    finally:
        os.unlink(temp_path)


def is_counter_available(counter: str = 'd4', counter_path: Optional[str] = None) -> bool:
    """Check whether the counter executable can be started."""
    if counter_path is None:
        counter_path = _counter_settings(counter)['binary']

    try:
        subprocess.run(
            [counter_path, '--help'],
            capture_output=True,
            timeout=10
        )
        return True
    except (FileNotFoundError, PermissionError, subprocess.TimeoutExpired):
        return False


def get_counter_info(counter: str = 'd4', counter_path: Optional[str] = None) -> dict:
    """
    Get information about a model counter.

    Returns:
        Dictionary with name, type, availability, path and version
    """
    settings = _counter_settings(counter)
    if counter_path is None:
        counter_path = settings['binary']

    info = {
        'name': settings['name'],
        'type': 'exact #SAT solver',
        'available': False,
        'path': counter_path,
        'version': 'unknown'
    }

    try:
        result = subprocess.run(
            [counter_path, '--help'],
            capture_output=True,
            text=True,
            timeout=10
        )
        info['available'] = True

        version_match = re.search(r'version\s*([\d.]+)', result.stdout, re.IGNORECASE)
        if version_match:
            info['version'] = version_match.group(1)

    except (FileNotFoundError, PermissionError, subprocess.TimeoutExpired):
        pass

    return info
