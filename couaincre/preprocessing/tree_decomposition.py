"""
Tree decomposition of CNF formulas.

This module is the entry point for decomposing a formula's primal graph:

- ``decompose_cnf`` / ``decompose_graph`` run the greedy elimination engine
  (min-fill or min-degree) followed by tree assembly and compression.
- ``decompose_with_flowcutter`` delegates to the external FlowCutter solver
  through the PACE file formats and falls back to the greedy engine when the
  binary is unavailable.
- ``verify_tree_decomposition`` checks the defining properties.
"""

import subprocess
import tempfile
import logging
from collections import deque
from pathlib import Path
from typing import List, Tuple, Set, Optional, Union

from .cnf_parser import CNF
from ..decomposition.elimination import EliminationEngine
from ..decomposition.heuristics import EliminationHeuristic, get_heuristic
from ..decomposition.primal_graph import build_primal_graph, primal_edges
from ..decomposition.tree import TreeDecomposition, assemble_tree, compress_tree
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

HeuristicSpec = Union[str, EliminationHeuristic]


def decompose_graph(
    graph: List[Set[int]],
    heuristic: HeuristicSpec = "min_fill",
    progress: bool = False,
) -> TreeDecomposition:
    """
    Compute a tree decomposition of a graph by greedy elimination.

    The graph is consumed: the engine mutates it in place.

    Args:
        graph: Adjacency sets indexed by vertex (0-indexed)
        heuristic: Heuristic name ('min_fill', 'min_degree') or instance
        progress: Show a progress bar during elimination

    Returns:
        Compressed TreeDecomposition
    """
    if isinstance(heuristic, str):
        heuristic = get_heuristic(heuristic)

    engine = EliminationEngine(graph, heuristic)
    result = engine.run(progress=progress)

    parent, children = assemble_tree(result.bags, result.nodes_order)
    bags = [set(bag) for bag in result.bags]
    bags, parent, children = compress_tree(bags, parent, children)

    td = TreeDecomposition.from_forest(bags, parent, children, result.order)
    logger.info(
        f"Tree decomposition ({heuristic.name}): {td.num_bags} bags, "
        f"tree_width {td.tree_width}, {len(td.roots)} root(s)"
    )
    return td


def decompose_cnf(
    cnf: CNF,
    heuristic: HeuristicSpec = "min_fill",
    method: str = "greedy",
    flowcutter_path: Optional[str] = None,
    timeout: int = 300,
    progress: bool = False,
) -> TreeDecomposition:
    """
    Main entry point for tree decomposition.

    Args:
        cnf: Parsed CNF formula
        heuristic: Elimination heuristic for the greedy engine
        method: 'greedy' (built-in engine) or 'flowcutter' (external solver)
        flowcutter_path: Path to FlowCutter executable
        timeout: FlowCutter time budget in seconds
        progress: Show a progress bar during elimination

    Returns:
        TreeDecomposition object

    Raises:
        ConfigurationError: For an empty formula, out-of-range literals or
            an unknown method
    """
    if method == "greedy":
        graph = build_primal_graph(cnf.num_variables, cnf.clauses)
        return decompose_graph(graph, heuristic, progress)
    if method == "flowcutter":
        return decompose_with_flowcutter(cnf, flowcutter_path, timeout, heuristic)
    raise ConfigurationError(f"Unknown decomposition method '{method}'")


def write_graph_file(num_nodes: int, edges: List[Tuple[int, int]], filepath: Union[str, Path]) -> None:
    """
    Write graph in PACE format.

    PACE format:
    - First line: p tw <num_nodes> <num_edges>
    - Edge lines: <node1> <node2> (1-indexed)
    """
    with open(filepath, 'w') as f:
        f.write(f"p tw {num_nodes} {len(edges)}\n")
        for v1, v2 in edges:
            f.write(f"{v1 + 1} {v2 + 1}\n")


def write_tree_decomposition(td: TreeDecomposition, num_vertices: int, filepath: Union[str, Path]) -> None:
    """
    Write a decomposition in PACE td format (1-indexed bags and vertices).
    """
    with open(filepath, 'w') as f:
        f.write(f"s td {td.num_bags} {td.tree_width + 1} {num_vertices}\n")
        for bag_id, bag in enumerate(td.bags):
            members = " ".join(str(v + 1) for v in sorted(bag))
            f.write(f"b {bag_id + 1} {members}".rstrip() + "\n")
        for b1, b2 in td.tree_edges:
            f.write(f"{b1 + 1} {b2 + 1}\n")


def parse_tree_decomposition_string(content: str) -> TreeDecomposition:
    """
    Parse tree decomposition output in td format.

    td format:
    - First line: s td <num_bags> <tree_width+1> <num_nodes>
    - Bag lines: b <bag_id> <node1> <node2> ...
    - Edge lines: <bag1> <bag2>

    Edges are oriented away from the lowest-indexed bag of each component.
    """
    bags = {}
    edges = []
    num_bags = 0
    declared_width = None

    for line_num, line in enumerate(content.split('\n'), 1):
        line = line.strip()
        if not line or line.startswith('c'):
            continue

        parts = line.split()
        if parts[0] == 's':
            if len(parts) < 4 or parts[1] != 'td':
                raise ConfigurationError(f"Invalid solution line at line {line_num}: {line}")
            num_bags = int(parts[2])
            declared_width = int(parts[3]) - 1
        elif parts[0] == 'b':
            bag_id = int(parts[1]) - 1
            bags[bag_id] = set(int(n) - 1 for n in parts[2:] if n != '0')
        else:
            try:
                edges.append((int(parts[0]) - 1, int(parts[1]) - 1))
            except (ValueError, IndexError):
                logger.warning(f"Skipping malformed tree edge at line {line_num}: {line}")

    bag_list = [bags.get(i, set()) for i in range(num_bags)]
    parent, children = _orient_forest(num_bags, edges)
    td = TreeDecomposition.from_forest(bag_list, parent, children)

    if declared_width is not None and declared_width != td.tree_width:
        logger.warning(
            f"Declared width {declared_width} differs from bag sizes ({td.tree_width})"
        )
    return td


def parse_tree_decomposition(filepath: Union[str, Path]) -> TreeDecomposition:
    with open(filepath, 'r') as f:
        return parse_tree_decomposition_string(f.read())


def _orient_forest(num_bags: int, edges: List[Tuple[int, int]]):
    adj = [[] for _ in range(num_bags)]
    for b1, b2 in edges:
        adj[b1].append(b2)
        adj[b2].append(b1)

    parent: List[Optional[int]] = [None] * num_bags
    children: List[List[int]] = [[] for _ in range(num_bags)]
    visited = [False] * num_bags
    for root in range(num_bags):
        if visited[root]:
            continue
        visited[root] = True
        queue = deque([root])
        while queue:
            node = queue.popleft()
            for nbr in sorted(adj[node]):
                if not visited[nbr]:
                    visited[nbr] = True
                    parent[nbr] = node
                    children[node].append(nbr)
                    queue.append(nbr)
    return parent, children


def decompose_with_flowcutter(
    cnf: CNF,
    flowcutter_path: Optional[str] = None,
    timeout: int = 300,
    fallback_heuristic: HeuristicSpec = "min_fill",
) -> TreeDecomposition:
    """
    Compute tree decomposition using FlowCutter.

    FlowCutter improves its decomposition until it receives SIGTERM and then
    prints the best one found, so it is terminated after ``timeout`` seconds.

    Args:
        cnf: Parsed CNF formula
        flowcutter_path: Path to FlowCutter executable (default: 'flow_cutter_pace17')
        timeout: Time budget in seconds
        fallback_heuristic: Heuristic for the greedy engine if FlowCutter fails

    Returns:
        TreeDecomposition object
    """
    if flowcutter_path is None:
        flowcutter_path = 'flow_cutter_pace17'

    graph = build_primal_graph(cnf.num_variables, cnf.clauses)
    edges = primal_edges(graph)

    with tempfile.TemporaryDirectory() as tmpdir:
        graph_file = Path(tmpdir) / "primal.gr"
        write_graph_file(cnf.num_variables, edges, graph_file)

        logger.info(f"Launching FlowCutter for {timeout} seconds")
        try:
            process = subprocess.Popen(
                [flowcutter_path, str(graph_file)],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError:
            logger.warning(
                f"FlowCutter not found at '{flowcutter_path}'. "
                "Using greedy elimination instead."
            )
            return decompose_graph(graph, fallback_heuristic)

        try:
            stdout, _ = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            process.terminate()
            stdout, _ = process.communicate()

    if "s td" not in stdout:
        logger.warning("FlowCutter produced no decomposition. Using greedy elimination instead.")
        return decompose_graph(graph, fallback_heuristic)

    return parse_tree_decomposition_string(stdout)


def verify_tree_decomposition(td: TreeDecomposition, cnf: CNF) -> Tuple[bool, List[str]]:
    """
    Verify that a tree decomposition satisfies required properties.

    Properties checked:
    1. Coverage: Each clause's variables are contained in at least one bag
    2. Connectivity: For any variable, bags containing it form a connected subtree
    3. The tree edges form a forest

    Args:
        td: Tree decomposition to verify
        cnf: Original CNF formula

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    errors = []

    for clause_idx, clause_vars in enumerate(cnf.clause_vertices()):
        if not any(clause_vars <= bag for bag in td.bags):
            errors.append(f"Clause {clause_idx} not covered: vars {sorted(clause_vars)}")

    adj = {i: set() for i in range(len(td.bags))}
    for b1, b2 in td.tree_edges:
        adj[b1].add(b2)
        adj[b2].add(b1)

    # a forest has exactly (#bags - #components) edges
    components = 0
    seen = set()
    for start in adj:
        if start in seen:
            continue
        components += 1
        seen.add(start)
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for nbr in adj[current] - seen:
                seen.add(nbr)
                queue.append(nbr)
    if len(td.tree_edges) != len(td.bags) - components:
        errors.append("Tree edges contain a cycle")

    for var in range(cnf.num_variables):
        bags_with_var = {i for i, bag in enumerate(td.bags) if var in bag}
        if not bags_with_var:
            errors.append(f"Variable {var} is not in any bag")
            continue
        if len(bags_with_var) == 1:
            continue

        first = min(bags_with_var)
        visited = {first}
        queue = deque([first])
        while queue:
            current = queue.popleft()
            for nbr in adj[current] & bags_with_var:
                if nbr not in visited:
                    visited.add(nbr)
                    queue.append(nbr)

        if visited != bags_with_var:
            errors.append(
                f"Variable {var} violates connectivity: "
                f"bags {sorted(bags_with_var)}, connected {sorted(visited)}"
            )

    return len(errors) == 0, errors
