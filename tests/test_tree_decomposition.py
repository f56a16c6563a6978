"""
Tests for tree assembly, compression, decomposition entry points and PACE I/O.
"""

import random
import stat

import pytest

from couaincre.decomposition.primal_graph import build_primal_graph
from couaincre.decomposition.tree import TreeDecomposition, assemble_tree, compress_tree
from couaincre.errors import ConfigurationError
from couaincre.preprocessing.cnf_parser import CNF, parse_dimacs_string
from couaincre.preprocessing.tree_decomposition import (
    decompose_cnf,
    decompose_graph,
    decompose_with_flowcutter,
    parse_tree_decomposition,
    parse_tree_decomposition_string,
    verify_tree_decomposition,
    write_graph_file,
    write_tree_decomposition,
)

# Sample CNF for testing
SAMPLE_CNF = """p cnf 4 3
1 2 -3 0
-1 3 4 0
2 -4 0
"""

LARGER_CNF = """p cnf 10 8
1 2 3 0
-1 4 5 0
2 -4 6 0
-3 5 7 0
6 -7 8 0
-5 8 9 0
7 -9 10 0
-8 10 0
"""

TWO_EDGES = "p cnf 4 2\n1 2 0\n3 4 0\n"
TRIANGLE = "p cnf 3 3\n1 2 0\n2 3 0\n1 3 0\n"
SQUARE = "p cnf 4 4\n1 2 0\n2 3 0\n3 4 0\n4 1 0\n"


def random_cnf(num_variables, num_clauses, seed):
    rng = random.Random(seed)
    clauses = []
    for _ in range(num_clauses):
        size = rng.randint(1, 4)
        variables = rng.sample(range(1, num_variables + 1), size)
        clauses.append([v if rng.random() < 0.5 else -v for v in variables])
    return CNF(num_variables=num_variables, num_clauses=num_clauses, clauses=clauses)


def assert_no_nested_edges(td):
    for p, c in td.tree_edges:
        assert not td.bags[c] <= td.bags[p]
        assert not td.bags[p] <= td.bags[c]


class TestAssembleTree:

    def test_path(self):
        parent, children = assemble_tree([{0, 1}, {1, 2}, {2}], [0, 1, 2])
        assert parent == [1, 2, None]
        assert children == [[], [0], [1]]

    def test_parent_is_soonest_eliminated_member(self):
        # bag of step 0 holds vertices eliminated at steps 2 and 1
        bags = [{0, 1, 2}, {2, 1}, {1}]
        nodes_order = [0, 2, 1]
        parent, children = assemble_tree(bags, nodes_order)

        assert parent == [1, 2, None]
        assert children == [[], [0], [1]]

    def test_forest(self):
        parent, _ = assemble_tree([{0}, {1}], [0, 1])
        assert parent == [None, None]


class TestCompressTree:

    def test_child_contained_in_parent(self):
        bags, parent, children = compress_tree([{0}, {0, 1}], [1, None], [[], [0]])

        assert bags == [{0, 1}]
        assert parent == [None]
        assert children == [[]]

    def test_children_move_to_parent(self):
        bags, parent, children = compress_tree(
            [{0, 1}, {1, 2}, {1, 2, 3}],
            [1, 2, None],
            [[], [0], [1]],
        )

        assert bags == [{0, 1}, {1, 2, 3}]
        assert parent == [1, None]
        assert children == [[], [0]]

    def test_bag_replaces_smaller_parent(self):
        bags, parent, children = compress_tree(
            [{0, 3}, {0}, {0, 1}],
            [1, 2, None],
            [[], [0], [1]],
        )

        assert bags == [{0, 3}, {0, 1}]
        assert parent == [1, None]
        assert children == [[], [0]]

    def test_chain_collapses(self):
        bags, parent, _ = compress_tree(
            [{0, 1, 2}, {1, 2}, {2}],
            [1, 2, None],
            [[], [0], [1]],
        )
        assert bags == [{0, 1, 2}]
        assert parent == [None]

    def test_incomparable_bags_kept(self):
        bags, parent, children = compress_tree(
            [{0, 1}, {1, 2}],
            [1, None],
            [[], [0]],
        )
        assert bags == [{0, 1}, {1, 2}]
        assert parent == [1, None]
        assert children == [[], [0]]


class TestDecomposeCNF:

    def test_two_components(self):
        """Disconnected formula gives a forest of two bags."""
        td = decompose_cnf(parse_dimacs_string(TWO_EDGES), heuristic="min_degree")

        assert td.bags == [{0, 1}, {2, 3}]
        assert td.tree_edges == []
        assert td.roots == [0, 1]
        assert td.tree_width == 1
        assert td.elimination_order == [0, 1, 2, 3]

    def test_triangle(self):
        td = decompose_cnf(parse_dimacs_string(TRIANGLE))

        assert td.bags == [{0, 1, 2}]
        assert td.num_bags == 1
        assert td.tree_width == 2
        assert td.width == 2

    def test_square(self):
        td = decompose_cnf(parse_dimacs_string(SQUARE), heuristic="min_fill")

        assert td.elimination_order[0] == 0
        assert td.bags == [{0, 1, 3}, {1, 2, 3}]
        assert td.parent == [1, None]
        assert td.tree_edges == [(1, 0)]
        assert td.tree_width == 2

    def test_empty_clause(self):
        cnf = parse_dimacs_string("p cnf 2 2\n1 0\n0\n")
        td = decompose_cnf(cnf)

        assert td.bags == [{0}, {1}]
        is_valid, errors = verify_tree_decomposition(td, cnf)
        assert is_valid, errors

    def test_sample_cnf_valid(self):
        """Test tree decomposition of sample CNF."""
        cnf = parse_dimacs_string(SAMPLE_CNF)
        td = decompose_cnf(cnf)

        assert td.num_bags > 0
        assert td.tree_width >= 2
        is_valid, errors = verify_tree_decomposition(td, cnf)
        assert is_valid, f"Invalid tree decomposition: {errors}"

    @pytest.mark.parametrize("heuristic", ["min_fill", "min_degree"])
    @pytest.mark.parametrize("seed", range(5))
    def test_random_formulas(self, heuristic, seed):
        cnf = random_cnf(30, 45, seed)
        td = decompose_cnf(cnf, heuristic=heuristic)

        is_valid, errors = verify_tree_decomposition(td, cnf)
        assert is_valid, errors
        assert td.tree_width == max(len(bag) for bag in td.bags) - 1
        # every clause is a clique of the primal graph
        largest = max(len(set(abs(lit) for lit in c)) for c in cnf.clauses)
        assert td.tree_width >= largest - 1
        assert sorted(td.elimination_order) == list(range(30))
        assert_no_nested_edges(td)

    def test_larger_cnf(self):
        cnf = parse_dimacs_string(LARGER_CNF)
        td = decompose_cnf(cnf)

        is_valid, errors = verify_tree_decomposition(td, cnf)
        assert is_valid, errors
        assert all(td.bags)
        for b, p in enumerate(td.parent):
            if p is not None:
                assert b in td.children[p]

    def test_deterministic(self):
        cnf = random_cnf(25, 40, seed=42)
        first = decompose_cnf(cnf)
        second = decompose_cnf(cnf)

        assert first.bags == second.bags
        assert first.tree_edges == second.tree_edges

    def test_heuristic_instance(self):
        from couaincre.decomposition.heuristics import MinDegree

        td = decompose_graph(build_primal_graph(3, [[1, 2, 3]]), MinDegree())
        assert td.bags == [{0, 1, 2}]

    def test_unknown_method(self):
        with pytest.raises(ConfigurationError):
            decompose_cnf(parse_dimacs_string(TRIANGLE), method="quickbb")

    def test_unknown_heuristic(self):
        with pytest.raises(ConfigurationError):
            decompose_cnf(parse_dimacs_string(TRIANGLE), heuristic="random")

    def test_out_of_range_literal(self):
        cnf = CNF(num_variables=2, num_clauses=1, clauses=[[1, 5]])
        with pytest.raises(ConfigurationError):
            decompose_cnf(cnf)

    def test_verify_detects_missing_clause(self):
        cnf = parse_dimacs_string(TRIANGLE)
        td = TreeDecomposition.from_forest([{0, 1}, {1, 2}], [1, None], [[], [0]])

        is_valid, errors = verify_tree_decomposition(td, cnf)
        assert not is_valid
        assert any("Clause 2" in e for e in errors)

    def test_verify_detects_disconnected_variable(self):
        cnf = parse_dimacs_string("p cnf 3 2\n1 2 0\n2 3 0\n")
        td = TreeDecomposition.from_forest([{0, 1}, {2}, {1, 2}], [1, None, 1], [[], [0, 2], []])

        is_valid, errors = verify_tree_decomposition(td, cnf)
        assert not is_valid
        assert any("connectivity" in e for e in errors)


class TestPaceFormats:

    def test_write_graph_file(self, tmp_path):
        path = tmp_path / "primal.gr"
        write_graph_file(3, [(0, 1), (1, 2)], path)

        assert path.read_text().splitlines() == ["p tw 3 2", "1 2", "2 3"]

    def test_write_tree_decomposition(self, tmp_path):
        td = decompose_cnf(parse_dimacs_string(SQUARE))
        path = tmp_path / "square.td"
        write_tree_decomposition(td, 4, path)

        assert path.read_text().splitlines() == [
            "s td 2 3 4",
            "b 1 1 2 4",
            "b 2 2 3 4",
            "2 1",
        ]

    def test_roundtrip(self, tmp_path):
        cnf = parse_dimacs_string(LARGER_CNF)
        td = decompose_cnf(cnf)
        path = tmp_path / "larger.td"
        write_tree_decomposition(td, cnf.num_variables, path)

        parsed = parse_tree_decomposition(path)
        assert parsed.bags == td.bags
        assert parsed.tree_width == td.tree_width
        assert {frozenset(e) for e in parsed.tree_edges} == {frozenset(e) for e in td.tree_edges}
        is_valid, errors = verify_tree_decomposition(parsed, cnf)
        assert is_valid, errors

    def test_parse_orients_from_lowest_bag(self):
        td = parse_tree_decomposition_string(
            "c produced elsewhere\n"
            "s td 3 3 4\n"
            "b 1 1 2 4\n"
            "b 2 2 3 4\n"
            "b 3 3\n"
            "2 1\n"
            "3 2\n"
        )

        assert td.bags == [{0, 1, 3}, {1, 2, 3}, {2}]
        assert td.parent == [None, 0, 1]
        assert td.tree_edges == [(0, 1), (1, 2)]
        assert td.tree_width == 2

    def test_parse_invalid_solution_line(self):
        with pytest.raises(ConfigurationError):
            parse_tree_decomposition_string("s tw 1 1 1\n")


class TestFlowCutter:

    def test_missing_binary_falls_back(self, tmp_path):
        cnf = parse_dimacs_string(SQUARE)
        td = decompose_with_flowcutter(cnf, str(tmp_path / "flow_cutter_pace17"), timeout=1)

        assert td.bags == [{0, 1, 3}, {1, 2, 3}]

    def test_reads_solver_output(self, tmp_path):
        script = tmp_path / "fake_flowcutter"
        script.write_text(
            "#!/bin/sh\n"
            "echo 'c status 3 0'\n"
            "echo 's td 2 3 4'\n"
            "echo 'b 1 1 2 3'\n"
            "echo 'b 2 1 3 4'\n"
            "echo '1 2'\n"
        )
        script.chmod(script.stat().st_mode | stat.S_IEXEC)

        cnf = parse_dimacs_string(SQUARE)
        td = decompose_cnf(cnf, method="flowcutter", flowcutter_path=str(script), timeout=10)

        assert td.bags == [{0, 1, 2}, {0, 2, 3}]
        assert td.tree_edges == [(0, 1)]
        is_valid, errors = verify_tree_decomposition(td, cnf)
        assert is_valid, errors

    def test_no_solution_falls_back(self, tmp_path):
        script = tmp_path / "silent_flowcutter"
        script.write_text("#!/bin/sh\necho 'c nothing'\n")
        script.chmod(script.stat().st_mode | stat.S_IEXEC)

        td = decompose_with_flowcutter(parse_dimacs_string(TRIANGLE), str(script), timeout=10)
        assert td.bags == [{0, 1, 2}]

    def test_timeout_reads_best_decomposition(self, tmp_path):
        script = tmp_path / "anytime_flowcutter"
        script.write_text(
            "#!/bin/sh\n"
            "trap 'echo \"s td 1 4 4\"; echo \"b 1 1 2 3 4\"; exit 0' TERM\n"
            "while true; do sleep 0.1; done\n"
        )
        script.chmod(script.stat().st_mode | stat.S_IEXEC)

        td = decompose_with_flowcutter(parse_dimacs_string(SQUARE), str(script), timeout=1)

        assert td.bags == [{0, 1, 2, 3}]
        assert td.tree_width == 3
