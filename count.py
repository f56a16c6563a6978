"""
Model count bounds for a CNF formula.

Usage:
    python count.py input=formula.cnf
    python count.py input=formula.cnf decomposition.heuristic=min_degree
    python count.py input=formula.cnf counter.name=dsharp restrictions.num_samples=500
"""

import hydra
from hydra.utils import to_absolute_path
from omegaconf import DictConfig, OmegaConf
import logging

from couaincre.decomposition.primal_graph import build_primal_graph, primal_edges
from couaincre.preprocessing.cnf_parser import parse_dimacs
from couaincre.preprocessing.tree_decomposition import (
    decompose_cnf,
    write_graph_file,
    write_tree_decomposition,
)
from couaincre.restrictions.solver import RestrictedCounter

logger = logging.getLogger(__name__)


def decompose(cfg: DictConfig, cnf):
    """Compute the tree decomposition and write the optional PACE files."""
    td_cfg = cfg.decomposition

    if td_cfg.get('gr_file'):
        logger.info("Writing primal graph to file")
        graph = build_primal_graph(cnf.num_variables, cnf.clauses)
        write_graph_file(cnf.num_variables, primal_edges(graph), to_absolute_path(td_cfg.gr_file))

    td = decompose_cnf(
        cnf,
        heuristic=td_cfg.get('heuristic', 'min_fill'),
        method=td_cfg.get('method', 'greedy'),
        flowcutter_path=td_cfg.get('flowcutter_path'),
        timeout=td_cfg.get('timeout', 5),
        progress=td_cfg.get('progress', False),
    )

    if td_cfg.get('td_file'):
        write_tree_decomposition(td, cnf.num_variables, to_absolute_path(td_cfg.td_file))
    return td


@hydra.main(config_path="conf", config_name="config", version_base=None)
def count(cfg: DictConfig):
    """Main counting function."""
    logger.info(f"Configuration:\n{OmegaConf.to_yaml(cfg)}")

    cnf = parse_dimacs(to_absolute_path(cfg.input))
    logger.info(f"Formula has {cnf.num_variables} variables and {cnf.num_clauses} clauses")

    logger.info("Computing tree decomposition")
    td = decompose(cfg, cnf)

    restr_cfg = cfg.restrictions
    solver = RestrictedCounter(
        cnf,
        counter=cfg.counter.name,
        num_samples=restr_cfg.get('num_samples', 1000),
        max_restrictions=restr_cfg.get('max_restrictions', 10),
        decomposition=td,
        within_bags=restr_cfg.get('within_bags', True),
        exact_width=restr_cfg.get('exact_width'),
        least_satisfied=restr_cfg.get('least_satisfied', False),
        timeout=cfg.counter.get('timeout', 5000),
        counter_path=cfg.counter.get('path'),
        progress=restr_cfg.get('progress', True),
    )
    result = solver.solve()

    if result.exact:
        logger.info(f"c s exact arb int {result.model_count}")
    else:
        logger.info(f"c s lower bound {result.model_count} ({len(result.bounds)} bound(s))")

    return result


if __name__ == '__main__':
    count()
