"""
_logging.py
===========
Logging functions for gpdag.

All ``log_*`` functions in this module have NO side effects except logging.
They take computed data as parameters and format/emit log messages.  The
``compute_*`` helpers at the bottom derive that data and never log.

This separation ensures:
- Logging can be easily disabled/mocked in tests
- Computation is separate from presentation
"""

import logging
from typing import Any, Iterable, List, Sequence

from gpdag._operations import operation_summary


logger = logging.getLogger(__name__)


# ============================================================================ #
# Tree Collection Logging (called during initialization)
# ============================================================================ #


def log_multifurcation_warning(
    n_multifurcating: int, multifurcating_indices: List[int], n_trees: int
) -> None:
    """
    Emit consolidated multifurcation warning.

    Parameters
    ----------
    n_multifurcating : int
        Number of trees that required multifurcation resolution.
    multifurcating_indices : List[int]
        Indices of trees that were multifurcating.
    n_trees : int
        Total number of trees in the sample.
    """
    if n_multifurcating == 0:
        return
    if n_multifurcating == 1:
        logger.warning(
            "1 tree required multifurcation resolution (tree index %d). "
            "Each multifurcation was resolved into one arbitrary bifurcating "
            "topology, which adds subsplits that were never observed.",
            multifurcating_indices[0],
        )
    elif n_multifurcating <= 5:
        logger.warning(
            "%d trees required multifurcation resolution (tree indices: %s). "
            "Each multifurcation was resolved into one arbitrary bifurcating "
            "topology, which adds subsplits that were never observed.",
            n_multifurcating,
            ", ".join(map(str, multifurcating_indices)),
        )
    else:
        logger.warning(
            "%d trees required multifurcation resolution (%.1f%% of total). "
            "Each multifurcation was resolved into one arbitrary bifurcating "
            "topology, which adds subsplits that were never observed.",
            n_multifurcating,
            100.0 * n_multifurcating / n_trees,
        )


def log_collection_statistics(
    n_trees: int,
    n_topologies: int,
    taxon_count: int,
    total_weight: int,
    max_multiplicity: int,
) -> None:
    """
    Log sample statistics: tree and taxon counts, topology diversity.

    Parameters
    ----------
    n_trees : int
        Number of input trees (distinct NEWICK entries).
    n_topologies : int
        Number of distinct rooted topologies after deduplication.
    taxon_count : int
        Size of the shared taxon namespace.
    total_weight : int
        Sum of multiplicities over the sample.
    max_multiplicity : int
        Largest multiplicity of a single topology.
    """
    logger.info(
        "Sample built: %d trees, %d distinct topologies, %d taxa, total weight %d",
        n_trees,
        n_topologies,
        taxon_count,
        total_weight,
    )
    logger.info(
        "Most frequent topology carries %.1f%% of the sample weight",
        100.0 * max_multiplicity / total_weight,
    )

    if n_topologies == 1 and total_weight > 1:
        logger.warning(
            "All %d sampled trees share one topology; the DAG will contain "
            "no structural sharing to exploit.",
            total_weight,
        )


# ============================================================================ #
# DAG Logging (called during construction)
# ============================================================================ #


def log_dag_statistics(
    taxon_count: int,
    node_count: int,
    edge_count: int,
    rootsplit_count: int,
    rootsplit_and_pcsp_count: int,
    generalized_pcsp_count: int,
    shared_node_count: int,
) -> None:
    """
    Log DAG dimensions after construction.

    Parameters
    ----------
    taxon_count : int
        Number of fake leaf nodes (ids [0, taxon_count)).
    node_count : int
        Total number of DAG nodes.
    edge_count : int
        Number of leafward edges, fake-leaf edges included.
    rootsplit_count : int
        Number of distinct rootsplits.
    rootsplit_and_pcsp_count : int
        Rootsplits plus harvested PCSPs.
    generalized_pcsp_count : int
        Length of the flat parameter vector.
    shared_node_count : int
        Nodes reachable from more than one parent edge.
    """
    logger.info(
        "DAG built: %d nodes (%d fake leaves, %d subsplits), %d edges",
        node_count,
        taxon_count,
        node_count - taxon_count,
        edge_count,
    )
    logger.info(
        "Parameters: %d rootsplits, %d rootsplits+PCSPs, %d generalized PCSPs",
        rootsplit_count,
        rootsplit_and_pcsp_count,
        generalized_pcsp_count,
    )
    logger.info(
        "PLV buffers required: %d (6 kinds x %d nodes)", 6 * node_count, node_count
    )
    logger.info(
        "Structural sharing: %d of %d subsplit nodes have several parents",
        shared_node_count,
        node_count - taxon_count,
    )


def log_operation_summary(name: str, operations: Iterable[Any]) -> None:
    """
    Log the instruction mix of one generated operation vector at DEBUG level.

    Parameters
    ----------
    name : str
        Name of the generator (e.g. 'rootward_pass').
    operations : Iterable[GPOperation]
        The generated vector.  Only counted when DEBUG is enabled.
    """
    if not logger.isEnabledFor(logging.DEBUG):
        return
    summary = operation_summary(operations)
    total = sum(summary.values())
    details = ", ".join(f"{k}={v}" for k, v in sorted(summary.items()))
    logger.debug("%s: %d operations (%s)", name, total, details)


# ============================================================================ #
# Helper Functions for Computing Data (not logging)
# ============================================================================ #


def compute_edge_count(nodes: Sequence[Any]) -> int:
    """
    Count leafward edges over all nodes.

    Parameters
    ----------
    nodes : Sequence[GPDAGNode]

    Returns
    -------
    int
    """
    return sum(
        len(node.leafward_sorted) + len(node.leafward_rotated) for node in nodes
    )


def compute_shared_node_count(nodes: Sequence[Any], taxon_count: int) -> int:
    """
    Count non-fake nodes with more than one rootward edge.

    Parameters
    ----------
    nodes : Sequence[GPDAGNode]
    taxon_count : int
        Fake leaf nodes occupy ids [0, taxon_count) and are skipped.

    Returns
    -------
    int
    """
    return sum(
        1
        for node in nodes[taxon_count:]
        if len(node.rootward_sorted) + len(node.rootward_rotated) > 1
    )
