"""
gpdag
=====

Generalized-pruning DAGs for phylogenetic posterior approximation.

*gpdag* merges a frequency-weighted sample of rooted binary topologies into a
single directed acyclic graph of subsplits and emits ordered operation
vectors that an external likelihood engine executes to compute marginal
likelihoods, optimize branch lengths and update subsplit Bayes network (SBN)
probabilities over every topology the DAG spans.

Main Classes
------------
GPDAG : The subsplit DAG and its operation-vector generators
RootedTreeCollection : Deduplicated, weighted sample of rooted topologies
Topology : Single rooted topology with NEWICK parsing
Bitset : Immutable bit vector for clades, subsplits and PCSPs
GPDAGNode : One DAG node and its adjacency lists

Operations
----------
PLVType : The six PLV buffer kinds
Zero, SetToStationaryDistribution, Multiply, EvolveWeighted, Likelihood,
IncrementMarginalLikelihood, OptimizeBranchLength, UpdateSBNProbabilities

Context Managers
----------------
quiet : Suppress logging during operations
suppress_logger : Suppress specific logger
suppress_warnings : Suppress specific warnings

Examples
--------
Basic usage:

>>> from gpdag import GPDAG, RootedTreeCollection
>>> trees = ['((A,B),(C,D));', '(A,(B,(C,D)));']
>>> dag = GPDAG(RootedTreeCollection(trees))
>>> dag.node_count(), dag.generalized_pcsp_count()
(9, 12)
>>> ops = dag.set_rootward_zero() + dag.set_leafward_zero()
>>> ops += dag.rootward_pass() + dag.leafward_pass() + dag.compute_likelihoods()

With context managers:

>>> from gpdag import quiet
>>> with quiet():
...     dag = GPDAG(RootedTreeCollection(large_tree_list))
"""

__version__ = "0.1.0"

# Main classes
from ._bitset import Bitset
from ._topology import Topology
from ._collection import RootedTreeCollection
from ._node import GPDAGNode
from ._dag import GPDAG

# Operations
from ._operations import (
    PLVType,
    plv_index,
    operation_summary,
    Zero,
    SetToStationaryDistribution,
    Multiply,
    EvolveWeighted,
    Likelihood,
    IncrementMarginalLikelihood,
    OptimizeBranchLength,
    UpdateSBNProbabilities,
)

# Harvesting
from ._sbn_maps import rootsplit_counter_of, pcsp_counter_of

# Context managers (user-facing utilities)
from ._context import (
    suppress_logger,
    quiet,
    suppress_warnings,
)

# Utilities
from ._utils import format_newick

# Public API
__all__ = [
    # Main classes
    "GPDAG",
    "RootedTreeCollection",
    "Topology",
    "Bitset",
    "GPDAGNode",
    # Operations
    "PLVType",
    "plv_index",
    "operation_summary",
    "Zero",
    "SetToStationaryDistribution",
    "Multiply",
    "EvolveWeighted",
    "Likelihood",
    "IncrementMarginalLikelihood",
    "OptimizeBranchLength",
    "UpdateSBNProbabilities",
    # Harvesting
    "rootsplit_counter_of",
    "pcsp_counter_of",
    # Context managers
    "suppress_logger",
    "quiet",
    "suppress_warnings",
    # Utilities
    "format_newick",
    # Version info
    "__version__",
]
