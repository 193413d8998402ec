"""
_collection.py
==============
A frequency-weighted sample of rooted tree topologies over one shared taxon
namespace: the input from which a GPDAG is built.

Public API
----------
  RootedTreeCollection(newick_input, taxon_names=None)
      Constructor.  Accepts a list of NEWICK strings (multiplicity 1 each) or
      a dict mapping NEWICK strings to integer multiplicities.  Parses each
      into a Topology, builds the global taxon namespace, validates that every
      tree covers it, then deduplicates topologies.

  .items()  -> iterator of (topology, clades, count), one per distinct topology

Logging
-------
  logging.getLogger('gpdag._collection')
      INFO level:    loading stages, tree/topology/taxon counts, weight of
                     the most frequent topology.
      WARNING level: multifurcation corrections (consolidated), samples with
                     a single topology.

Per-tree multifurcation warnings from 'gpdag._topology' are suppressed
during loading and replaced with one consolidated message.

Global taxon namespace
----------------------
Taxon names are collected across all trees and sorted deterministically
(ASCII order), unless *taxon_names* fixes the order explicitly.  From then on
a taxon is identified only by its position 0..T-1, which is the bit it owns
in every clade Bitset and the id of its fake leaf node in the DAG.

Topology identity
-----------------
Two rooted binary trees have the same topology iff they have the same set of
clades, so ``frozenset(clades)`` is the dedup key.  Branch lengths and child
order in the NEWICK string do not matter.
"""

import logging
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from gpdag._bitset import Bitset
from gpdag._context import suppress_logger
from gpdag._logging import log_collection_statistics, log_multifurcation_warning
from gpdag._topology import Topology
from gpdag._utils import format_newick, is_multifurcating

logger = logging.getLogger(__name__)


class RootedTreeCollection:
    """
    An immutable, deduplicated, weighted sample of rooted topologies.

    Parameters
    ----------
    newick_input : list[str] or dict[str, int]
        Either:
        - **list of NEWICK strings** → each tree has multiplicity 1;
          repeated topologies accumulate.
        - **dict mapping NEWICK strings to multiplicities** → explicit
          positive integer weights.
    taxon_names : sequence of str, optional
        Fixes the taxon order.  Must name exactly the taxa of every tree.

    Attributes (read-only after construction)
    -----------------------------------------
    n_trees          : int                 number of input NEWICK entries
    n_topologies     : int                 distinct topologies
    taxon_count      : int                 T
    taxon_names      : list[str]           position → name
    taxon_index      : dict[str, int]      name → position
    total_weight     : int                 sum of multiplicities
    topology_counter : dict[frozenset, int]
                                           clade set → multiplicity,
                                           first-seen order

    Examples
    --------
    >>> c = RootedTreeCollection(['((A,B),(C,D));', '((A,B),(C,D));',
    ...                           '(A,(B,(C,D)));'])
    >>> c.n_topologies, c.total_weight
    (2, 3)
    >>> c.taxon_names
    ['A', 'B', 'C', 'D']
    """

    # ================================================================== #
    # Construction                                                         #
    # ================================================================== #

    def __init__(
        self, newick_input, taxon_names: Optional[Sequence[str]] = None
    ) -> None:
        if isinstance(newick_input, (list, tuple)):
            weighted = [(format_newick(nwk), 1) for nwk in newick_input]
        elif isinstance(newick_input, dict):
            weighted = [(format_newick(nwk), n) for nwk, n in newick_input.items()]
        else:
            raise TypeError(
                f"newick_input must be list or dict, got {type(newick_input).__name__}"
            )
        if not weighted:
            raise ValueError("A tree collection needs at least one tree.")
        for newick, count in weighted:
            if not isinstance(count, (int, np.integer)) or count <= 0:
                raise ValueError(
                    f"Multiplicities must be positive integers, got {count!r} for {newick}"
                )

        self.n_trees = len(weighted)
        logger.info("Loading %d tree(s) from NEWICK strings...", self.n_trees)

        multifurcating_indices = []
        trees: List[Tuple[Topology, int]] = []
        with suppress_logger("gpdag._topology"):
            for tree_idx, (newick, count) in enumerate(weighted):
                if is_multifurcating(newick):
                    multifurcating_indices.append(tree_idx)
                trees.append((Topology(newick), int(count)))

        log_multifurcation_warning(
            len(multifurcating_indices), multifurcating_indices, self.n_trees
        )

        logger.info("Building global taxon namespace...")
        self._build_taxon_namespace(trees, taxon_names)

        logger.info("Deduplicating topologies...")
        self._build_topology_counter(trees)

        log_collection_statistics(
            self.n_trees,
            self.n_topologies,
            self.taxon_count,
            self.total_weight,
            max(self.topology_counter.values()),
        )

    def _build_taxon_namespace(
        self,
        trees: List[Tuple[Topology, int]],
        taxon_names: Optional[Sequence[str]],
    ) -> None:
        """
        Build the taxon namespace and check that every tree covers it.

        Raises
        ------
        ValueError   on duplicate leaf names, or a tree whose taxon set
                     differs from the namespace.
        """
        leaf_sets = []
        for tree_idx, (topology, _) in enumerate(trees):
            names = topology.leaf_names()
            leaf_set = set(names)
            if len(leaf_set) != len(names):
                raise ValueError(f"Tree {tree_idx} has duplicate taxon names.")
            leaf_sets.append(leaf_set)

        if taxon_names is None:
            self.taxon_names = sorted(set().union(*leaf_sets))
        else:
            self.taxon_names = list(taxon_names)
            if len(set(self.taxon_names)) != len(self.taxon_names):
                raise ValueError("taxon_names contains duplicates.")

        namespace = set(self.taxon_names)
        for tree_idx, leaf_set in enumerate(leaf_sets):
            if leaf_set != namespace:
                missing = sorted(namespace - leaf_set)
                extra = sorted(leaf_set - namespace)
                raise ValueError(
                    f"Tree {tree_idx} does not cover the taxon namespace "
                    f"(missing: {missing}, unexpected: {extra}). All trees in a "
                    "sample must share one taxon set."
                )

        self.taxon_count = len(self.taxon_names)
        self.taxon_index: Dict[str, int] = {
            name: i for i, name in enumerate(self.taxon_names)
        }

    def _build_topology_counter(self, trees: List[Tuple[Topology, int]]) -> None:
        """Deduplicate by clade set, summing multiplicities."""
        self.topology_counter: Dict[frozenset, int] = {}
        self._representatives: Dict[frozenset, Tuple[Topology, List[Bitset]]] = {}
        for topology, count in trees:
            clades = topology.clades(self.taxon_index)
            key = frozenset(clades)
            if key not in self.topology_counter:
                self.topology_counter[key] = 0
                self._representatives[key] = (topology, clades)
            self.topology_counter[key] += count

        self.n_topologies = len(self.topology_counter)
        self.total_weight = sum(self.topology_counter.values())

    # ================================================================== #
    # Public methods                                                       #
    # ================================================================== #

    def items(self) -> Iterator[Tuple[Topology, List[Bitset], int]]:
        """
        Yield ``(topology, clades, count)`` for every distinct topology, in
        first-seen order.  *topology* is the first tree parsed with that
        shape; *clades* are its per-node clade Bitsets.
        """
        for key, count in self.topology_counter.items():
            topology, clades = self._representatives[key]
            yield topology, clades, count

    def __len__(self) -> int:
        return self.n_topologies
