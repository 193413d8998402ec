"""
_dag.py
=======
The generalized-pruning DAG: every distinct subsplit of a weighted topology
sample as one node, every distinct parent-child subsplit pair (PCSP) as one
edge, plus the generators that turn the DAG into ordered operation vectors
for an external likelihood engine.

Public API
----------
  GPDAG(collection)
      Constructor.  Harvests rootsplits and PCSPs from a
      RootedTreeCollection, builds nodes, edges and the generalized PCSP
      indexer.  Immutable afterwards.

  Queries
    .node_count()  .rootsplit_count()  .rootsplit_and_pcsp_count()
    .generalized_pcsp_count()  .edge_count()  .plv_count()
    .plv_index(plv_type, node_id)  .build_uniform_q()
    .children_subsplits(subsplit, include_fake=True)
    .node_id_of(subsplit)  .gpcsp_index_of(pcsp)  .subsplit_range_of(subsplit)

  Traversal orders
    .rootward_pass_traversal()   every node after all of its descendants
    .leafward_pass_traversal()   every node after all of its ancestors

  Operation vectors
    .compute_likelihoods()  .marginal_likelihood()
    .rootward_pass()  .leafward_pass()
    .set_rootward_zero()  .set_leafward_zero()  .set_rhat_to_stationary()
    .branch_length_optimization()  .sbn_parameter_optimization()

Construction
------------
1. Harvest.  Rootsplits take parameter slots [0, R).  Each harvested parent
   key, in sorted order, gets a contiguous block for its distinct children.
   This draft layout (``_parent_to_range`` / ``_index_to_child``) drives the
   child lookup below.
2. Nodes.  T fake leaf nodes ``(0…0 | e_t)`` take ids [0, T).  Then a
   depth-first walk from each root subsplit ``r + ~r`` expands sorted
   children, then rotated children, and creates each node only after both
   expansions finish, so a node's id exceeds those of all its descendants.
3. Edges.  Every non-fake node in id order is connected to its sorted and
   rotated children, fake leaves included, symmetrically.
4. Indexer.  Root subsplits keep [0, R); every non-fake node in id order
   takes one block for its sorted children and one for its rotated children.
   Leaf edges now have slots too, so the final count P exceeds the draft
   count by exactly the number of edges into fake leaves.

Child lookup rule
-----------------
A subsplit has its harvested children if it was seen as a parent key.
Otherwise, if fakes are requested, its first clade is non-empty and its
second clade is a single taxon, it has exactly one child: that taxon's fake
subsplit.

Depth-first walks
-----------------
Every depth-first walk here (node building, both traversal orders, both
schedulers) is written as a generator "frame" per node that yields the ids of
children to descend into.  ``_depth_first`` drives the frames with an
explicit stack, so a deep DAG never hits the interpreter's recursion limit,
while the order of side effects is exactly that of the recursive
formulation: a frame marks its node visited when first advanced, which
happens immediately after its parent yields it.

Logging
-------
  logging.getLogger('gpdag._dag')
      INFO level:  construction stages, node/edge/parameter counts,
                   structural sharing.
      DEBUG level: instruction mix of every generated operation vector.
"""

import logging
from types import MappingProxyType
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple

import numpy as np

from gpdag._bitset import Bitset
from gpdag._logging import (
    compute_edge_count,
    compute_shared_node_count,
    log_dag_statistics,
    log_operation_summary,
)
from gpdag._node import GPDAGNode
from gpdag._operations import (
    PLV_KIND_COUNT,
    EvolveWeighted,
    GPOperationVector,
    IncrementMarginalLikelihood,
    Likelihood,
    Multiply,
    OptimizeBranchLength,
    PLVType,
    SetToStationaryDistribution,
    UpdateSBNProbabilities,
    Zero,
    plv_index,
)
from gpdag._sbn_maps import pcsp_counter_of, rootsplit_counter_of

logger = logging.getLogger(__name__)


def _safe_insert(mapping: dict, key, value, label: str) -> None:
    if key in mapping:
        raise ValueError(f"Key {key!r} inserted twice into {label}.")
    mapping[key] = value


def _depth_first(start, make_frame: Callable[..., Iterator]) -> None:
    """Run generator frames depth-first from *start* with an explicit stack."""
    stack = [make_frame(start)]
    while stack:
        try:
            child = next(stack[-1])
        except StopIteration:
            stack.pop()
            continue
        stack.append(make_frame(child))


class GPDAG:
    """
    An immutable generalized-pruning DAG built from a RootedTreeCollection.

    Parameters
    ----------
    collection : RootedTreeCollection
        The weighted topology sample.

    Attributes (read-only after construction)
    -----------------------------------------
    taxon_count       : int
    rootsplits        : tuple[Bitset]        sorted; index = rootsplit index
    nodes             : tuple[GPDAGNode]     index = node id
    gpcsp_indexer     : mapping[Bitset, int] root subsplits and PCSPs → [0, P)
    subsplit_to_range : mapping[Bitset, (int, int)]
                        parent subsplit (oriented) → its children's slots

    Examples
    --------
    >>> dag = GPDAG(RootedTreeCollection(['((A,B),(C,D));', '(A,(B,(C,D)));']))
    >>> ops = dag.set_rootward_zero() + dag.set_leafward_zero()
    >>> ops += dag.rootward_pass() + dag.leafward_pass()
    >>> ops += dag.compute_likelihoods()
    >>> engine.run(ops)        # external
    """

    # ================================================================== #
    # Construction                                                         #
    # ================================================================== #

    def __init__(self, collection) -> None:
        self.taxon_count: int = collection.taxon_count

        self._parent_to_range: Dict[Bitset, Tuple[int, int]] = {}
        self._index_to_child: Dict[int, Bitset] = {}
        self._subsplit_to_index: Dict[Bitset, int] = {}
        self._gpcsp_indexer: Dict[Bitset, int] = {}
        self._subsplit_to_range: Dict[Bitset, Tuple[int, int]] = {}
        self._nodes: List[GPDAGNode] = []

        logger.info("Harvesting rootsplits and PCSPs...")
        self._process_trees(collection)

        logger.info("Building DAG nodes...")
        self._build_nodes()

        logger.info("Building DAG edges...")
        self._build_edges()

        logger.info("Building generalized PCSP indexer...")
        self._build_pcsp_indexer()

        self._root_ids = tuple(
            self.node_id_of(rootsplit + ~rootsplit) for rootsplit in self._rootsplits
        )

        self.rootsplits = self._rootsplits
        self.nodes = tuple(self._nodes)
        self.gpcsp_indexer = MappingProxyType(self._gpcsp_indexer)
        self.subsplit_to_range = MappingProxyType(self._subsplit_to_range)

        log_dag_statistics(
            self.taxon_count,
            self.node_count(),
            self.edge_count(),
            self.rootsplit_count(),
            self.rootsplit_and_pcsp_count(),
            self.generalized_pcsp_count(),
            compute_shared_node_count(self._nodes, self.taxon_count),
        )

    def _process_trees(self, collection) -> None:
        """Draft parameter layout: rootsplits, then children grouped by parent."""
        self._rootsplits = tuple(rootsplit_counter_of(collection))
        index = len(self._rootsplits)
        for parent, child_counter in pcsp_counter_of(collection).items():
            _safe_insert(
                self._parent_to_range,
                parent,
                (index, index + len(child_counter)),
                "parent_to_range",
            )
            for child in child_counter:
                self._index_to_child[index] = child
                index += 1
        self._rootsplit_and_pcsp_count = index

    def _create_and_insert_node(self, subsplit: Bitset) -> None:
        node_id = len(self._nodes)
        _safe_insert(self._subsplit_to_index, subsplit, node_id, "subsplit_to_index")
        self._nodes.append(GPDAGNode(node_id, subsplit))

    def _build_nodes_frame(self, subsplit: Bitset, visited: Set[Bitset]) -> Iterator[Bitset]:
        visited.add(subsplit)
        for parent in (subsplit, subsplit.rotate_subsplit()):
            for child in self.children_subsplits(parent, include_fake=False):
                if child not in visited:
                    yield child
        self._create_and_insert_node(subsplit)

    def _build_nodes(self) -> None:
        for taxon in range(self.taxon_count):
            self._create_and_insert_node(Bitset.fake_subsplit(taxon, self.taxon_count))

        visited: Set[Bitset] = set()
        for rootsplit in self._rootsplits:
            _depth_first(
                rootsplit + ~rootsplit,
                lambda subsplit: self._build_nodes_frame(subsplit, visited),
            )

    def _build_edges(self) -> None:
        for node in self._nodes[self.taxon_count :]:
            for rotated in (False, True):
                for child_subsplit in self.children_subsplits(node.get_bitset(rotated)):
                    child = self._nodes[self.node_id_of(child_subsplit)]
                    if rotated:
                        node.add_leafward_rotated(child.id)
                        child.add_rootward_rotated(node.id)
                    else:
                        node.add_leafward_sorted(child.id)
                        child.add_rootward_sorted(node.id)

    def _build_pcsp_indexer(self) -> None:
        index = 0
        for rootsplit in self._rootsplits:
            _safe_insert(self._gpcsp_indexer, rootsplit + ~rootsplit, index, "gpcsp_indexer")
            index += 1

        for node in self._nodes[self.taxon_count :]:
            for rotated in (False, True):
                children = node.leafward(rotated)
                if not children:
                    continue
                parent = node.get_bitset(rotated)
                _safe_insert(
                    self._subsplit_to_range,
                    parent,
                    (index, index + len(children)),
                    "subsplit_to_range",
                )
                for child_id in children:
                    _safe_insert(
                        self._gpcsp_indexer,
                        parent + self._nodes[child_id].subsplit,
                        index,
                        "gpcsp_indexer",
                    )
                    index += 1

    # ================================================================== #
    # Queries                                                              #
    # ================================================================== #

    def node_count(self) -> int:
        """Number of DAG nodes, fake leaves included."""
        return len(self._nodes)

    def rootsplit_count(self) -> int:
        """Number of distinct rootsplits (parameter slots [0, R))."""
        return len(self._rootsplits)

    def rootsplit_and_pcsp_count(self) -> int:
        """Rootsplits plus harvested PCSPs (no edges into fake leaves)."""
        return self._rootsplit_and_pcsp_count

    def generalized_pcsp_count(self) -> int:
        """Length of the parameter vector: harvested slots plus leaf-edge slots."""
        fake_parameter_count = sum(
            len(node.rootward_sorted) + len(node.rootward_rotated)
            for node in self._nodes[: self.taxon_count]
        )
        return self._rootsplit_and_pcsp_count + fake_parameter_count

    def edge_count(self) -> int:
        """Number of leafward edges, edges into fake leaves included."""
        return compute_edge_count(self._nodes)

    def plv_count(self) -> int:
        """Number of PLV buffers an engine must allocate."""
        return PLV_KIND_COUNT * len(self._nodes)

    def plv_index(self, plv_type, node_id: int) -> int:
        """
        Flat PLV buffer index for one node.

        Parameters
        ----------
        plv_type : PLVType or int
            Buffer kind.
        node_id : int
            Node id in [0, node_count()).

        Raises
        ------
        ValueError   for an unknown kind or an out-of-range node id.
        """
        return plv_index(plv_type, len(self._nodes), node_id)

    def get_node(self, node_id: int) -> GPDAGNode:
        """Return the node with id *node_id*."""
        return self._nodes[node_id]

    def root_ids(self) -> Tuple[int, ...]:
        """Node id of each rootsplit's root subsplit, by rootsplit index."""
        return self._root_ids

    def node_id_of(self, subsplit: Bitset) -> int:
        try:
            return self._subsplit_to_index[subsplit]
        except KeyError:
            raise KeyError(
                f"Subsplit {subsplit.subsplit_to_string()} is not a node of the DAG."
            ) from None

    def gpcsp_index_of(self, pcsp: Bitset) -> int:
        try:
            return self._gpcsp_indexer[pcsp]
        except KeyError:
            raise KeyError(
                f"Non-existent PCSP index for {pcsp.to_string()}."
            ) from None

    def subsplit_range_of(self, subsplit: Bitset) -> Tuple[int, int]:
        """Parameter slots [start, stop) of the children of an oriented subsplit."""
        try:
            return self._subsplit_to_range[subsplit]
        except KeyError:
            raise KeyError(
                f"Subsplit {subsplit.subsplit_to_string()} has no child range."
            ) from None

    def children_subsplits(self, subsplit: Bitset, include_fake: bool = True) -> List[Bitset]:
        """
        Child subsplits of *subsplit*, which splits its second clade.

        Harvested children come first in draft-index order.  A subsplit that
        was never a parent, has a non-empty first clade and a singleton second
        clade has the fake subsplit of that taxon as its only child when
        *include_fake* is set.
        """
        if subsplit in self._parent_to_range:
            start, stop = self._parent_to_range[subsplit]
            return [self._index_to_child[i] for i in range(start, stop)]
        if include_fake:
            first, second = subsplit.chunk(0), subsplit.chunk(1)
            if first.any() and second.singleton_option() is not None:
                return [Bitset(self.taxon_count) + second]
        return []

    def build_uniform_q(self) -> np.ndarray:
        """
        Parameter vector with a uniform categorical distribution over the
        rootsplits and over the children of every parent subsplit.
        """
        q = np.ones(self.generalized_pcsp_count(), dtype=np.float64)
        q[: self.rootsplit_count()] = 1.0 / self.rootsplit_count()
        for start, stop in self._subsplit_to_range.values():
            q[start:stop] = 1.0 / (stop - start)
        return q

    def to_string(self) -> str:
        """One line per node: id, subsplit and the four adjacency lists."""
        return "\n".join(str(node) for node in self._nodes)

    def pcsp_indexer_to_string(self) -> str:
        lines = []
        for key, index in self._gpcsp_indexer.items():
            if len(key) == 2 * self.taxon_count:
                lines.append(f"{key.subsplit_to_string()}, {index}")
            else:
                lines.append(f"{key.pcsp_to_string()}, {index}")
        return "\n".join(lines)

    def _real_nodes(self) -> List[GPDAGNode]:
        if self.taxon_count >= len(self._nodes):
            raise ValueError("No real DAG nodes!")
        return self._nodes[self.taxon_count :]

    def _gpcsp_of(self, parent: Bitset, child_id: int) -> int:
        return self.gpcsp_index_of(parent + self._nodes[child_id].subsplit)

    # ================================================================== #
    # Traversal orders                                                     #
    # ================================================================== #

    def _post_order(self, start_ids, rootward: bool) -> List[int]:
        visit_order: List[int] = []
        visited: Set[int] = set()

        def frame(node_id: int) -> Iterator[int]:
            visited.add(node_id)
            node = self._nodes[node_id]
            neighbors = node.rootward if rootward else node.leafward
            for rotated in (False, True):
                for neighbor_id in neighbors(rotated):
                    if neighbor_id not in visited:
                        yield neighbor_id
            visit_order.append(node_id)

        for start in start_ids:
            if start not in visited:
                _depth_first(start, frame)
        return visit_order

    def rootward_pass_traversal(self) -> List[int]:
        """
        Order for propagating toward the root: depth-first from every root
        along leafward edges, post-order, so every node follows all of its
        descendants.
        """
        return self._post_order(self._root_ids, rootward=False)

    def leafward_pass_traversal(self) -> List[int]:
        """
        Order for propagating toward the leaves: depth-first from every leaf
        along rootward edges, post-order, so every node follows all of its
        ancestors.
        """
        return self._post_order(range(self.taxon_count), rootward=True)

    # ================================================================== #
    # Operation vectors                                                    #
    # ================================================================== #

    def _p(self, node_id: int) -> int:
        return self.plv_index(PLVType.P, node_id)

    def _r(self, node_id: int, rotated: bool) -> int:
        return self.plv_index(PLVType.R_TILDE if rotated else PLVType.R, node_id)

    def _p_hat(self, node_id: int, rotated: bool) -> int:
        return self.plv_index(PLVType.P_HAT_TILDE if rotated else PLVType.P_HAT, node_id)

    def _r_hat(self, node_id: int) -> int:
        return self.plv_index(PLVType.R_HAT, node_id)

    def compute_likelihoods(self) -> GPOperationVector:
        """
        One Likelihood per edge (R for sorted children, R~ for rotated
        children), then the marginal likelihood over rootsplits.
        """
        operations: GPOperationVector = []
        for node in self._real_nodes():
            for rotated in (False, True):
                parent = node.get_bitset(rotated)
                for child_id in node.leafward(rotated):
                    operations.append(
                        Likelihood(
                            self._gpcsp_of(parent, child_id),
                            self._r(node.id, rotated),
                            self._p(child_id),
                        )
                    )
        operations.extend(self.marginal_likelihood())
        log_operation_summary("compute_likelihoods", operations)
        return operations

    def marginal_likelihood(self) -> GPOperationVector:
        """
        One IncrementMarginalLikelihood per rootsplit, combining the root's
        r_hat (stationary seed) with its p vector.

        Returns
        -------
        list[GPOperation]
        """
        return [
            IncrementMarginalLikelihood(self._r_hat(root_id), rootsplit_idx, self._p(root_id))
            for rootsplit_idx, root_id in enumerate(self._root_ids)
        ]

    def _add_rootward_weighted_sum(
        self, node: GPDAGNode, rotated: bool, operations: GPOperationVector
    ) -> None:
        parent = node.get_bitset(rotated)
        for child_id in node.leafward(rotated):
            operations.append(
                EvolveWeighted(
                    self._p_hat(node.id, rotated),
                    self._gpcsp_of(parent, child_id),
                    self._p(child_id),
                )
            )

    def _update_r_hat(
        self, node: GPDAGNode, rotated: bool, operations: GPOperationVector
    ) -> None:
        """r_hat(s) += q(s|t) P(s|t) r(t) for every parent t on one side."""
        for parent_id in node.rootward(rotated):
            parent = self._nodes[parent_id]
            operations.append(
                EvolveWeighted(
                    self._r_hat(node.id),
                    self.gpcsp_index_of(parent.get_bitset(rotated) + node.subsplit),
                    self._r(parent_id, rotated),
                )
            )

    def rootward_pass(self, visit_order: Optional[List[int]] = None) -> GPOperationVector:
        """
        p_hat(s) = sum_t q(t|s) P(t|s) p(t) on each side, then
        p(s) = p_hat(s) * p_hat_tilde(s).  Buffers must be zeroed first
        (``set_rootward_zero``).
        """
        if visit_order is None:
            visit_order = self.rootward_pass_traversal()
        operations: GPOperationVector = []
        for node_id in visit_order:
            node = self._nodes[node_id]
            if node.is_leaf():
                continue
            self._add_rootward_weighted_sum(node, False, operations)
            self._add_rootward_weighted_sum(node, True, operations)
            operations.append(
                Multiply(self._p(node_id), self._p_hat(node_id, False), self._p_hat(node_id, True))
            )
        log_operation_summary("rootward_pass", operations)
        return operations

    def leafward_pass(self, visit_order: Optional[List[int]] = None) -> GPOperationVector:
        """
        r_hat(s) = sum_t q(s|t) P(s|t) r(t), then r(s) = r_hat(s) * p_hat_tilde(s)
        and r_tilde(s) = r_hat(s) * p_hat(s).  Buffers must be zeroed and
        seeded first (``set_leafward_zero``).
        """
        if visit_order is None:
            visit_order = self.leafward_pass_traversal()
        operations: GPOperationVector = []
        for node_id in visit_order:
            node = self._nodes[node_id]
            self._update_r_hat(node, False, operations)
            self._update_r_hat(node, True, operations)
            self._append_r_updates(node_id, operations)
        log_operation_summary("leafward_pass", operations)
        return operations

    def _append_r_updates(self, node_id: int, operations: GPOperationVector) -> None:
        operations.append(
            Multiply(self._r(node_id, False), self._r_hat(node_id), self._p_hat(node_id, True))
        )
        operations.append(
            Multiply(self._r(node_id, True), self._r_hat(node_id), self._p_hat(node_id, False))
        )

    def set_rootward_zero(self) -> GPOperationVector:
        """Zero p, p_hat and p_hat_tilde of every non-fake node."""
        operations: GPOperationVector = []
        for node_id in range(self.taxon_count, len(self._nodes)):
            operations.append(Zero(self._p(node_id)))
            operations.append(Zero(self._p_hat(node_id, False)))
            operations.append(Zero(self._p_hat(node_id, True)))
        return operations

    def set_leafward_zero(self) -> GPOperationVector:
        """Zero every rootward-side buffer, then seed each root's r_hat."""
        operations: GPOperationVector = []
        for node_id in range(len(self._nodes)):
            operations.append(Zero(self._r_hat(node_id)))
            operations.append(Zero(self._r(node_id, False)))
            operations.append(Zero(self._r(node_id, True)))
        operations.extend(self.set_rhat_to_stationary())
        return operations

    def set_rhat_to_stationary(self) -> GPOperationVector:
        """Seed r_hat of every root with the stationary distribution."""
        return [
            SetToStationaryDistribution(self._r_hat(root_id), rootsplit_idx)
            for rootsplit_idx, root_id in enumerate(self._root_ids)
        ]

    # ================================================================== #
    # Interleaved schedulers                                               #
    # ================================================================== #

    def _optimize_branch_length_update_p_hat(
        self, node: GPDAGNode, child_id: int, rotated: bool, operations: GPOperationVector
    ) -> None:
        gpcsp = self._gpcsp_of(node.get_bitset(rotated), child_id)
        operations.append(
            OptimizeBranchLength(self._p(child_id), self._r(node.id, rotated), gpcsp)
        )
        operations.append(EvolveWeighted(self._p_hat(node.id, rotated), gpcsp, self._p(child_id)))

    def _update_p_hat_compute_likelihood(
        self, node: GPDAGNode, child_id: int, rotated: bool, operations: GPOperationVector
    ) -> None:
        gpcsp = self._gpcsp_of(node.get_bitset(rotated), child_id)
        operations.append(EvolveWeighted(self._p_hat(node.id, rotated), gpcsp, self._p(child_id)))
        operations.append(Likelihood(gpcsp, self._r(node.id, rotated), self._p(child_id)))

    def _optimize_sbn_parameters(self, subsplit: Bitset, operations: GPOperationVector) -> None:
        if subsplit in self._subsplit_to_range:
            start, stop = self._subsplit_to_range[subsplit]
            if stop - start > 1:
                operations.append(UpdateSBNProbabilities(start, stop))

    def _schedule_frame(
        self,
        node_id: int,
        visited: Set[int],
        operations: GPOperationVector,
        update_p_hat: Callable,
        optimize_sbn: bool,
    ) -> Iterator[int]:
        """
        Schedule one node.  Its own r vectors are rebuilt first from the
        current state of its parents; each child is finished (recursively)
        before the edge to it is used, and r on the opposite side is rebuilt
        as soon as p_hat on one side is complete.  Anything touched earlier
        in the pass is therefore up to date when an edge is optimized.
        """
        visited.add(node_id)
        node = self._nodes[node_id]

        if not node.is_root():
            operations.append(Zero(self._r_hat(node_id)))
            self._update_r_hat(node, False, operations)
            self._update_r_hat(node, True, operations)
            self._append_r_updates(node_id, operations)

        if node.is_leaf():
            return

        for rotated in (False, True):
            operations.append(Zero(self._p_hat(node_id, rotated)))
            for child_id in node.leafward(rotated):
                if child_id not in visited:
                    yield child_id
                update_p_hat(node, child_id, rotated, operations)
            if optimize_sbn:
                self._optimize_sbn_parameters(node.get_bitset(rotated), operations)
            # p_hat on this side is final, so r on the other side can be rebuilt.
            operations.append(
                Multiply(
                    self._r(node_id, not rotated),
                    self._r_hat(node_id),
                    self._p_hat(node_id, rotated),
                )
            )

        operations.append(
            Multiply(self._p(node_id), self._p_hat(node_id, False), self._p_hat(node_id, True))
        )

    def _schedule(
        self,
        root_id: int,
        visited: Set[int],
        operations: GPOperationVector,
        update_p_hat: Callable,
        optimize_sbn: bool,
    ) -> None:
        _depth_first(
            root_id,
            lambda node_id: self._schedule_frame(
                node_id, visited, operations, update_p_hat, optimize_sbn
            ),
        )

    def branch_length_optimization(self) -> GPOperationVector:
        """
        One pass of branch-length optimization over every edge, interleaved
        with the PLV updates that keep each optimization step current.
        """
        operations: GPOperationVector = []
        visited: Set[int] = set()
        for root_id in self._root_ids:
            self._schedule(
                root_id, visited, operations, self._optimize_branch_length_update_p_hat, False
            )
        log_operation_summary("branch_length_optimization", operations)
        return operations

    def sbn_parameter_optimization(self) -> GPOperationVector:
        """
        One pass of SBN parameter updates: per-edge likelihoods are refreshed
        and each child range renormalized as soon as its likelihoods are
        complete; rootsplit probabilities are renormalized last.
        """
        operations: GPOperationVector = []
        visited: Set[int] = set()
        for rootsplit_idx, root_id in enumerate(self._root_ids):
            self._schedule(
                root_id, visited, operations, self._update_p_hat_compute_likelihood, True
            )
            operations.append(
                IncrementMarginalLikelihood(self._r_hat(root_id), rootsplit_idx, self._p(root_id))
            )
        # p vectors at the roots are current here, so rootsplits go last.
        operations.append(UpdateSBNProbabilities(0, self.rootsplit_count()))
        log_operation_summary("sbn_parameter_optimization", operations)
        return operations
