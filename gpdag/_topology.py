"""
_topology.py
============
A single rooted, strictly bifurcating tree topology stored as parallel numpy
arrays, with the clade/subsplit bookkeeping needed to harvest rootsplits and
parent-child subsplit pairs (PCSPs).

Public API
----------
  Topology(newick_string)
      Constructor.  Parses the NEWICK string into flat arrays.

  .clades(taxon_index)        -> list[Bitset]   one clade per node
  .rootsplit(clades)          -> Bitset         first half of the root subsplit
  .pcsps(clades)              -> iterator of (parent_key, child_subsplit)
  .subsplit_of(node, clades)  -> Bitset         canonical subsplit of a node

Node-ID conventions (set once; never change)
--------------------------------------------
  Leaves   : 0 … n_leaves-1       (left-to-right in the NEWICK string)
  Internal : n_leaves … n_nodes-2 (post-order)
  Root     : n_nodes-1

Branch lengths are parsed and kept in ``distance`` for callers that want
them, but nothing in the DAG depends on them: the DAG is built from topology
alone.
"""

import logging
from typing import Dict, Iterator, List, Tuple

import numpy as np

from gpdag._bitset import Bitset
from gpdag._utils import format_newick, is_multifurcating

logger = logging.getLogger(__name__)

_DELIMITERS = ",);: \t\r\n"


class Topology:
    """
    A rooted bifurcating topology parsed from NEWICK.

    Attributes (all read-only after construction)
    ----------------------------------------------
    n_nodes     : int             2 * n_leaves - 1
    n_leaves    : int
    root        : int             always n_nodes - 1
    names       : list[str]       taxon name per node; '' for internal nodes
    parent      : int32  [n_nodes]   -1 for root
    left_child  : int32  [n_nodes]   -1 for leaves
    right_child : int32  [n_nodes]   -1 for leaves
    distance    : float64[n_nodes]   branch length to parent; -1.0 if absent
    """

    def __init__(self, newick_string: str) -> None:
        newick = format_newick(newick_string)
        if is_multifurcating(newick):
            logger.warning(
                "Input tree is not strictly bifurcating; multifurcations will be "
                "resolved into zero-length bifurcations in arbitrary order."
            )
            newick = Topology._resolve_multifurcations(newick[:-1])
        self._parse_newick(newick)

        self.n_nodes: int = int(self.parent.shape[0])
        self.n_leaves: int = (self.n_nodes + 1) // 2
        self.root: int = self.n_nodes - 1

        if self.n_leaves < 2:
            raise ValueError(
                f"A topology needs at least two leaves, got {self.n_leaves}: {newick_string!r}"
            )

    # ================================================================== #
    # Clades and subsplits                                                 #
    # ================================================================== #

    def leaf_names(self) -> List[str]:
        return self.names[: self.n_leaves]

    def clades(self, taxon_index: Dict[str, int]) -> List[Bitset]:
        """
        Return the clade of every node as a Bitset over the global namespace.

        Parameters
        ----------
        taxon_index : dict[str, int]
            Taxon name → global position.  Its size fixes the Bitset length.

        Raises
        ------
        KeyError   if a leaf name is missing from *taxon_index*.
        """
        taxon_count = len(taxon_index)
        clades = [None] * self.n_nodes
        for leaf in range(self.n_leaves):
            name = self.names[leaf]
            if name not in taxon_index:
                raise KeyError(f"Taxon '{name}' is not in the taxon namespace.")
            clades[leaf] = Bitset.from_indices(taxon_count, [taxon_index[name]])
        # Internal IDs are assigned in post-order, so children precede parents.
        for node in range(self.n_leaves, self.n_nodes):
            clades[node] = (
                clades[self.left_child[node]] | clades[self.right_child[node]]
            )
        return clades

    def subsplit_of(self, node: int, clades: List[Bitset]) -> Bitset:
        """Canonical subsplit formed by the two child clades of *node*."""
        if self.left_child[node] < 0:
            raise ValueError(f"Node {node} is a leaf and has no subsplit.")
        return Bitset.subsplit_of_pair(
            clades[self.left_child[node]], clades[self.right_child[node]]
        )

    def rootsplit(self, clades: List[Bitset]) -> Bitset:
        """The first clade of the root's canonical subsplit."""
        return self.subsplit_of(self.root, clades).chunk(0)

    def pcsps(self, clades: List[Bitset]) -> Iterator[Tuple[Bitset, Bitset]]:
        """
        Yield ``(parent_key, child_subsplit)`` for every internal, non-root
        node *v*.

        ``parent_key`` is ``clade(sister) + clade(v)``: the parent subsplit
        oriented so that its second half is the clade being split.
        ``child_subsplit`` is the canonical subsplit of *v*'s two children.
        """
        for node in range(self.n_leaves, self.root):
            p = self.parent[node]
            sister = self.right_child[p] if self.left_child[p] == node else self.left_child[p]
            yield clades[sister] + clades[node], self.subsplit_of(node, clades)

    # ================================================================== #
    # NEWICK parsing                                                       #
    # ================================================================== #

    def _parse_newick(self, s: str) -> None:
        """
        **Private.**  Iterative, stack-based scan of a bifurcating NEWICK
        string (trailing ';' included).  Support values after ')' are
        skipped; ':length' suffixes fill ``distance``.
        """
        n_chars = len(s) - 1 if s.endswith(";") else len(s)
        n_leaves = s.count(",", 0, n_chars) + 1
        n_nodes = 2 * n_leaves - 1

        parent = np.full(n_nodes, -1, dtype=np.int32)
        left_child = np.full(n_nodes, -1, dtype=np.int32)
        right_child = np.full(n_nodes, -1, dtype=np.int32)
        distance = np.full(n_nodes, -1.0, dtype=np.float64)
        names = [""] * n_nodes

        stack: List[int] = []
        leaf_id = 0
        internal_id = n_leaves
        i = 0
        while i < n_chars:
            c = s[i]
            if c in " \t\r\n,":
                i += 1
                continue
            if c == "(":
                stack.append(-1)
                i += 1
                continue

            if c == ")":
                i += 1
                if len(stack) < 3 or stack[-3] != -1 or -1 in stack[-2:]:
                    raise ValueError(f"Malformed or non-bifurcating NEWICK: {s!r}")
                right = stack.pop()
                left = stack.pop()
                stack.pop()
                if internal_id >= n_nodes:
                    raise ValueError(f"Malformed NEWICK: {s!r}")
                node_id = internal_id
                internal_id += 1
                left_child[node_id] = left
                right_child[node_id] = right
                parent[left] = node_id
                parent[right] = node_id
                # Skip an optional support value / internal label.
                while i < n_chars and s[i] not in _DELIMITERS:
                    i += 1
            else:
                j = i
                while j < n_chars and s[j] not in _DELIMITERS:
                    j += 1
                if leaf_id >= n_leaves:
                    raise ValueError(f"Malformed NEWICK: {s!r}")
                node_id = leaf_id
                leaf_id += 1
                names[node_id] = s[i:j]
                i = j

            while i < n_chars and s[i] in " \t":
                i += 1
            if i < n_chars and s[i] == ":":
                i += 1
                j = i
                while j < n_chars and s[j] not in ",); \t\r\n":
                    j += 1
                distance[node_id] = float(s[i:j])
                i = j
            stack.append(node_id)

        if stack != [n_nodes - 1] or leaf_id != n_leaves:
            raise ValueError(f"Malformed NEWICK: {s!r}")

        self.names = names
        self.parent = parent
        self.left_child = left_child
        self.right_child = right_child
        self.distance = distance

    @staticmethod
    def _resolve_multifurcations(s: str) -> str:
        """
        **Private static.**  Rewrite a NEWICK string (without ';') so that
        every internal node has exactly two children, cascading extra
        children left to right with zero-length branches:

            (A, B, C, D)  →  (((A, B):0.0, C):0.0, D)

        Returns the rewritten string with a trailing ';'.
        """
        n = len(s)
        stack: List[List[str]] = [[]]
        buf: List[str] = []

        def flush() -> None:
            if buf:
                stack[-1].append("".join(buf))
                buf.clear()

        i = 0
        while i < n:
            c = s[i]
            if c in " \t\r\n":
                i += 1
            elif c == "(":
                flush()
                stack.append([])
                i += 1
            elif c == ",":
                flush()
                i += 1
            elif c == ")":
                flush()
                children = stack.pop()
                while len(children) > 2:
                    first = children.pop(0)
                    second = children.pop(0)
                    children.insert(0, f"({first},{second}):0.0")
                node_str = "(" + ",".join(children) + ")"
                i += 1
                # Carry the suffix (label and/or :length) through verbatim.
                j = i
                while j < n and s[j] not in ",()":
                    j += 1
                node_str += s[i:j].strip()
                i = j
                stack[-1].append(node_str)
            else:
                buf.append(c)
                i += 1
        flush()

        top = stack[0]
        while len(top) > 2:
            first = top.pop(0)
            second = top.pop(0)
            top.insert(0, f"({first},{second}):0.0")
        if len(top) == 1:
            return top[0] + ";"
        return "(" + ",".join(top) + ");"
