"""
_node.py
========
One node of the generalized-pruning DAG.

Nodes never hold references to each other: adjacency is stored as lists of
integer ids into the DAG's node list.  "Sorted" edges descend from the second
clade of the node's subsplit; "rotated" edges descend from the first clade,
i.e. from the second clade of ``rotate_subsplit()``.
"""

from typing import List

from gpdag._bitset import Bitset


class GPDAGNode:
    """
    A DAG node: an id, a subsplit, and four adjacency lists.

    Attributes
    ----------
    id               : int
    subsplit         : Bitset   length 2T
    leafward_sorted  : list[int]   children splitting subsplit.chunk(1)
    leafward_rotated : list[int]   children splitting subsplit.chunk(0)
    rootward_sorted  : list[int]   parents of which this node is a sorted child
    rootward_rotated : list[int]   parents of which this node is a rotated child
    """

    __slots__ = (
        "id",
        "subsplit",
        "leafward_sorted",
        "leafward_rotated",
        "rootward_sorted",
        "rootward_rotated",
    )

    def __init__(self, node_id: int, subsplit: Bitset) -> None:
        self.id = node_id
        self.subsplit = subsplit
        self.leafward_sorted: List[int] = []
        self.leafward_rotated: List[int] = []
        self.rootward_sorted: List[int] = []
        self.rootward_rotated: List[int] = []

    @staticmethod
    def _append_unique(ids: List[int], node_id: int, label: str) -> None:
        if node_id in ids:
            raise ValueError(f"Edge to node {node_id} already present in {label}.")
        ids.append(node_id)

    def add_leafward_sorted(self, node_id: int) -> None:
        self._append_unique(self.leafward_sorted, node_id, "leafward_sorted")

    def add_leafward_rotated(self, node_id: int) -> None:
        self._append_unique(self.leafward_rotated, node_id, "leafward_rotated")

    def add_rootward_sorted(self, node_id: int) -> None:
        self._append_unique(self.rootward_sorted, node_id, "rootward_sorted")

    def add_rootward_rotated(self, node_id: int) -> None:
        self._append_unique(self.rootward_rotated, node_id, "rootward_rotated")

    def get_bitset(self, rotated: bool = False) -> Bitset:
        return self.subsplit.rotate_subsplit() if rotated else self.subsplit

    def leafward(self, rotated: bool) -> List[int]:
        return self.leafward_rotated if rotated else self.leafward_sorted

    def rootward(self, rotated: bool) -> List[int]:
        return self.rootward_rotated if rotated else self.rootward_sorted

    def is_leaf(self) -> bool:
        return not self.leafward_sorted and not self.leafward_rotated

    def is_root(self) -> bool:
        return not self.rootward_sorted and not self.rootward_rotated

    def __str__(self) -> str:
        return (
            f"{self.id}: {self.subsplit.subsplit_to_string()} "
            f"leafward sorted {self.leafward_sorted} rotated {self.leafward_rotated}; "
            f"rootward sorted {self.rootward_sorted} rotated {self.rootward_rotated}"
        )

    def __repr__(self) -> str:
        return f"GPDAGNode({self.id}, {self.subsplit!r})"
