"""
_sbn_maps.py
============
Harvest rootsplits and parent-child subsplit pairs (PCSPs) from a weighted
topology sample.

Both counters are keyed by Bitset and returned sorted by key, so that
everything derived from them (parameter indices, node ids) is independent of
the order in which trees were supplied.
"""

from typing import Dict

from gpdag._bitset import Bitset


def rootsplit_counter_of(collection) -> Dict[Bitset, int]:
    """
    Count rootsplits across a RootedTreeCollection, weighted by multiplicity.

    Returns
    -------
    dict[Bitset, int]
        Rootsplit (a clade of length T) → summed multiplicity, sorted by key.
    """
    counter: Dict[Bitset, int] = {}
    for topology, clades, count in collection.items():
        rootsplit = topology.rootsplit(clades)
        counter[rootsplit] = counter.get(rootsplit, 0) + count
    return dict(sorted(counter.items()))


def pcsp_counter_of(collection) -> Dict[Bitset, Dict[Bitset, int]]:
    """
    Count PCSPs across a RootedTreeCollection, grouped by parent.

    Returns
    -------
    dict[Bitset, dict[Bitset, int]]
        Parent key (length 2T, second half is the clade being split) →
        {child subsplit (length 2T) → summed multiplicity}.  Parents and
        children are both sorted by key.
    """
    counter: Dict[Bitset, Dict[Bitset, int]] = {}
    for topology, clades, count in collection.items():
        for parent, child in topology.pcsps(clades):
            children = counter.setdefault(parent, {})
            children[child] = children.get(child, 0) + count
    return {
        parent: dict(sorted(children.items()))
        for parent, children in sorted(counter.items())
    }
