"""
_operations.py
==============
The instruction set emitted by GPDAG and the PLV index scheme it addresses.

Every instruction is a frozen dataclass carrying only integers: PLV buffer
indices, a generalized-PCSP (parameter) index, a rootsplit index, or an index
range.  An engine interprets a list of them in order against buffers it owns;
nothing here touches numeric data.

PLV index scheme
----------------
Six buffer kinds per node, laid out kind-major:

    index = kind * node_count + node_id

    kind   P   P_HAT   P_HAT_TILDE   R_HAT   R   R_TILDE
    value  0   1       2             3       4   5

so the six ranges [k * N, (k + 1) * N) never alias.

Instruction semantics (as the engine is expected to implement them)
--------------------------------------------------------------------
  Zero(dest)                               plv[dest] = 0
  SetToStationaryDistribution(dest, r)     plv[dest] = stationary distribution
  Multiply(dest, src1, src2)               plv[dest] = plv[src1] * plv[src2]
  EvolveWeighted(dest, gpcsp, src)         plv[dest] += q[gpcsp] * T(gpcsp) plv[src]
  Likelihood(gpcsp, parent, child)         per-edge log likelihood into slot gpcsp
  IncrementMarginalLikelihood(r_hat, r, p) add rootsplit r's contribution
  OptimizeBranchLength(leafward, rootward, gpcsp)
                                           optimize branch length gpcsp in place
  UpdateSBNProbabilities(start, stop)      renormalize q[start:stop]
"""

from collections import Counter
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, List, Union


class PLVType(IntEnum):
    """PLV buffer kinds.  The value is the kind's offset multiplier."""

    P = 0
    P_HAT = 1
    P_HAT_TILDE = 2
    R_HAT = 3
    R = 4
    R_TILDE = 5


PLV_KIND_COUNT = len(PLVType)


def plv_index(plv_type, node_count: int, node_id: int) -> int:
    """
    Flat buffer index of PLV kind *plv_type* for node *node_id*.

    Raises
    ------
    ValueError   for an unrecognised kind or a node id outside
                 [0, node_count).
    """
    try:
        kind = PLVType(plv_type)
    except ValueError:
        raise ValueError(f"Invalid PLV index requested: kind {plv_type!r}") from None
    if not 0 <= node_id < node_count:
        raise ValueError(
            f"Invalid PLV index requested: node {node_id} outside [0, {node_count})"
        )
    return int(kind) * node_count + node_id


# ======================================================================== #
# Instructions                                                              #
# ======================================================================== #


@dataclass(frozen=True)
class Zero:
    dest: int


@dataclass(frozen=True)
class SetToStationaryDistribution:
    dest: int
    rootsplit_index: int


@dataclass(frozen=True)
class Multiply:
    dest: int
    src1: int
    src2: int


@dataclass(frozen=True)
class EvolveWeighted:
    """Evolve ``src`` along edge ``gpcsp``, weight by q[gpcsp], add into ``dest``."""

    dest: int
    gpcsp: int
    src: int


@dataclass(frozen=True)
class Likelihood:
    """Log likelihood of edge ``gpcsp`` between a rootward and a leafward PLV."""

    gpcsp: int
    parent: int
    child: int


@dataclass(frozen=True)
class IncrementMarginalLikelihood:
    r_hat: int
    rootsplit: int
    p: int


@dataclass(frozen=True)
class OptimizeBranchLength:
    leafward: int
    rootward: int
    gpcsp: int


@dataclass(frozen=True)
class UpdateSBNProbabilities:
    """Renormalize the categorical distribution over q[start:stop]."""

    start: int
    stop: int


GPOperation = Union[
    Zero,
    SetToStationaryDistribution,
    Multiply,
    EvolveWeighted,
    Likelihood,
    IncrementMarginalLikelihood,
    OptimizeBranchLength,
    UpdateSBNProbabilities,
]

GPOperationVector = List[GPOperation]


def operation_summary(operations: Iterable[GPOperation]) -> Counter:
    """Count instructions by type name."""
    return Counter(type(op).__name__ for op in operations)
