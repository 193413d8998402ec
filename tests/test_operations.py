"""
tests/test_operations.py
========================
Pytest test suite for the PLV index scheme and the operation-vector
generators of GPDAG.

PLV indices for the four-taxon DAG (N = 9, see tests/test_dag.py):

  P(i) = i        P_HAT(i) = 9 + i    P_HAT_TILDE(i) = 18 + i
  R_HAT(i) = 27 + i   R(i) = 36 + i   R_TILDE(i) = 45 + i

Roots are nodes 6 (rootsplit 0) and 8 (rootsplit 1).
"""

import os
import sys
import dataclasses
from collections import Counter

import pytest

_HERE = os.path.dirname(__file__)
_ROOT = os.path.dirname(_HERE)
_TREES_DIR = os.path.join(_HERE, "trees")

sys.path.insert(0, _ROOT)

from gpdag._collection import RootedTreeCollection
from gpdag._dag import GPDAG
from gpdag._operations import (
    PLV_KIND_COUNT,
    EvolveWeighted,
    IncrementMarginalLikelihood,
    Likelihood,
    Multiply,
    OptimizeBranchLength,
    PLVType,
    SetToStationaryDistribution,
    UpdateSBNProbabilities,
    Zero,
    operation_summary,
    plv_index,
)


# ======================================================================== #
# Helpers                                                                   #
# ======================================================================== #


def load_newick_file(filename: str) -> list:
    path = os.path.join(_TREES_DIR, filename)
    with open(path) as fh:
        return [line.strip() for line in fh if line.strip()]


EW = EvolveWeighted
M = Multiply
OBL = OptimizeBranchLength
IML = IncrementMarginalLikelihood


# ======================================================================== #
# Fixtures                                                                  #
# ======================================================================== #


@pytest.fixture(scope="module")
def dag():
    return GPDAG(RootedTreeCollection(load_newick_file("four_taxon.trees")))


@pytest.fixture(scope="module")
def five_taxon_dag():
    return GPDAG(RootedTreeCollection(load_newick_file("five_taxon.trees")))


@pytest.fixture(scope="module", params=["four", "five"])
def any_dag(request, dag, five_taxon_dag):
    return {"four": dag, "five": five_taxon_dag}[request.param]


# ======================================================================== #
# 1. PLV index scheme                                                       #
# ======================================================================== #


class TestPLVIndex:
    def test_kind_values(self):
        assert [int(k) for k in PLVType] == [0, 1, 2, 3, 4, 5]
        assert PLV_KIND_COUNT == 6

    @pytest.mark.parametrize("kind", list(PLVType))
    def test_kind_major_layout(self, kind):
        assert plv_index(kind, 10, 3) == int(kind) * 10 + 3

    def test_plain_int_kind(self):
        assert plv_index(4, 10, 2) == 42

    def test_ranges_do_not_alias(self):
        n = 7
        indices = {plv_index(k, n, i) for k in PLVType for i in range(n)}
        assert indices == set(range(PLV_KIND_COUNT * n))

    @pytest.mark.parametrize("kind", [-1, 6, "P"])
    def test_invalid_kind(self, kind):
        with pytest.raises(ValueError, match="Invalid PLV index requested"):
            plv_index(kind, 10, 0)

    @pytest.mark.parametrize("node_id", [-1, 10])
    def test_node_out_of_range(self, node_id):
        with pytest.raises(ValueError):
            plv_index(PLVType.P, 10, node_id)


# ======================================================================== #
# 2. Instructions                                                           #
# ======================================================================== #


class TestInstructions:
    def test_frozen(self):
        op = Zero(3)
        with pytest.raises(dataclasses.FrozenInstanceError):
            op.dest = 4

    def test_value_equality(self):
        assert EW(1, 2, 3) == EW(1, 2, 3)
        assert EW(1, 2, 3) != EW(1, 2, 4)
        assert len({Zero(1), Zero(1), Zero(2)}) == 2

    def test_different_types_are_unequal(self):
        assert Likelihood(1, 2, 3) != EW(1, 2, 3)

    def test_fields(self):
        assert [f.name for f in dataclasses.fields(OBL)] == [
            "leafward",
            "rootward",
            "gpcsp",
        ]

    def test_operation_summary(self):
        summary = operation_summary([Zero(0), Zero(1), M(2, 0, 1)])
        assert summary == Counter({"Zero": 2, "Multiply": 1})


# ======================================================================== #
# 3. Simple generators on the four-taxon DAG                                #
# ======================================================================== #


class TestSimpleGenerators:
    def test_set_rootward_zero(self, dag):
        ops = dag.set_rootward_zero()
        assert len(ops) == 15
        assert ops[:3] == [Zero(4), Zero(13), Zero(22)]
        # Fake leaf P buffers hold the data and are never zeroed.
        assert all(op.dest not in range(4) for op in ops)

    def test_set_leafward_zero(self, dag):
        ops = dag.set_leafward_zero()
        assert len(ops) == 29
        assert ops[:3] == [Zero(27), Zero(36), Zero(45)]
        assert ops[-2:] == [
            SetToStationaryDistribution(33, 0),
            SetToStationaryDistribution(35, 1),
        ]

    def test_set_rhat_to_stationary(self, dag):
        assert dag.set_rhat_to_stationary() == [
            SetToStationaryDistribution(33, 0),
            SetToStationaryDistribution(35, 1),
        ]

    def test_marginal_likelihood(self, dag):
        assert dag.marginal_likelihood() == [IML(33, 0, 6), IML(35, 1, 8)]

    def test_rootward_pass(self, dag):
        assert dag.rootward_pass() == [
            EW(13, 2, 3), EW(22, 3, 2), M(4, 13, 22),
            EW(14, 4, 4), EW(23, 5, 1), M(5, 14, 23),
            EW(15, 6, 5), EW(24, 7, 0), M(6, 15, 24),
            EW(16, 8, 1), EW(25, 9, 0), M(7, 16, 25),
            EW(17, 10, 4), EW(26, 11, 7), M(8, 17, 26),
        ]

    def test_rootward_pass_custom_order(self, dag):
        assert dag.rootward_pass(visit_order=[0, 4]) == [
            EW(13, 2, 3), EW(22, 3, 2), M(4, 13, 22),
        ]

    def test_leafward_pass(self, dag):
        assert dag.leafward_pass() == [
            M(42, 33, 24), M(51, 33, 15),
            M(44, 35, 26), M(53, 35, 17),
            EW(34, 11, 53), M(43, 34, 25), M(52, 34, 16),
            EW(27, 7, 51), EW(27, 9, 52), M(36, 27, 18), M(45, 27, 9),
            EW(32, 6, 42), M(41, 32, 23), M(50, 32, 14),
            EW(28, 8, 43), EW(28, 5, 50), M(37, 28, 19), M(46, 28, 10),
            EW(31, 4, 41), EW(31, 10, 44), M(40, 31, 22), M(49, 31, 13),
            EW(29, 3, 49), M(38, 29, 20), M(47, 29, 11),
            EW(30, 2, 40), M(39, 30, 21), M(48, 30, 12),
        ]

    def test_compute_likelihoods(self, dag):
        assert dag.compute_likelihoods() == [
            Likelihood(2, 40, 3), Likelihood(3, 49, 2),
            Likelihood(4, 41, 4), Likelihood(5, 50, 1),
            Likelihood(6, 42, 5), Likelihood(7, 51, 0),
            Likelihood(8, 43, 1), Likelihood(9, 52, 0),
            Likelihood(10, 44, 4), Likelihood(11, 53, 7),
            IML(33, 0, 6), IML(35, 1, 8),
        ]


# ======================================================================== #
# 4. Interleaved schedulers on the four-taxon DAG                           #
# ======================================================================== #


class TestBranchLengthOptimization:
    def test_prefix(self, dag):
        ops = dag.branch_length_optimization()
        assert ops[:19] == [
            Zero(15),                                   # root 6, P_HAT
            Zero(32), EW(32, 6, 42),                    # node 5, R_HAT
            M(41, 32, 23), M(50, 32, 14),
            Zero(14),                                   # node 5, P_HAT
            Zero(31), EW(31, 4, 41), EW(31, 10, 44),    # node 4, R_HAT
            M(40, 31, 22), M(49, 31, 13),
            Zero(13),                                   # node 4, P_HAT
            Zero(30), EW(30, 2, 40),                    # leaf D
            M(39, 30, 21), M(48, 30, 12),
            OBL(3, 40, 2), EW(13, 2, 3),                # edge 4 → D
            M(49, 31, 13),
        ]

    def test_suffix(self, dag):
        ops = dag.branch_length_optimization()
        assert ops[-4:] == [OBL(7, 53, 11), EW(26, 11, 7), M(44, 35, 26), M(8, 17, 26)]

    def test_shared_child_not_revisited(self, dag):
        ops = dag.branch_length_optimization()
        # Node 4 is reached from both roots but its R_HAT is rebuilt once.
        assert ops.count(Zero(31)) == 1
        # The second root still optimizes its edge to node 4.
        assert OBL(4, 44, 10) in ops

    def test_counts(self, dag):
        summary = operation_summary(dag.branch_length_optimization())
        assert summary == Counter(
            {
                "OptimizeBranchLength": 10,
                "EvolveWeighted": 20,
                "Zero": 17,
                "Multiply": 29,
            }
        )


class TestSBNParameterOptimization:
    def test_suffix(self, dag):
        ops = dag.sbn_parameter_optimization()
        assert ops[-6:] == [
            EW(26, 11, 7), Likelihood(11, 53, 7),
            M(44, 35, 26), M(8, 17, 26),
            IML(35, 1, 8),
            UpdateSBNProbabilities(0, 2),
        ]

    def test_marginal_after_each_root(self, dag):
        ops = dag.sbn_parameter_optimization()
        first = ops.index(IML(33, 0, 6))
        assert ops[first - 1] == M(6, 15, 24)

    def test_single_child_ranges_not_renormalized(self, dag):
        ops = dag.sbn_parameter_optimization()
        updates = [op for op in ops if isinstance(op, UpdateSBNProbabilities)]
        assert updates == [UpdateSBNProbabilities(0, 2)]

    def test_counts(self, dag):
        summary = operation_summary(dag.sbn_parameter_optimization())
        assert summary["Likelihood"] == 10
        assert summary["EvolveWeighted"] == 20
        assert summary["IncrementMarginalLikelihood"] == 2
        assert "OptimizeBranchLength" not in summary


# ======================================================================== #
# 5. Properties on any DAG                                                  #
# ======================================================================== #


GENERATORS = [
    "compute_likelihoods",
    "marginal_likelihood",
    "rootward_pass",
    "leafward_pass",
    "set_rootward_zero",
    "set_leafward_zero",
    "set_rhat_to_stationary",
    "branch_length_optimization",
    "sbn_parameter_optimization",
]


class TestGeneratorProperties:
    @pytest.mark.parametrize("name", GENERATORS)
    def test_idempotent(self, any_dag, name):
        generator = getattr(any_dag, name)
        assert generator() == generator()

    @pytest.mark.parametrize("name", GENERATORS)
    def test_indices_in_range(self, any_dag, name):
        plv_fields = {"dest", "src", "src1", "src2", "parent", "child", "r_hat", "p",
                      "leafward", "rootward"}
        for op in getattr(any_dag, name)():
            for field in dataclasses.fields(op):
                value = getattr(op, field.name)
                if field.name in plv_fields:
                    assert 0 <= value < any_dag.plv_count()
                elif field.name == "gpcsp":
                    assert any_dag.rootsplit_count() <= value < any_dag.generalized_pcsp_count()

    def test_compute_likelihoods_covers_every_edge(self, any_dag):
        gpcsps = [
            op.gpcsp for op in any_dag.compute_likelihoods() if isinstance(op, Likelihood)
        ]
        assert sorted(gpcsps) == list(
            range(any_dag.rootsplit_count(), any_dag.generalized_pcsp_count())
        )

    def test_rootward_pass_reads_finished_children(self, any_dag):
        written = set(range(any_dag.taxon_count))
        for op in any_dag.rootward_pass():
            if isinstance(op, EvolveWeighted):
                assert op.src in written
            elif isinstance(op, Multiply):
                written.add(op.dest)


@pytest.mark.parametrize(
    "name, edge_op",
    [
        ("branch_length_optimization", OptimizeBranchLength),
        ("sbn_parameter_optimization", Likelihood),
    ],
)
class TestSchedulerProperties:
    def test_each_node_finished_once(self, any_dag, name, edge_op):
        ops = getattr(any_dag, name)()
        n = any_dag.node_count()
        p_writes = Counter(
            op.dest for op in ops if isinstance(op, Multiply) and op.dest < n
        )
        assert p_writes == Counter(range(any_dag.taxon_count, n))

    def test_each_non_root_r_hat_rebuilt_once(self, any_dag, name, edge_op):
        ops = getattr(any_dag, name)()
        r_hat_zeros = [
            op.dest
            for op in ops
            if isinstance(op, Zero)
            and any_dag.plv_index(PLVType.R_HAT, 0) <= op.dest < any_dag.plv_index(PLVType.R, 0)
        ]
        non_roots = [node.id for node in any_dag.nodes if not node.is_root()]
        assert sorted(r_hat_zeros) == [
            any_dag.plv_index(PLVType.R_HAT, i) for i in non_roots
        ]

    def test_each_edge_once(self, any_dag, name, edge_op):
        ops = getattr(any_dag, name)()
        gpcsps = sorted(op.gpcsp for op in ops if isinstance(op, edge_op))
        assert gpcsps == list(
            range(any_dag.rootsplit_count(), any_dag.generalized_pcsp_count())
        )

    def test_child_finished_before_its_edge(self, any_dag, name, edge_op):
        ops = getattr(any_dag, name)()
        child_field = "leafward" if edge_op is OptimizeBranchLength else "child"
        finished = set(range(any_dag.taxon_count))
        for op in ops:
            if isinstance(op, Multiply) and op.dest < any_dag.node_count():
                finished.add(op.dest)
            elif isinstance(op, edge_op):
                assert getattr(op, child_field) in finished


class TestSBNRanges:
    def test_renormalizes_every_multi_child_range(self, five_taxon_dag):
        ops = five_taxon_dag.sbn_parameter_optimization()
        updates = [op for op in ops if isinstance(op, UpdateSBNProbabilities)]
        assert updates[-1] == UpdateSBNProbabilities(0, five_taxon_dag.rootsplit_count())
        expected = sorted(
            r for r in five_taxon_dag.subsplit_to_range.values() if r[1] - r[0] > 1
        )
        assert expected
        assert sorted((u.start, u.stop) for u in updates[:-1]) == expected

    def test_range_updated_after_its_likelihoods(self, five_taxon_dag):
        ops = five_taxon_dag.sbn_parameter_optimization()
        seen = set()
        for op in ops:
            if isinstance(op, Likelihood):
                seen.add(op.gpcsp)
            elif isinstance(op, UpdateSBNProbabilities) and op.start > 0:
                assert set(range(op.start, op.stop)) <= seen
