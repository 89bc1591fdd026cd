"""Unit tests for merging partial counts and computing association statistics."""

from __future__ import annotations

import itertools
import math
from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.assoc.aggregator import AssociationAggregator, compute_statistics, fold_partials
from src.assoc.counters import GlobalTotals
from src.assoc.records import (
    AggregationGap,
    FeaturePairKey,
    JointCount,
    LeftMarginal,
    MergedCounts,
    PartialRecord,
    RightMarginal,
)

KEY = FeaturePairKey("cat", "animal")


def _collecting_aggregator(totals: GlobalTotals) -> tuple[AssociationAggregator, list[AggregationGap]]:
    gaps: list[AggregationGap] = []
    return AssociationAggregator(totals, on_gap=gaps.append), gaps


# ---------------------------------------------------------------------------
# Folding


def test_fold_partials_separate_variants() -> None:
    counts = fold_partials([JointCount(10.0), LeftMarginal(100.0), RightMarginal(50.0)])
    assert counts == MergedCounts(l=100.0, f=50.0, lf=10.0)
    assert counts.complete is True


def test_fold_partials_marginals_carry_joint() -> None:
    counts = fold_partials([LeftMarginal(20.0, joint=5.0), RightMarginal(30.0, joint=5.0)])
    assert counts == MergedCounts(l=20.0, f=30.0, lf=5.0)


def test_fold_partials_overwrites_instead_of_summing() -> None:
    counts = fold_partials([JointCount(3.0), JointCount(7.0), LeftMarginal(2.0), LeftMarginal(4.0), RightMarginal(1.0)])
    assert counts.lf == pytest.approx(7.0)
    assert counts.l == pytest.approx(4.0)
    assert counts.f == pytest.approx(1.0)


def test_fold_partials_marginal_joint_overwrites_lf() -> None:
    counts = fold_partials([JointCount(3.0), LeftMarginal(2.0, joint=9.0)])
    assert counts.lf == pytest.approx(9.0)


def test_fold_partials_empty_group() -> None:
    counts = fold_partials([])
    assert counts == MergedCounts()
    assert counts.complete is False


def test_fold_partials_rejects_unknown_records() -> None:
    with pytest.raises(TypeError):
        fold_partials([object()])  # type: ignore[list-item]


# ---------------------------------------------------------------------------
# Statistics


def test_statistics_for_independent_pair() -> None:
    aggregator, gaps = _collecting_aggregator(GlobalTotals(L=1000.0, F=500.0))
    record = aggregator.aggregate(KEY, [JointCount(10.0), LeftMarginal(100.0), RightMarginal(50.0)])

    assert record is not None
    assert gaps == []
    assert record.key == KEY
    assert record.assoc_freq == pytest.approx(10.0)
    assert record.assoc_prob == pytest.approx(0.1)
    assert record.assoc_pmi == pytest.approx(1.0)
    # Observed equals expected under independence, so the t statistic vanishes.
    assert record.assoc_t_test == pytest.approx(0.0, abs=1e-12)


def test_statistics_for_marginal_lines() -> None:
    aggregator, _ = _collecting_aggregator(GlobalTotals(L=100.0, F=200.0))
    record = aggregator.aggregate(KEY, [LeftMarginal(20.0, joint=5.0), RightMarginal(30.0, joint=5.0)])

    assert record is not None
    expected = (20.0 / 100.0) * (30.0 / 200.0)
    assert record.assoc_freq == pytest.approx(5.0)
    assert record.assoc_prob == pytest.approx(0.25)
    assert record.assoc_pmi == pytest.approx(1000.0 / 600.0)
    assert record.assoc_t_test == pytest.approx((5.0 / 100.0 - expected) / math.sqrt(expected))


def test_compute_statistics_positive_association() -> None:
    record = compute_statistics(KEY, MergedCounts(l=10.0, f=10.0, lf=8.0), GlobalTotals(L=100.0, F=100.0))
    assert record.assoc_pmi > 1.0
    assert record.assoc_t_test > 0.0


def test_order_within_group_does_not_matter() -> None:
    totals = GlobalTotals(L=1000.0, F=500.0)
    group: list[PartialRecord] = [JointCount(10.0), LeftMarginal(100.0), RightMarginal(50.0)]
    aggregator, _ = _collecting_aggregator(totals)
    baseline = aggregator.aggregate(KEY, group)

    for permutation in itertools.permutations(group):
        assert aggregator.aggregate(KEY, list(permutation)) == baseline


def test_aggregator_is_callable() -> None:
    aggregator, _ = _collecting_aggregator(GlobalTotals(L=1000.0, F=500.0))
    group = [JointCount(10.0), LeftMarginal(100.0), RightMarginal(50.0)]
    assert aggregator(KEY, group) == aggregator.aggregate(KEY, group)


# ---------------------------------------------------------------------------
# Zero guard


def test_missing_right_marginal_reports_gap() -> None:
    aggregator, gaps = _collecting_aggregator(GlobalTotals(L=1000.0, F=500.0))
    record = aggregator.aggregate(KEY, [JointCount(10.0), LeftMarginal(100.0)])

    assert record is None
    assert len(gaps) == 1
    assert gaps[0].key == KEY
    assert gaps[0].counts == MergedCounts(l=100.0, f=0.0, lf=10.0)
    assert "l=100.0 f=0.0 lf=10.0" in gaps[0].describe()


@pytest.mark.parametrize(
    "group",
    [
        [LeftMarginal(100.0), RightMarginal(50.0)],
        [LeftMarginal(100.0, joint=5.0)],
        [RightMarginal(50.0, joint=5.0)],
        [JointCount(0.0), LeftMarginal(100.0), RightMarginal(50.0)],
    ],
)
def test_any_zero_count_suppresses_output(group: list[PartialRecord]) -> None:
    aggregator, gaps = _collecting_aggregator(GlobalTotals(L=1000.0, F=500.0))
    assert aggregator.aggregate(KEY, group) is None
    assert len(gaps) == 1


def test_default_gap_sink_writes_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    aggregator = AssociationAggregator(GlobalTotals(L=1000.0, F=500.0))
    assert aggregator.aggregate(KEY, [JointCount(10.0), LeftMarginal(100.0)]) is None

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "[assoc] Missing counts for cat animal: l=100.0 f=0.0 lf=10.0" in captured.err
