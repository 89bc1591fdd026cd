"""Merge partial counts for one key and derive the association statistics."""

from __future__ import annotations

import sys
from typing import Callable, Iterable, Optional

import numpy as np

from .counters import GlobalTotals
from .records import (
    AggregationGap,
    AssociationRecord,
    FeaturePairKey,
    JointCount,
    LeftMarginal,
    MergedCounts,
    PartialRecord,
    RightMarginal,
)

DiagnosticSink = Callable[[AggregationGap], None]


def report_gap(gap: AggregationGap) -> None:
    """Default diagnostics channel: one line per gapped key on stderr."""
    print(f"[assoc] {gap.describe()}", file=sys.stderr)


def fold_partials(records: Iterable[PartialRecord]) -> MergedCounts:
    """Fold a key group into (l, f, lf) by overwriting, never summing.

    Each variant is expected once per key. When duplicates do arrive, the last
    one folded wins.
    """
    l = f = lf = 0.0
    for record in records:
        if isinstance(record, JointCount):
            lf = record.value
        elif isinstance(record, LeftMarginal):
            l = record.value
            if record.joint is not None:
                lf = record.joint
        elif isinstance(record, RightMarginal):
            f = record.value
            if record.joint is not None:
                lf = record.joint
        else:
            raise TypeError(f"Unexpected partial record type: {type(record)!r}")
    return MergedCounts(l=l, f=f, lf=lf)


def compute_statistics(key: FeaturePairKey, counts: MergedCounts, totals: GlobalTotals) -> AssociationRecord:
    """Compute frequency, conditional probability, PMI and t-test for ``key``.

    Callers must check ``counts.complete`` first; l and f are divisors.
    """
    l, f, lf = counts.l, counts.f, counts.lf
    L, F = totals.L, totals.F

    expected = (l / L) * (f / F)
    t_test = ((lf / L) - expected) / float(np.sqrt(expected))

    return AssociationRecord(
        key=key,
        assoc_freq=lf,
        assoc_prob=lf / l,
        assoc_pmi=(F * lf) / (l * f),
        assoc_t_test=t_test,
    )


class AssociationAggregator:
    """Per-key aggregation step bound to read-only global totals."""

    def __init__(self, totals: GlobalTotals, on_gap: Optional[DiagnosticSink] = None) -> None:
        self.totals = totals
        self.on_gap = on_gap or report_gap

    def aggregate(self, key: FeaturePairKey, records: Iterable[PartialRecord]) -> Optional[AssociationRecord]:
        """Return the statistics for ``key`` or None when a count is missing."""
        counts = fold_partials(records)
        if not counts.complete:
            self.on_gap(AggregationGap(key=key, counts=counts))
            return None
        return compute_statistics(key, counts, self.totals)

    __call__ = aggregate


__all__ = [
    "AssociationAggregator",
    "DiagnosticSink",
    "compute_statistics",
    "fold_partials",
    "report_gap",
]
