"""Shared data records for the association stage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

RecordKind = Literal["joint", "left", "right"]


@dataclass(frozen=True, order=True)
class FeaturePairKey:
    """Ordered (word, feature) pair used as the grouping key."""

    left: str
    right: str

    def serialize(self) -> str:
        return f"{self.left} {self.right}"

    def __str__(self) -> str:
        return self.serialize()


@dataclass(frozen=True)
class JointCount:
    """Joint occurrence count lf for a pair."""

    value: float

    @property
    def kind(self) -> RecordKind:
        return "joint"


@dataclass(frozen=True)
class LeftMarginal:
    """Left-feature count l, carrying the joint count seen on the same line."""

    value: float
    joint: float | None = None

    @property
    def kind(self) -> RecordKind:
        return "left"


@dataclass(frozen=True)
class RightMarginal:
    """Right-feature count f, carrying the joint count seen on the same line."""

    value: float
    joint: float | None = None

    @property
    def kind(self) -> RecordKind:
        return "right"


PartialRecord = Union[JointCount, LeftMarginal, RightMarginal]


@dataclass(frozen=True)
class MergedCounts:
    """Accumulators after folding every record of a key group."""

    l: float = 0.0
    f: float = 0.0
    lf: float = 0.0

    @property
    def complete(self) -> bool:
        """True only when all three accumulators are non-zero."""
        return self.l != 0 and self.f != 0 and self.lf != 0


@dataclass(frozen=True)
class AssociationRecord:
    """Association statistics computed for a single key."""

    key: FeaturePairKey
    assoc_freq: float
    assoc_prob: float
    assoc_pmi: float
    assoc_t_test: float


@dataclass(frozen=True)
class AggregationGap:
    """Diagnostic payload for a key whose counts could not all be merged."""

    key: FeaturePairKey
    counts: MergedCounts

    def describe(self) -> str:
        c = self.counts
        return f"Missing counts for {self.key}: l={c.l} f={c.f} lf={c.lf}"


__all__ = [
    "AggregationGap",
    "AssociationRecord",
    "FeaturePairKey",
    "JointCount",
    "LeftMarginal",
    "MergedCounts",
    "PartialRecord",
    "RecordKind",
    "RightMarginal",
]
