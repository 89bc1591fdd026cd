"""Grouping substrates that collect partial records by FeaturePairKey.

Every substrate honours the same contract: all records sharing a key are
handed out together exactly once, and only after the whole input has been
consumed. Record order within a group is whatever the input order was; the
aggregator does not depend on it.
"""

from __future__ import annotations

import zlib
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Protocol, Tuple

import pandas as pd

from .parser import ParsedRecord
from .records import FeaturePairKey, PartialRecord

KeyGroup = Tuple[FeaturePairKey, List[PartialRecord]]


class GroupingSubstrate(Protocol):
    """Strategy object that turns parsed records into complete key groups."""

    def group(self, records: Iterable[ParsedRecord]) -> Iterator[KeyGroup]:
        """Yield one (key, records) pair per distinct key."""
        ...


def partition_for(key: FeaturePairKey, num_partitions: int) -> int:
    """Stable partition index for ``key`` (identical across processes and runs)."""
    if num_partitions < 1:
        raise ValueError("num_partitions must be at least 1.")
    return zlib.crc32(key.serialize().encode("utf-8")) % num_partitions


def collect_groups(records: Iterable[ParsedRecord]) -> Dict[FeaturePairKey, List[PartialRecord]]:
    """Bucket records by key, keeping first-seen key order."""
    groups: Dict[FeaturePairKey, List[PartialRecord]] = defaultdict(list)
    for key, record in records:
        groups[key].append(record)
    return dict(groups)


@dataclass(frozen=True)
class InMemoryGrouping:
    """Single-process dict-of-lists grouping."""

    sort_keys: bool = False

    def group(self, records: Iterable[ParsedRecord]) -> Iterator[KeyGroup]:
        groups = collect_groups(records)
        keys = sorted(groups) if self.sort_keys else list(groups)
        for key in keys:
            yield key, groups[key]


@dataclass(frozen=True)
class PartitionedGrouping:
    """Hash-partitions keys first, then groups inside each partition.

    Mirrors a distributed shuffle: a key is owned by exactly one partition, so
    partitions can be aggregated independently.
    """

    num_partitions: int = 4
    sort_keys: bool = True

    def __post_init__(self) -> None:
        if self.num_partitions < 1:
            raise ValueError("num_partitions must be at least 1.")

    def partition(self, records: Iterable[ParsedRecord]) -> List[List[KeyGroup]]:
        """Return the key groups of every partition, indexed by partition id."""
        buckets: List[List[ParsedRecord]] = [[] for _ in range(self.num_partitions)]
        for key, record in records:
            buckets[partition_for(key, self.num_partitions)].append((key, record))

        inner = InMemoryGrouping(sort_keys=self.sort_keys)
        return [list(inner.group(bucket)) for bucket in buckets]

    def group(self, records: Iterable[ParsedRecord]) -> Iterator[KeyGroup]:
        for partition in self.partition(records):
            yield from partition


@dataclass(frozen=True)
class DataFrameGrouping:
    """pandas ``groupby`` over the (left, right) columns, sorted by key."""

    def group(self, records: Iterable[ParsedRecord]) -> Iterator[KeyGroup]:
        rows = [(key.left, key.right, record) for key, record in records]
        frame = pd.DataFrame.from_records(rows, columns=["left", "right", "record"])
        if frame.empty:
            return
        for (left, right), group in frame.groupby(["left", "right"], sort=True):
            yield FeaturePairKey(str(left), str(right)), list(group["record"])


__all__ = [
    "DataFrameGrouping",
    "GroupingSubstrate",
    "InMemoryGrouping",
    "KeyGroup",
    "PartitionedGrouping",
    "collect_groups",
    "partition_for",
]
