"""Static configuration for the association stage: file layout and runtime knobs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Tuple

from .grouping import DataFrameGrouping, GroupingSubstrate, InMemoryGrouping, PartitionedGrouping

SubstrateName = Literal["memory", "partitioned", "dataframe"]
SUBSTRATES: Tuple[SubstrateName, ...] = ("memory", "partitioned", "dataframe")

# Upstream reducers write part-r-NNNNN files; the counters side file sits next to them.
DEFAULT_INPUT_GLOB = "part-r*"
DEFAULT_COUNTERS_NAME = "counters"
DEFAULT_OUTPUT_NAME = "part-r-00000"


@dataclass(frozen=True)
class StageConfig:
    """Runtime options for `run_stage`."""

    workers: int = 1
    substrate: SubstrateName = "memory"
    num_partitions: int = 4
    sort_keys: bool = True
    show_progress: bool = True

    def validate(self) -> None:
        if self.workers < 1:
            raise ValueError("workers must be at least 1.")
        if self.num_partitions < 1:
            raise ValueError("num_partitions must be at least 1.")
        if self.substrate not in SUBSTRATES:
            raise ValueError(f"Unknown grouping substrate '{self.substrate}'. Available: {list(SUBSTRATES)}")

    @property
    def parallel(self) -> bool:
        return self.workers > 1


def build_substrate(config: StageConfig) -> GroupingSubstrate:
    """Instantiate the grouping substrate named by ``config``."""
    config.validate()
    if config.substrate == "partitioned" or config.parallel:
        partitions = max(config.num_partitions, config.workers)
        return PartitionedGrouping(num_partitions=partitions, sort_keys=config.sort_keys)
    if config.substrate == "dataframe":
        return DataFrameGrouping()
    return InMemoryGrouping(sort_keys=config.sort_keys)


__all__ = [
    "DEFAULT_COUNTERS_NAME",
    "DEFAULT_INPUT_GLOB",
    "DEFAULT_OUTPUT_NAME",
    "SUBSTRATES",
    "StageConfig",
    "SubstrateName",
    "build_substrate",
]
