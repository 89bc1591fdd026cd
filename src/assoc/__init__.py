"""Association stage: join partial pair counts by key and derive collocation statistics."""

from .aggregator import AssociationAggregator, compute_statistics, fold_partials
from .config import StageConfig, build_substrate
from .counters import GlobalTotals, MissingTotalsError, TotalsError, load_global_totals, parse_global_totals
from .emitter import format_double, format_line
from .grouping import DataFrameGrouping, InMemoryGrouping, PartitionedGrouping
from .parser import parse_line, parse_lines
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
from .stage import StageResult, StageSummary, run_stage, run_stage_files

__all__ = [
    "AggregationGap",
    "AssociationAggregator",
    "AssociationRecord",
    "DataFrameGrouping",
    "FeaturePairKey",
    "GlobalTotals",
    "InMemoryGrouping",
    "JointCount",
    "LeftMarginal",
    "MergedCounts",
    "MissingTotalsError",
    "PartialRecord",
    "PartitionedGrouping",
    "RightMarginal",
    "StageConfig",
    "StageResult",
    "StageSummary",
    "TotalsError",
    "build_substrate",
    "compute_statistics",
    "fold_partials",
    "format_double",
    "format_line",
    "load_global_totals",
    "parse_global_totals",
    "parse_line",
    "parse_lines",
    "run_stage",
    "run_stage_files",
]
