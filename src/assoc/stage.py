"""End-to-end driver: totals barrier, parse, group, aggregate, emit."""

from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from .aggregator import AssociationAggregator, DiagnosticSink, report_gap
from .config import DEFAULT_OUTPUT_NAME, StageConfig, build_substrate
from .counters import GlobalTotals, load_global_totals
from .emitter import format_lines
from .grouping import KeyGroup, PartitionedGrouping
from .io import default_counters_path, iter_lines, resolve_inputs, write_lines_atomic
from .parser import ParsedRecord, parse_line
from .records import AggregationGap, AssociationRecord


@dataclass
class StageSummary:
    """Counters describing what a stage run did."""

    lines_read: int = 0
    records_parsed: int = 0
    keys_grouped: int = 0
    keys_emitted: int = 0
    keys_gapped: int = 0

    @property
    def lines_skipped(self) -> int:
        return self.lines_read - self.records_parsed

    def describe(self) -> str:
        return (
            f"lines={self.lines_read} parsed={self.records_parsed} skipped={self.lines_skipped} "
            f"keys={self.keys_grouped} emitted={self.keys_emitted} gaps={self.keys_gapped}"
        )


@dataclass
class StageResult:
    records: List[AssociationRecord] = field(default_factory=list)
    summary: StageSummary = field(default_factory=StageSummary)

    def lines(self) -> Iterator[str]:
        return format_lines(self.records)


def aggregate_groups(
    groups: Iterable[KeyGroup], totals: GlobalTotals
) -> Tuple[List[AssociationRecord], List[AggregationGap]]:
    """Aggregate complete key groups; safe to run in a worker process."""
    gaps: List[AggregationGap] = []
    aggregator = AssociationAggregator(totals, on_gap=gaps.append)
    records: List[AssociationRecord] = []
    for key, partials in groups:
        record = aggregator.aggregate(key, partials)
        if record is not None:
            records.append(record)
    return records, gaps


def run_stage(
    lines: Iterable[str],
    totals: GlobalTotals,
    config: Optional[StageConfig] = None,
    on_gap: Optional[DiagnosticSink] = None,
) -> StageResult:
    """Run parse → group → aggregate over ``lines`` with already-loaded totals.

    Args:
        lines: Raw input lines; malformed ones are skipped.
        totals: Global totals, loaded before any line is touched.
        config: Substrate and parallelism options.
        on_gap: Diagnostics sink for keys missing a count (stderr by default).

    Returns:
        StageResult holding the emitted records and run counters.
    """
    if not isinstance(totals, GlobalTotals):
        raise TypeError("run_stage requires GlobalTotals loaded before processing starts.")
    cfg = config or StageConfig()
    cfg.validate()
    sink = on_gap or report_gap
    summary = StageSummary()

    def parsed_records() -> Iterator[ParsedRecord]:
        for line in lines:
            summary.lines_read += 1
            parsed = parse_line(line)
            if parsed is not None:
                summary.records_parsed += 1
                yield parsed

    substrate = build_substrate(cfg)
    if cfg.parallel and isinstance(substrate, PartitionedGrouping):
        partitions = substrate.partition(parsed_records())
        summary.keys_grouped = sum(len(partition) for partition in partitions)
        records, gaps = _aggregate_in_workers(partitions, totals, cfg.workers)
    else:
        groups = list(substrate.group(parsed_records()))
        summary.keys_grouped = len(groups)
        records, gaps = aggregate_groups(groups, totals)

    if cfg.sort_keys:
        # Partitioned substrates only order keys within a partition.
        records.sort(key=lambda record: record.key)
        gaps.sort(key=lambda gap: gap.key)

    for gap in gaps:
        sink(gap)
    summary.keys_emitted = len(records)
    summary.keys_gapped = len(gaps)
    return StageResult(records=records, summary=summary)


def run_stage_files(
    inputs: Sequence[Path],
    counters: Optional[Path] = None,
    output_dir: Optional[Path] = None,
    config: Optional[StageConfig] = None,
    on_gap: Optional[DiagnosticSink] = None,
) -> StageResult:
    """Load totals, read every input file and optionally write ``part-r-00000``."""
    cfg = config or StageConfig()
    cfg.validate()
    verbose = cfg.show_progress

    if verbose:
        print("[assoc] Association stage started.")
    # Totals first: nothing is read from the main input until they are known.
    counters_path = counters or default_counters_path(inputs)
    totals = load_global_totals(counters_path)
    if verbose:
        print(f"[assoc] Loaded totals L={totals.L} F={totals.F} from {counters_path}")

    files = resolve_inputs(inputs)
    if verbose:
        print(f"[assoc] Reading {len(files)} input file(s) with substrate '{cfg.substrate}' and {cfg.workers} worker(s).")
    result = run_stage(iter_lines(files, show_progress=verbose), totals, cfg, on_gap=on_gap)
    if verbose:
        print(f"[assoc] Grouped {result.summary.keys_grouped} keys; {result.summary.describe()}")

    if output_dir is not None:
        dest = output_dir / DEFAULT_OUTPUT_NAME
        written = write_lines_atomic(result.lines(), dest)
        if verbose:
            print(f"[assoc] Wrote {written} records → {dest}")
    return result


# ---------------------------------------------------------------------------
# Internal helpers


def _aggregate_in_workers(
    partitions: Sequence[Sequence[KeyGroup]], totals: GlobalTotals, workers: int
) -> Tuple[List[AssociationRecord], List[AggregationGap]]:
    records: List[AssociationRecord] = []
    gaps: List[AggregationGap] = []
    with ProcessPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(aggregate_groups, partition, totals) for partition in partitions if partition]
        # Collected in submission order so output does not depend on scheduling.
        for future in futures:
            partition_records, partition_gaps = future.result()
            records.extend(partition_records)
            gaps.extend(partition_gaps)
    return records, gaps


__all__ = [
    "StageResult",
    "StageSummary",
    "aggregate_groups",
    "run_stage",
    "run_stage_files",
]
