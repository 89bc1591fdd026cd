"""Helpers for locating stage inputs, streaming lines and writing results atomically."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence

from tqdm import tqdm

from .config import DEFAULT_COUNTERS_NAME, DEFAULT_INPUT_GLOB


def resolve_inputs(paths: Sequence[Path], pattern: str = DEFAULT_INPUT_GLOB) -> List[Path]:
    """Expand directories into their ``pattern`` matches; plain files pass through."""
    resolved: List[Path] = []
    for path in paths:
        if path.is_dir():
            resolved.extend(sorted(candidate for candidate in path.glob(pattern) if candidate.is_file()))
        elif path.is_file():
            resolved.append(path)
        else:
            raise FileNotFoundError(f"Input path does not exist: {path}")
    if not resolved:
        joined = ", ".join(str(path) for path in paths)
        raise FileNotFoundError(f"No input files matching '{pattern}' under {joined}")
    return resolved


def default_counters_path(paths: Sequence[Path]) -> Path:
    """Counters file expected alongside the first input directory (or file)."""
    if not paths:
        raise ValueError("At least one input path is required to locate the counters file.")
    first = paths[0]
    base = first if first.is_dir() else first.parent
    return base / DEFAULT_COUNTERS_NAME


def iter_lines(files: Sequence[Path], *, show_progress: bool = False, desc: str = "Reading input") -> Iterator[str]:
    """Yield lines (without trailing newline) from every file in order."""
    for path in tqdm(files, desc=desc, leave=False, disable=not show_progress):
        with path.open("r", encoding="utf-8", errors="replace") as handle:
            for line in handle:
                yield line.rstrip("\n")


def write_lines_atomic(lines: Iterable[str], dest: Path) -> int:
    """Write ``lines`` to ``dest`` via a temp file and rename; returns the line count."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    tmp_name: Optional[str] = None
    try:
        with tempfile.NamedTemporaryFile("w", encoding="utf-8", delete=False, dir=dest.parent) as tmp:
            tmp_name = tmp.name
            for line in lines:
                tmp.write(line)
                tmp.write("\n")
                count += 1
        os.replace(tmp_name, dest)
    except BaseException:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return count


__all__ = ["default_counters_path", "iter_lines", "resolve_inputs", "write_lines_atomic"]
