"""Loader for the corpus-wide totals L and F stored in the counters side file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional

import numpy as np

TOTAL_NAMES = ("L", "F")


class TotalsError(ValueError):
    """Raised when the global totals cannot be established."""


class MissingTotalsError(TotalsError):
    """The side file did not define every required total."""


class InvalidTotalsError(TotalsError):
    """A total was defined but cannot be used for normalization."""


@dataclass(frozen=True)
class GlobalTotals:
    """Corpus-wide normalization constants.

    L is the total number of pair occurrences and F the total number of
    single-feature occurrences. Both divide into the t-test, so they must be
    finite and strictly positive.
    """

    L: float
    F: float

    def __post_init__(self) -> None:
        for name, value in (("L", self.L), ("F", self.F)):
            if not np.isfinite(value) or value <= 0:
                raise InvalidTotalsError(f"Total {name} must be a finite positive number, received {value!r}.")


def parse_global_totals(lines: Iterable[str]) -> GlobalTotals:
    """Scan counter lines and build the totals; the last definition of a name wins.

    Args:
        lines: Raw side-file lines. Anything that is not ``L <number>`` or
            ``F <number>`` at the very start of the line is ignored.

    Returns:
        The immutable GlobalTotals.

    Raises:
        MissingTotalsError: If L or F was never defined.
        InvalidTotalsError: If a defined total is not finite and positive.
    """
    found: Dict[str, float] = {}
    for line in lines:
        parsed = _parse_counter_line(line)
        if parsed is None:
            continue
        name, value = parsed
        found[name] = value

    missing = [name for name in TOTAL_NAMES if name not in found]
    if missing:
        raise MissingTotalsError(f"Total counters haven't been found: missing {', '.join(missing)}.")
    return GlobalTotals(L=found["L"], F=found["F"])


def load_global_totals(path: Path) -> GlobalTotals:
    """Read the counters side file at ``path`` and parse the totals."""
    if not path.is_file():
        raise FileNotFoundError(f"Counters file not found: {path}")
    with path.open("r", encoding="utf-8", errors="replace") as handle:
        return parse_global_totals(handle)


# ---------------------------------------------------------------------------
# Internal helpers


def _parse_counter_line(line: str) -> Optional[tuple[str, float]]:
    if line[:1].isspace():
        return None
    parts = line.split()
    if len(parts) < 2 or parts[0] not in TOTAL_NAMES or "_" in parts[1]:
        return None
    try:
        value = float(parts[1])
    except ValueError:
        return None
    return parts[0], value


__all__ = [
    "GlobalTotals",
    "InvalidTotalsError",
    "MissingTotalsError",
    "TotalsError",
    "load_global_totals",
    "parse_global_totals",
]
