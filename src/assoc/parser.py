"""
Parser for the joined count lines written by the upstream counting stages.

Each useful line has four whitespace-separated fields::

    <left> <right> lf=<count> l=<count>
    <left> <right> lf=<count> f=<count>

Anything else is upstream noise and is dropped without a diagnostic.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional, Tuple

import numpy as np

from .records import FeaturePairKey, LeftMarginal, PartialRecord, RightMarginal

ParsedRecord = Tuple[FeaturePairKey, PartialRecord]

FIELD_COUNT = 4
JOINT_TAG = "lf"
LEFT_TAG = "l"
RIGHT_TAG = "f"


def parse_line(line: str) -> Optional[ParsedRecord]:
    """Decode one input line, returning None for any malformed shape."""
    fields = line.split()
    if len(fields) != FIELD_COUNT:
        return None
    left, right, joint_field, marginal_field = fields

    joint = _parse_tagged(joint_field, expected_tag=JOINT_TAG)
    if joint is None:
        return None

    tag, _, raw_value = marginal_field.partition("=")
    marginal = _parse_count(raw_value)
    if marginal is None:
        return None

    key = FeaturePairKey(left, right)
    if tag == LEFT_TAG:
        return key, LeftMarginal(marginal, joint=joint)
    if tag == RIGHT_TAG:
        return key, RightMarginal(marginal, joint=joint)
    return None


def parse_lines(lines: Iterable[str]) -> Iterator[ParsedRecord]:
    """Yield every successfully parsed line, skipping the rest."""
    for line in lines:
        parsed = parse_line(line)
        if parsed is not None:
            yield parsed


# ---------------------------------------------------------------------------
# Internal helpers


def _parse_tagged(field: str, expected_tag: str) -> Optional[float]:
    tag, sep, raw_value = field.partition("=")
    if not sep or tag != expected_tag:
        return None
    return _parse_count(raw_value)


def _parse_count(raw_value: str) -> Optional[float]:
    # Counts are never negative, NaN or infinite; such tokens are corruption.
    if "_" in raw_value:
        return None
    try:
        value = float(raw_value)
    except ValueError:
        return None
    if not np.isfinite(value) or value < 0:
        return None
    return value


__all__ = ["FIELD_COUNT", "ParsedRecord", "parse_line", "parse_lines"]
