"""Serialization of association records into output lines."""

from __future__ import annotations

from typing import Iterable, Iterator, Tuple

import numpy as np

from .records import AssociationRecord, FeaturePairKey

KEY_VALUE_SEPARATOR = "\t"

# Below 1e-3 and from 1e7 upwards the consumer expects computerized scientific notation.
_PLAIN_LOWER = 1e-3
_PLAIN_UPPER = 1e7


def format_double(value: float) -> str:
    """Locale-independent shortest round-trip rendering of a double.

    ``5.0``, ``0.25``, ``1.6666666666666667``, ``1.0E-5``, ``1.2345678E7``,
    ``NaN``, ``Infinity``.
    """
    value = float(value)
    if np.isnan(value):
        return "NaN"
    if np.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"

    magnitude = abs(value)
    if magnitude == 0 or _PLAIN_LOWER <= magnitude < _PLAIN_UPPER:
        return np.format_float_positional(value, unique=True, trim="0")

    mantissa, exponent = np.format_float_scientific(value, unique=True, trim="0").split("e")
    return f"{mantissa}E{int(exponent)}"


def format_key(key: FeaturePairKey) -> str:
    return key.serialize()


def format_value(record: AssociationRecord) -> str:
    return (
        f"assoc_freq={format_double(record.assoc_freq)} "
        f"assoc_prob={format_double(record.assoc_prob)} "
        f"assoc_PMI={format_double(record.assoc_pmi)} "
        f"assoc_t_test={format_double(record.assoc_t_test)}"
    )


def emit(record: AssociationRecord) -> Tuple[str, str]:
    """Return the (key, value) text pair for one record."""
    return format_key(record.key), format_value(record)


def format_line(record: AssociationRecord) -> str:
    key, value = emit(record)
    return f"{key}{KEY_VALUE_SEPARATOR}{value}"


def format_lines(records: Iterable[AssociationRecord]) -> Iterator[str]:
    for record in records:
        yield format_line(record)


__all__ = [
    "KEY_VALUE_SEPARATOR",
    "emit",
    "format_double",
    "format_key",
    "format_line",
    "format_lines",
    "format_value",
]
