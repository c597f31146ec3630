from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Any

import numpy as np

from chartline.errors import ChartDataError


DEFAULT_NUMERIC_INTERVAL = 1.0
_GAP_SIGNIFICANT_DIGITS = 10


def coerce_number(value: Any) -> int | float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ChartDataError(f"dimension value is not numeric: {value!r}")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, (Decimal, np.integer, np.floating)):
        return value.item() if isinstance(value, np.generic) else float(value)
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError as exc:
            raise ChartDataError(f"dimension value is not numeric: {value!r}") from exc
        return int(number) if number.is_integer() and "." not in value else number
    raise ChartDataError(f"dimension value is not numeric: {value!r}")


def finite_values(values: Sequence[Any]) -> np.ndarray:
    numbers = [float(v) for v in values if isinstance(v, (int, float)) and not isinstance(v, bool)]
    arr = np.asarray(numbers, dtype=np.float64)
    return arr[np.isfinite(arr)]


def compute_numeric_interval(x_values: Sequence[Any]) -> float:
    """Most common gap between consecutive distinct x-values.

    Gaps are compared at ten significant digits so float noise does not split a
    mode; ties resolve to the smaller gap.
    """

    uniq = np.unique(finite_values(x_values))
    if uniq.size < 2:
        return DEFAULT_NUMERIC_INTERVAL
    span = float(uniq[-1] - uniq[0])
    eps = max(1e-12, span * 1e-9)
    diffs = np.diff(uniq)
    significant = diffs[diffs > eps]
    if significant.size == 0:
        return DEFAULT_NUMERIC_INTERVAL
    rounded = np.asarray([float(f"{d:.{_GAP_SIGNIFICANT_DIGITS}g}") for d in significant.tolist()], dtype=np.float64)
    gaps, counts = np.unique(rounded, return_counts=True)
    return float(gaps[int(np.argmax(counts))])


def interval_key(value: float, interval: float, origin: float = 0.0) -> int:
    # Steps of `interval` from `origin`, halves rounded up.
    return int(np.floor((value - origin) / interval + 0.5))


def numeric_range(start: float, stop: float, step: float) -> list[float]:
    count = range_length(start, stop, step)
    if count == 0:
        return []
    values = start + np.arange(count, dtype=np.float64) * step
    return [_clean_float(v) for v in values.tolist()]


def range_length(start: float, stop: float, step: float) -> int:
    if step <= 0 or stop <= start:
        return 0
    return int(np.ceil((stop - start) / step))


def _clean_float(value: float) -> float:
    rounded = round(value, 12)
    if rounded == 0:
        return 0.0
    return rounded
