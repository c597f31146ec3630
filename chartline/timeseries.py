from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import pandas as pd

from chartline.errors import ChartDataError


TIME_UNITS: tuple[str, ...] = ("ms", "second", "minute", "hour", "day", "week", "month", "quarter", "year")

_FIXED_UNIT_DELTAS: dict[str, pd.Timedelta] = {
    "ms": pd.Timedelta(milliseconds=1),
    "second": pd.Timedelta(seconds=1),
    "minute": pd.Timedelta(minutes=1),
    "hour": pd.Timedelta(hours=1),
    "day": pd.Timedelta(days=1),
    "week": pd.Timedelta(weeks=1),
}
_MONTHS_PER_UNIT: dict[str, int] = {"month": 1, "quarter": 3, "year": 12}
_FLOOR_FREQ: dict[str, str] = {"ms": "ms", "second": "s", "minute": "min", "hour": "h", "day": "D", "week": "D"}


@dataclass(frozen=True)
class TimeseriesInterval:
    unit: str
    count: int = 1

    def __post_init__(self) -> None:
        if self.unit not in TIME_UNITS:
            raise ValueError(f"Unsupported time unit: {self.unit!r}")
        if self.count < 1:
            raise ValueError("TimeseriesInterval.count must be >= 1")

    def offset(self) -> pd.Timedelta | pd.DateOffset:
        if self.unit in _FIXED_UNIT_DELTAS:
            return _FIXED_UNIT_DELTAS[self.unit] * self.count
        return pd.DateOffset(months=_MONTHS_PER_UNIT[self.unit] * self.count)

    def bucket_count(self, start: pd.Timestamp, end: pd.Timestamp) -> float:
        """Number of interval steps between `start` and `end`."""
        if self.unit in _FIXED_UNIT_DELTAS:
            return abs((end - start) / self.offset())
        months = (end.year - start.year) * 12 + (end.month - start.month)
        return abs(months / (_MONTHS_PER_UNIT[self.unit] * self.count))

    def date_range(self, start: pd.Timestamp, end: pd.Timestamp) -> list[pd.Timestamp]:
        return list(pd.date_range(start=start, end=end, freq=self.offset()))


@dataclass(frozen=True)
class _IntervalProbe:
    interval: TimeseriesInterval
    test: Callable[[pd.Timestamp], int]


# Finest to coarsest. An interval fits when every value agrees on the probe of the next finer step.
TIMESERIES_INTERVALS: tuple[_IntervalProbe, ...] = (
    _IntervalProbe(TimeseriesInterval("ms", 1), lambda t: 0),
    _IntervalProbe(TimeseriesInterval("second", 1), lambda t: t.microsecond // 1000),
    _IntervalProbe(TimeseriesInterval("second", 5), lambda t: t.second % 5),
    _IntervalProbe(TimeseriesInterval("second", 15), lambda t: t.second % 15),
    _IntervalProbe(TimeseriesInterval("second", 30), lambda t: t.second % 30),
    _IntervalProbe(TimeseriesInterval("minute", 1), lambda t: t.second),
    _IntervalProbe(TimeseriesInterval("minute", 5), lambda t: t.minute % 5),
    _IntervalProbe(TimeseriesInterval("minute", 15), lambda t: t.minute % 15),
    _IntervalProbe(TimeseriesInterval("minute", 30), lambda t: t.minute % 30),
    _IntervalProbe(TimeseriesInterval("hour", 1), lambda t: t.minute),
    _IntervalProbe(TimeseriesInterval("hour", 3), lambda t: t.hour % 3),
    _IntervalProbe(TimeseriesInterval("hour", 6), lambda t: t.hour % 6),
    _IntervalProbe(TimeseriesInterval("hour", 12), lambda t: t.hour % 12),
    _IntervalProbe(TimeseriesInterval("day", 1), lambda t: t.hour),
    _IntervalProbe(TimeseriesInterval("week", 1), lambda t: t.dayofweek),
    _IntervalProbe(TimeseriesInterval("month", 1), lambda t: t.day),
    _IntervalProbe(TimeseriesInterval("quarter", 1), lambda t: (t.month - 1) % 3),
    _IntervalProbe(TimeseriesInterval("year", 1), lambda t: t.month),
    _IntervalProbe(TimeseriesInterval("year", 5), lambda t: t.year % 5),
    _IntervalProbe(TimeseriesInterval("year", 10), lambda t: t.year % 10),
    _IntervalProbe(TimeseriesInterval("year", 50), lambda t: t.year % 50),
    _IntervalProbe(TimeseriesInterval("year", 100), lambda t: t.year % 100),
)
_WEEK_INDEX = 14


def parse_timestamp(value: Any, unit: str | None = None) -> pd.Timestamp | None:
    """Parse a dimension value into a UTC timestamp.

    Integers on a `year` unit name that calendar year. Other numbers are epoch
    milliseconds. Strings, datetimes and dates go through pandas.
    """

    if value is None:
        return None
    if isinstance(value, bool):
        raise ChartDataError(f"cannot parse timestamp from {value!r}")
    try:
        if isinstance(value, (int, float, Decimal)):
            if unit == "year" and float(value).is_integer():
                ts = pd.Timestamp(year=int(value), month=1, day=1)
            else:
                ts = pd.Timestamp(float(value), unit="ms")
        else:
            ts = pd.Timestamp(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ChartDataError(f"cannot parse timestamp from {value!r}") from exc
    if ts is pd.NaT:
        return None
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def min_timeseries_unit(units: Iterable[str | None]) -> str | None:
    """Finest known unit, i.e. the coarsest unit every series can be drawn at."""
    best: str | None = None
    for unit in units:
        if unit not in TIME_UNITS:
            continue
        if best is None or TIME_UNITS.index(unit) < TIME_UNITS.index(best):
            best = unit
    return best


def compute_timeseries_interval(x_values: Sequence[Any], unit: str | None) -> TimeseriesInterval:
    if unit in TIME_UNITS:
        return TimeseriesInterval(unit, 1)

    stamps = [v for v in x_values if isinstance(v, pd.Timestamp)]
    # A single value has no spacing to learn from.
    if len(stamps) <= 1:
        return TimeseriesInterval("day", 1)

    counts = [len({probe.test(t) for t in stamps}) for probe in TIMESERIES_INTERVALS]
    index = _first_index(counts, start=0)
    if index == _WEEK_INDEX and counts[_WEEK_INDEX + 1] == 1:
        # Weekday differs but day of month does not: monthly data, keep looking.
        index = _first_index(counts, start=_WEEK_INDEX + 1)
    if index == -1:
        return TIMESERIES_INTERVALS[-1].interval
    return TIMESERIES_INTERVALS[max(0, index - 1)].interval


def timestamp_key(value: pd.Timestamp) -> int:
    # Epoch milliseconds rounded to 10 ms.
    return int(round(value.value / 10_000_000)) * 10


def truncate_timestamp(value: pd.Timestamp, unit: str) -> pd.Timestamp:
    if unit in _FLOOR_FREQ:
        return value.floor(_FLOOR_FREQ[unit])
    day = value.normalize()
    if unit == "month":
        return day.replace(day=1)
    if unit == "quarter":
        return day.replace(month=3 * ((day.month - 1) // 3) + 1, day=1)
    return day.replace(month=1, day=1)


def _first_index(counts: Sequence[int], *, start: int) -> int:
    for i in range(start, len(counts)):
        if counts[i] > 1:
            return i
    return -1
