from __future__ import annotations

from collections.abc import Callable, Hashable, Sequence
import dataclasses
import logging
from typing import Any

import pandas as pd

from chartline.axis import XAxisProps
from chartline.numeric import interval_key, numeric_range, range_length
from chartline.series import Row
from chartline.settings import ChartSettings, is_histogram_bar
from chartline.timeseries import TimeseriesInterval, timestamp_key


LOGGER = logging.getLogger(__name__)

# Upper bound on synthesized x positions per series.
MAX_FILL_COUNT = 10000

# Bar histograms get an extra bin so the last bar has a trailing edge.
HISTOGRAM_BAR_END_PADDING = 1.5
# Keeps the true end value despite float truncation in the range.
QUANTITATIVE_END_PADDING = 0.5


def fill_missing_values(
    datas: Sequence[Sequence[Row]],
    x_axis: XAxisProps,
    settings: ChartSettings,
    *,
    chart_type: str,
    widths: Sequence[int],
) -> tuple[list[list[Row]], XAxisProps]:
    """Insert fill rows for x positions a series lacks.

    `widths` is the metric count of each series. Returns the (possibly
    unchanged) rows and x-axis props whose `x_values` is the filled sequence.
    """

    unchanged = [list(rows) for rows in datas]
    if not settings.fill_enabled or x_axis.x_domain is None:
        return unchanged, x_axis

    plan = _fill_sequence(x_axis, settings, chart_type=chart_type)
    if plan is None:
        return unchanged, x_axis
    values, key_fn = plan

    fill_value = settings.fill_value
    filled = [
        _fill_rows(rows, values, fill_value, key_fn, width=width, series_index=i)
        for i, (rows, width) in enumerate(zip(datas, widths))
    ]
    return filled, dataclasses.replace(x_axis, x_values=tuple(values))


def _fill_sequence(
    x_axis: XAxisProps,
    settings: ChartSettings,
    *,
    chart_type: str,
) -> tuple[list[Any], Callable[[Any], Hashable]] | None:
    start, end = x_axis.x_domain
    interval = x_axis.x_interval

    if settings.is_timeseries:
        if not isinstance(interval, TimeseriesInterval) or not isinstance(start, pd.Timestamp):
            return None
        count = int(interval.bucket_count(start, end)) + 1
        if count > MAX_FILL_COUNT:
            LOGGER.info("skipping gap fill: %d %s buckets exceeds %d", count, interval.unit, MAX_FILL_COUNT)
            return None
        return interval.date_range(start, end), _none_safe(timestamp_key)

    if settings.is_quantitative or settings.is_histogram:
        if not isinstance(interval, float) or interval <= 0 or not _is_number(start) or not _is_number(end):
            return None
        padding = HISTOGRAM_BAR_END_PADDING if is_histogram_bar(settings, chart_type) else QUANTITATIVE_END_PADDING
        stop = end + interval * padding
        count = range_length(start, stop, interval)
        if count > MAX_FILL_COUNT:
            LOGGER.info("skipping gap fill: %d bins of width %g exceeds %d", count, interval, MAX_FILL_COUNT)
            return None
        return numeric_range(start, stop, interval), _none_safe(lambda v: interval_key(v, interval, start))

    if len(x_axis.x_values) > MAX_FILL_COUNT:
        LOGGER.info("skipping gap fill: %d categories exceeds %d", len(x_axis.x_values), MAX_FILL_COUNT)
        return None
    return list(x_axis.x_values), lambda v: v


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _none_safe(key_fn: Callable[[Any], Hashable]) -> Callable[[Any], Hashable]:
    return lambda v: None if v is None else key_fn(v)


def _fill_rows(
    rows: Sequence[Row],
    values: Sequence[Any],
    fill_value: Any,
    key_fn: Callable[[Any], Hashable],
    *,
    width: int,
    series_index: int,
) -> list[Row]:
    if not rows:
        return []

    value_keys = [key_fn(v) for v in values]
    keep_nulls = None not in set(value_keys)
    present = [i for i, row in enumerate(rows) if not (keep_nulls and row[0] is None)]
    if not present:
        return list(rows)
    first, last = present[0], present[-1]
    if len(present) != last - first + 1:
        LOGGER.warning("series %d: null x-values between data rows, keeping rows unfilled", series_index)
        return list(rows)

    buckets: dict[Hashable, list[Row]] = {}
    for row in rows[first : last + 1]:
        buckets.setdefault(key_fn(row[0]), []).append(row)

    out: list[Row] = list(rows[:first])
    matched: list[Row] = []
    fill = (fill_value,) * width
    for value, key in zip(values, value_keys):
        found = buckets.pop(key, None)
        if found:
            matched.extend(found)
            out.extend(row.replace_x(value) for row in found)
        else:
            out.append(Row((value, *fill)))
    out.extend(rows[last + 1 :])

    if buckets:
        LOGGER.warning(
            "series %d: %d x-values missing from the fill sequence, keeping rows unfilled",
            series_index,
            sum(len(b) for b in buckets.values()),
        )
        return list(rows)
    if any(a is not b for a, b in zip(matched, rows[first : last + 1])):
        LOGGER.warning("series %d: rows are not in x-axis order, keeping rows unfilled", series_index)
        return list(rows)
    return out
