from __future__ import annotations

from collections.abc import Hashable, Sequence
from dataclasses import dataclass
import logging
from typing import Any

from chartline.grouping import sort_key
from chartline.numeric import compute_numeric_interval
from chartline.series import (
    Row,
    Series,
    dimension_is_numeric,
    dimension_is_timeseries,
    first_nonempty_series,
)
from chartline.settings import ChartSettings, XAxisScale
from chartline.timeseries import TimeseriesInterval, compute_timeseries_interval, min_timeseries_unit


LOGGER = logging.getLogger(__name__)

XInterval = TimeseriesInterval | float | None


@dataclass(frozen=True)
class XAxisProps:
    x_values: tuple[Hashable, ...]
    x_domain: tuple[Any, Any] | None
    x_interval: XInterval


def x_values(datas: Sequence[Sequence[Row]]) -> tuple[Hashable, ...]:
    """Distinct x-values across series, sorted when every series is monotonic."""
    seen: dict[Hashable, None] = {}
    for rows in datas:
        for row in rows:
            seen.setdefault(row[0], None)
    values = list(seen)

    ascending = True
    descending = True
    for rows in datas:
        for prev, cur in zip(rows, rows[1:]):
            a, b = sort_key(prev[0]), sort_key(cur[0])
            ascending = ascending and a <= b
            descending = descending and a >= b
        if not ascending and not descending:
            break

    if descending and not ascending:
        values.sort(key=sort_key, reverse=True)
    elif ascending:
        values.sort(key=sort_key)
    return tuple(values)


def x_domain(values: Sequence[Any]) -> tuple[Any, Any] | None:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return (min(present, key=sort_key), max(present, key=sort_key))


def x_interval(settings: ChartSettings, series: Sequence[Series], values: Sequence[Any]) -> XInterval:
    if settings.is_timeseries:
        unit = min_timeseries_unit(s.data.cols[0].unit for s in series)
        return compute_timeseries_interval(values, unit)
    if settings.is_quantitative or settings.is_histogram:
        # TODO: binning hints from series other than the first non-empty one are ignored
        bin_width = first_nonempty_series(series).data.cols[0].bin_width
        if bin_width is not None:
            return float(bin_width)
        return compute_numeric_interval(values)
    return None


def compute_x_axis(settings: ChartSettings, series: Sequence[Series], datas: Sequence[Sequence[Row]]) -> XAxisProps:
    values = x_values(datas)
    props = XAxisProps(
        x_values=values,
        x_domain=x_domain(values),
        x_interval=x_interval(settings, series, values),
    )
    LOGGER.debug(
        "x-axis %s: %d distinct values, domain=%s, interval=%s",
        settings.x_axis_scale,
        len(props.x_values),
        props.x_domain,
        props.x_interval,
    )
    return props


def default_x_axis_scale(series: Sequence[Series]) -> XAxisScale:
    data = first_nonempty_series(series).data
    if dimension_is_timeseries(data):
        return "timeseries"
    if dimension_is_numeric(data):
        if data.cols[0].bin_width is not None:
            return "histogram"
        return "linear"
    return "ordinal"
