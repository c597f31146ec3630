from __future__ import annotations

from collections.abc import Callable, Hashable, Sequence
import dataclasses
from dataclasses import dataclass
import logging
from typing import Any, Literal

import pandas as pd

from chartline.axis import XInterval
from chartline.diagnostics import WarningCollector, unaggregated_data_warning
from chartline.grouping import (
    Dimension,
    Group,
    reduce_group,
    sum_column,
    sum_size_or_count,
)
from chartline.series import Row, Series
from chartline.settings import ChartSettings, is_normalized, is_stacked
from chartline.timeseries import TimeseriesInterval, truncate_timestamp


LOGGER = logging.getLogger(__name__)

AggregationMode = Literal["scatter", "stacked", "independent"]


@dataclass(frozen=True)
class AggregateResult:
    mode: AggregationMode
    dimension: Dimension
    # groups[i] holds the stacked layers drawn by sub-chart i.
    groups: tuple[tuple[Group, ...], ...]
    series: tuple[Series, ...]


def aggregation_mode(settings: ChartSettings, chart_type: str, series_count: int) -> AggregationMode:
    if chart_type == "scatter":
        return "scatter"
    if settings.legacy_stack_selection or is_stacked(settings, series_count):
        return "stacked"
    return "independent"


def dimension_key_fn(settings: ChartSettings, interval: XInterval) -> Callable[[Sequence[Any]], Hashable]:
    if settings.is_timeseries and isinstance(interval, TimeseriesInterval):
        unit = interval.unit
        return lambda row: truncate_timestamp(row[0], unit) if isinstance(row[0], pd.Timestamp) else row[0]
    return lambda row: row[0]


def aggregate(
    series: Sequence[Series],
    datas: Sequence[Sequence[Row]],
    settings: ChartSettings,
    warnings: WarningCollector,
    *,
    chart_type: str,
    x_interval: XInterval = None,
) -> AggregateResult:
    mode = aggregation_mode(settings, chart_type, len(datas))
    LOGGER.debug("aggregating %d series in %s mode", len(datas), mode)
    if mode == "scatter":
        return _aggregate_scatter(series, datas)
    key_fn = dimension_key_fn(settings, x_interval)
    if mode == "stacked":
        return _aggregate_stacked(series, datas, settings, warnings, key_fn)
    return _aggregate_independent(series, datas, warnings, key_fn)


def _aggregate_scatter(series: Sequence[Series], datas: Sequence[Sequence[Row]]) -> AggregateResult:
    def key_fn(row: Sequence[Any]) -> Hashable:
        return (row[0], row[1])

    dimension = Dimension.from_rows((row for rows in datas for row in rows), key_fn)
    groups = []
    for rows in datas:
        dim = Dimension.from_rows(rows, key_fn)
        # Bubble size when a third column exists, otherwise a count of points.
        groups.append((reduce_group(dim, rows, sum_size_or_count(2), initial=0),))
    return AggregateResult(mode="scatter", dimension=dimension, groups=tuple(groups), series=tuple(series))


def _aggregate_stacked(
    series: Sequence[Series],
    datas: Sequence[Sequence[Row]],
    settings: ChartSettings,
    warnings: WarningCollector,
    key_fn: Callable[[Sequence[Any]], Hashable],
) -> AggregateResult:
    normalized = is_normalized(settings, len(datas))
    totals: dict[Hashable, float] = {}
    if normalized:
        # Per-x totals come from the raw values, before any dimension exists.
        for rows in datas:
            for row in rows:
                key = key_fn(row)
                totals[key] = totals.get(key, 0) + (row[1] or 0)
        series = [_percent_labelled(s) for s in series]

    width = len(datas) + 1
    layered: list[list[Row]] = []
    for i, rows in enumerate(datas):
        layer: list[Row] = []
        for row in rows:
            value = row[1] if len(row) > 1 else None
            if normalized:
                value = _share(value, totals.get(key_fn(row)))
            cells: list[Any] = [None] * width
            cells[0] = row[0]
            cells[i + 1] = value
            layer.append(Row(cells, origin=row.origin))
        layered.append(layer)

    dimension = Dimension.from_rows((row for layer in layered for row in layer), key_fn)
    groups = tuple(
        reduce_group(dimension, layer, sum_column(i + 1, _warn_unaggregated(warnings, series[i])))
        for i, layer in enumerate(layered)
    )
    return AggregateResult(mode="stacked", dimension=dimension, groups=(groups,), series=tuple(series))


def _aggregate_independent(
    series: Sequence[Series],
    datas: Sequence[Sequence[Row]],
    warnings: WarningCollector,
    key_fn: Callable[[Sequence[Any]], Hashable],
) -> AggregateResult:
    dimension = Dimension.from_rows((row for rows in datas for row in rows), key_fn)
    groups = []
    for i, rows in enumerate(datas):
        # Empty results still need one entry to build a group from.
        rows = rows if rows else [Row((None, None))]
        dim = Dimension.from_rows(rows, key_fn)
        on_duplicate = _warn_unaggregated(warnings, series[i])
        metric_count = len(rows[0]) - 1
        groups.append(
            tuple(reduce_group(dim, rows, sum_column(metric + 1, on_duplicate)) for metric in range(metric_count))
        )
    return AggregateResult(mode="independent", dimension=dimension, groups=tuple(groups), series=tuple(series))


def sort_groups_by_x_values(result: AggregateResult, x_values: Sequence[Hashable]) -> AggregateResult:
    """Reorder every group to the display order of `x_values`."""
    index_map = {value: i for i, value in enumerate(x_values)}
    key_of = (lambda key: key[0]) if result.mode == "scatter" else None
    groups = tuple(tuple(group.reordered(index_map, key_of) for group in layers) for layers in result.groups)
    return dataclasses.replace(result, groups=groups)


def _warn_unaggregated(warnings: WarningCollector, s: Series) -> Callable[[], None]:
    message = unaggregated_data_warning(s.data.cols[0])
    return lambda: warnings.warn(message)


def _share(value: Any, total: float | None) -> float | None:
    if value is None or not total:
        return None
    return value / total


def _percent_labelled(s: Series) -> Series:
    cols = list(s.data.cols)
    cols[1] = dataclasses.replace(cols[1], display_name="% " + cols[1].friendly_name)
    return dataclasses.replace(s, data=dataclasses.replace(s.data, cols=tuple(cols)))
