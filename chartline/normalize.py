from __future__ import annotations

from collections.abc import Sequence
import logging
from typing import Any, Literal

from chartline.diagnostics import NULL_DIMENSION_WARNING, WarningCollector
from chartline.errors import ChartDataError
from chartline.numeric import coerce_number
from chartline.series import (
    Row,
    RowOrigin,
    Series,
    dimension_is_numeric,
    dimension_is_timeseries,
    first_nonempty_series,
)
from chartline.settings import ChartSettings
from chartline.timeseries import parse_timestamp


LOGGER = logging.getLogger(__name__)

XKind = Literal["timestamp", "number", "string"]


def validate_series(series: Sequence[Series], *, max_series: int) -> None:
    if not series:
        raise ChartDataError("This chart type requires at least one series of data.")
    if len(first_nonempty_series(series).data.cols) < 2:
        raise ChartDataError("This chart type requires at least 2 columns.")
    if len(series) > max_series:
        raise ChartDataError(f"This chart type doesn't support more than {max_series} series of data.")
    for series_index, s in enumerate(series):
        arity = len(s.data.cols)
        if arity < 2:
            raise ChartDataError("This chart type requires at least 2 columns.")
        for row_index, raw in enumerate(s.data.rows):
            if len(raw) != arity:
                raise ChartDataError(
                    f"series {series_index} row {row_index} has {len(raw)} values, expected {arity}"
                )


def x_value_kind(series: Sequence[Series], settings: ChartSettings) -> XKind:
    data = first_nonempty_series(series).data
    # Years and unix timestamps on a quantitative scale stay numbers.
    if dimension_is_timeseries(data) and not settings.is_quantitative:
        return "timestamp"
    if dimension_is_numeric(data):
        return "number"
    return "string"


def normalize_series(
    series: Sequence[Series],
    settings: ChartSettings,
    warnings: WarningCollector,
) -> list[list[Row]]:
    kind = x_value_kind(series, settings)
    datas: list[list[Row]] = []
    for series_index, s in enumerate(series):
        unit = s.data.cols[0].unit
        rows: list[Row] = []
        for row_index, raw in enumerate(s.data.rows):
            x = _coerce_x(raw[0], kind, unit, warnings)
            rows.append(Row((x, *raw[1:]), origin=RowOrigin(series_index, row_index)))
        datas.append(rows)
    LOGGER.debug("normalized %d series as %s x-values", len(datas), kind)
    return datas


def _coerce_x(value: Any, kind: XKind, unit: str | None, warnings: WarningCollector) -> Any:
    if value is None:
        warnings.warn(NULL_DIMENSION_WARNING)
        return None
    if kind == "timestamp":
        parsed = parse_timestamp(value, unit)
        if parsed is None:
            warnings.warn(NULL_DIMENSION_WARNING)
        return parsed
    if kind == "number":
        return coerce_number(value)
    return str(value)
