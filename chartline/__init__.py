from chartline.aggregate import AggregateResult, aggregate, sort_groups_by_x_values
from chartline.axis import XAxisProps, compute_x_axis, default_x_axis_scale
from chartline.brush import BrushController, FilterUpdateRequest, brush_enabled
from chartline.chart import (
    ChartPayload,
    LayerSpec,
    LineAreaBarChart,
    RenderResult,
    RenderingEngine,
    area_chart,
    bar_chart,
    line_chart,
    scatter_chart,
)
from chartline.diagnostics import NULL_DIMENSION_WARNING, WarningCollector
from chartline.errors import ChartDataError, ChartSettingsError
from chartline.gapfill import MAX_FILL_COUNT, fill_missing_values
from chartline.grouping import Dimension, Group
from chartline.normalize import normalize_series, validate_series
from chartline.series import Column, QueryRef, Row, RowOrigin, Series, SeriesData
from chartline.settings import ChartSettings
from chartline.timeseries import TimeseriesInterval
from chartline.yaxis import YAxisProps, y_axis_props

__all__ = [
    "AggregateResult",
    "BrushController",
    "ChartDataError",
    "ChartPayload",
    "ChartSettings",
    "ChartSettingsError",
    "Column",
    "Dimension",
    "FilterUpdateRequest",
    "Group",
    "LayerSpec",
    "LineAreaBarChart",
    "MAX_FILL_COUNT",
    "NULL_DIMENSION_WARNING",
    "QueryRef",
    "RenderResult",
    "RenderingEngine",
    "Row",
    "RowOrigin",
    "Series",
    "SeriesData",
    "TimeseriesInterval",
    "WarningCollector",
    "XAxisProps",
    "YAxisProps",
    "aggregate",
    "area_chart",
    "bar_chart",
    "brush_enabled",
    "compute_x_axis",
    "default_x_axis_scale",
    "fill_missing_values",
    "line_chart",
    "normalize_series",
    "scatter_chart",
    "sort_groups_by_x_values",
    "validate_series",
    "y_axis_props",
]
