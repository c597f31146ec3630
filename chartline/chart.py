from __future__ import annotations

from collections.abc import Callable, Sequence
import dataclasses
from dataclasses import dataclass
import logging
from typing import Any, Protocol

from chartline.aggregate import AggregateResult, aggregate, sort_groups_by_x_values
from chartline.axis import XAxisProps, compute_x_axis, default_x_axis_scale
from chartline.brush import BrushController, FilterUpdateRequest, brush_enabled
from chartline.diagnostics import NULL_DIMENSION_WARNING, WarningCollector
from chartline.errors import ChartSettingsError
from chartline.gapfill import fill_missing_values
from chartline.goal import GoalLine, goal_line
from chartline.grouping import Dimension, Group
from chartline.normalize import normalize_series, validate_series
from chartline.series import Row, Series
from chartline.settings import CHART_TYPES, DEFAULT_MAX_SERIES, ChartSettings, ChartType
from chartline.yaxis import YAxisProps, y_axis_props


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayerSpec:
    index: int
    groups: tuple[Group, ...]
    use_right_y_axis: bool
    colors: tuple[str, ...]


@dataclass(frozen=True)
class RenderResult:
    y_axis_split: tuple[tuple[int, ...], ...]
    warnings: dict[str, int]


@dataclass(frozen=True)
class ChartPayload:
    chart_type: ChartType
    settings: ChartSettings
    series: tuple[Series, ...]
    datas: tuple[tuple[Row, ...], ...]
    x_axis: XAxisProps
    aggregate: AggregateResult
    y_axis: YAxisProps
    layers: tuple[LayerSpec, ...]
    goal: GoalLine | None
    brush_enabled: bool
    warnings: dict[str, int]

    @property
    def dimension(self) -> Dimension:
        return self.aggregate.dimension

    @property
    def groups(self) -> tuple[tuple[Group, ...], ...]:
        return self.aggregate.groups


class RenderingEngine(Protocol):
    def draw(self, payload: ChartPayload) -> None: ...


class LineAreaBarChart:
    def __init__(
        self,
        series: Sequence[Series],
        settings: ChartSettings | None = None,
        *,
        chart_type: ChartType,
        engine: RenderingEngine | None = None,
        is_scalar_series: bool = False,
        max_series: int = DEFAULT_MAX_SERIES,
        on_render: Callable[[RenderResult], None] | None = None,
        on_filter: Callable[[FilterUpdateRequest], None] | None = None,
    ) -> None:
        if chart_type not in CHART_TYPES:
            raise ChartSettingsError(f"Unsupported chart type: {chart_type!r}")
        if max_series < 1:
            raise ValueError("max_series must be >= 1")
        self.series = tuple(series)
        self.settings = settings
        self.chart_type = chart_type
        self.engine = engine
        self.is_scalar_series = is_scalar_series
        self.max_series = max_series
        self.on_render = on_render
        self.on_filter = on_filter
        self.brush: BrushController | None = None
        self.last_payload: ChartPayload | None = None

    def render(self) -> ChartPayload:
        warnings = WarningCollector()
        validate_series(self.series, max_series=self.max_series)

        settings = self.settings or ChartSettings(x_axis_scale=default_x_axis_scale(self.series))
        if settings.is_histogram:
            # Histograms always show empty bins as zero.
            settings = dataclasses.replace(settings, missing="zero")

        datas = normalize_series(self.series, settings, warnings)
        x_axis = compute_x_axis(settings, self.series, datas)
        widths = [len(s.data.cols) - 1 for s in self.series]
        datas, x_axis = fill_missing_values(datas, x_axis, settings, chart_type=self.chart_type, widths=widths)
        if self.is_scalar_series:
            x_axis = dataclasses.replace(x_axis, x_values=tuple(rows[0][0] for rows in datas if rows))

        result = aggregate(
            self.series,
            datas,
            settings,
            warnings,
            chart_type=self.chart_type,
            x_interval=x_axis.x_interval,
        )
        y_axis = y_axis_props(
            settings,
            result.series,
            result.groups,
            chart_type=self.chart_type,
            is_scalar_series=self.is_scalar_series,
        )
        # Timeseries and quantitative points are drawn in domain order regardless of group order.
        if not settings.is_timeseries and not settings.is_quantitative:
            result = sort_groups_by_x_values(result, x_axis.x_values)

        enable_brush = brush_enabled(self.series, has_filter_callback=self.on_filter is not None)
        self.brush = BrushController(self.series) if enable_brush else None

        if settings.is_ordinal:
            # Ordinal axes draw a null category.
            warnings.discard(NULL_DIMENSION_WARNING)

        payload = ChartPayload(
            chart_type=self.chart_type,
            settings=settings,
            series=result.series,
            datas=tuple(tuple(rows) for rows in datas),
            x_axis=x_axis,
            aggregate=result,
            y_axis=y_axis,
            layers=self._layers(settings, result, y_axis),
            goal=goal_line(settings, x_axis.x_domain),
            brush_enabled=enable_brush,
            warnings=warnings.as_dict(),
        )
        if self.engine is not None:
            self.engine.draw(payload)
        LOGGER.debug("rendered %s chart with %d layers, warnings=%s", self.chart_type, len(payload.layers), payload.warnings)
        if self.on_render is not None:
            self.on_render(RenderResult(y_axis_split=y_axis.split, warnings=payload.warnings))
        self.last_payload = payload
        return payload

    def brush_change(self) -> None:
        if self.brush is not None:
            self.brush.begin_change()

    def brush_end(self, selection: Sequence[Any] | None) -> FilterUpdateRequest | None:
        if self.brush is None:
            return None
        request = self.brush.end(selection)
        if request is not None and self.on_filter is not None:
            self.on_filter(request)
        return request

    def accepts_hover(self) -> bool:
        # Tooltips are suppressed while a brush drag is in progress.
        return self.brush is None or not self.brush.is_selecting()

    def _layers(self, settings: ChartSettings, result: AggregateResult, y_axis: YAxisProps) -> tuple[LayerSpec, ...]:
        colors = settings.colors
        right = set(y_axis.split[1]) if len(y_axis.split) > 1 else set()
        multiple = len(result.groups) > 1 or self.chart_type == "scatter"
        layers = []
        for index, groups in enumerate(result.groups):
            if multiple:
                tokens = tuple(colors[(index + j) % len(colors)] for j in range(len(groups)))
            else:
                tokens = tuple(colors[j % len(colors)] for j in range(len(groups)))
            layers.append(LayerSpec(index=index, groups=groups, use_right_y_axis=index in right, colors=tokens))
        return tuple(layers)


def line_chart(series: Sequence[Series], settings: ChartSettings | None = None, **kwargs: Any) -> LineAreaBarChart:
    chart = LineAreaBarChart(series, settings, chart_type="line", **kwargs)
    chart.render()
    return chart


def area_chart(series: Sequence[Series], settings: ChartSettings | None = None, **kwargs: Any) -> LineAreaBarChart:
    chart = LineAreaBarChart(series, settings, chart_type="area", **kwargs)
    chart.render()
    return chart


def bar_chart(series: Sequence[Series], settings: ChartSettings | None = None, **kwargs: Any) -> LineAreaBarChart:
    chart = LineAreaBarChart(series, settings, chart_type="bar", **kwargs)
    chart.render()
    return chart


def scatter_chart(series: Sequence[Series], settings: ChartSettings | None = None, **kwargs: Any) -> LineAreaBarChart:
    chart = LineAreaBarChart(series, settings, chart_type="scatter", **kwargs)
    chart.render()
    return chart
