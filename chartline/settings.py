from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import logging
from typing import Any, Literal

from chartline.errors import ChartSettingsError


LOGGER = logging.getLogger(__name__)

XAxisScale = Literal["timeseries", "linear", "log", "pow", "histogram", "ordinal"]
StackType = Literal["none", "stacked", "normalized"]
MissingPolicy = Literal["zero", "none", "interpolate"]
ChartType = Literal["line", "area", "bar", "scatter"]

X_AXIS_SCALES: tuple[str, ...] = ("timeseries", "linear", "log", "pow", "histogram", "ordinal")
QUANTITATIVE_SCALES: tuple[str, ...] = ("linear", "log", "pow")
STACK_TYPES: tuple[str, ...] = ("none", "stacked", "normalized")
MISSING_POLICIES: tuple[str, ...] = ("zero", "none", "interpolate")
CHART_TYPES: tuple[str, ...] = ("line", "area", "bar", "scatter")

DEFAULT_MAX_SERIES = 20
DEFAULT_COLORS: tuple[str, ...] = (
    "#509EE3",
    "#9CC177",
    "#A989C5",
    "#EF8C8C",
    "#F9D45C",
    "#F1B556",
    "#A6E7F3",
    "#7172AD",
)

# String-keyed settings accepted by ChartSettings.from_mapping.
SETTING_KEYS: dict[str, str] = {
    "graph.x_axis.scale": "x_axis_scale",
    "stackable.stack_type": "stack_type",
    "line.missing": "missing",
    "graph.y_axis.auto_split": "auto_split",
    "graph.show_goal": "show_goal",
    "graph.goal_value": "goal_value",
    "graph.colors": "colors",
}


@dataclass(frozen=True)
class ChartSettings:
    x_axis_scale: XAxisScale = "ordinal"
    stack_type: StackType = "none"
    missing: MissingPolicy = "interpolate"
    auto_split: bool = True
    show_goal: bool = False
    goal_value: float | None = None
    colors: tuple[str, ...] = DEFAULT_COLORS
    # Route every non-scatter chart through the shared stacked dataset.
    legacy_stack_selection: bool = False

    def __post_init__(self) -> None:
        if self.x_axis_scale not in X_AXIS_SCALES:
            raise ChartSettingsError(f"Unsupported x-axis scale: {self.x_axis_scale!r}")
        if self.stack_type not in STACK_TYPES:
            raise ChartSettingsError(f"Unsupported stack type: {self.stack_type!r}")
        if self.missing not in MISSING_POLICIES:
            raise ChartSettingsError(f"Unsupported missing-value policy: {self.missing!r}")
        if not isinstance(self.auto_split, bool):
            raise ChartSettingsError("auto_split must be a bool")
        if not isinstance(self.show_goal, bool):
            raise ChartSettingsError("show_goal must be a bool")
        if self.show_goal and self.goal_value is None:
            raise ChartSettingsError("goal_value is required when show_goal is enabled")
        if self.goal_value is not None and isinstance(self.goal_value, bool):
            raise ChartSettingsError("goal_value must be a number")
        if not self.colors:
            raise ChartSettingsError("colors must contain at least one color token")

    @property
    def is_timeseries(self) -> bool:
        return self.x_axis_scale == "timeseries"

    @property
    def is_quantitative(self) -> bool:
        return self.x_axis_scale in QUANTITATIVE_SCALES

    @property
    def is_histogram(self) -> bool:
        return self.x_axis_scale == "histogram"

    @property
    def is_ordinal(self) -> bool:
        return self.x_axis_scale == "ordinal"

    @property
    def fill_enabled(self) -> bool:
        return self.missing in ("zero", "none")

    @property
    def fill_value(self) -> float | None:
        return 0 if self.missing == "zero" else None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ChartSettings":
        kwargs: dict[str, Any] = {}
        for key, raw in values.items():
            field_name = SETTING_KEYS.get(key)
            if field_name is None:
                LOGGER.debug("ignoring unknown chart setting %r", key)
                continue
            if raw is None:
                continue
            kwargs[field_name] = raw
        if "goal_value" in kwargs:
            kwargs["goal_value"] = _coerce_goal_value(kwargs["goal_value"])
        if "colors" in kwargs:
            colors = kwargs["colors"]
            if isinstance(colors, str):
                raise ChartSettingsError("graph.colors must be a sequence of color tokens")
            kwargs["colors"] = tuple(str(c) for c in colors)
        return cls(**kwargs)


def is_stacked(settings: ChartSettings, series_count: int) -> bool:
    return settings.stack_type != "none" and series_count > 1


def is_normalized(settings: ChartSettings, series_count: int) -> bool:
    return is_stacked(settings, series_count) and settings.stack_type == "normalized"


def is_histogram_bar(settings: ChartSettings, chart_type: str) -> bool:
    # Bar histograms align ticks with the start of each bin.
    return settings.is_histogram and chart_type == "bar"


def _coerce_goal_value(raw: Any) -> float:
    if isinstance(raw, bool):
        raise ChartSettingsError("graph.goal_value must be a number")
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ChartSettingsError(f"graph.goal_value must be a number, got {raw!r}") from exc
