from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import json
from pathlib import Path

from chartline.series import Column, QueryRef, Series, SeriesData
from chartline.settings import ChartSettings


@dataclass(frozen=True)
class ChartInput:
    series: tuple[Series, ...]
    settings: ChartSettings | None


def column_from_dict(raw: Mapping[str, object]) -> Column:
    bin_width = raw.get("bin_width")
    binning = raw.get("binning_info")
    if bin_width is None and isinstance(binning, Mapping):
        bin_width = binning.get("bin_width")
    remapping = raw.get("remapping")
    if remapping is not None and not isinstance(remapping, Mapping):
        raise TypeError("`remapping` must be a mapping when provided")
    return Column(
        name=str(raw["name"]),
        base_type=str(raw.get("base_type", "type/Text")),
        display_name=_coerce_optional_str(raw.get("display_name")),
        unit=_coerce_optional_str(raw.get("unit")),
        bin_width=float(bin_width) if bin_width is not None else None,
        special_type=_coerce_optional_str(raw.get("special_type")),
        remapping=dict(remapping) if remapping is not None else None,
    )


def series_from_dict(raw: Mapping[str, object]) -> Series:
    data = raw.get("data")
    if not isinstance(data, Mapping):
        raise TypeError("`data` must be a mapping")
    raw_cols = data.get("cols")
    if not isinstance(raw_cols, list):
        raise TypeError("`data.cols` must be a list")
    raw_rows = data.get("rows", [])
    if not isinstance(raw_rows, list):
        raise TypeError("`data.rows` must be a list")

    card = raw.get("card") or {}
    if not isinstance(card, Mapping):
        raise TypeError("`card` must be a mapping when provided")
    query = QueryRef(
        card_id=card.get("id"),
        is_structured=bool(card.get("structured", True)),
        name=_coerce_optional_str(card.get("name")),
    )
    cols = tuple(column_from_dict(c) for c in raw_cols)
    rows = tuple(tuple(r) for r in raw_rows)
    return Series(data=SeriesData(cols=cols, rows=rows), card=query)


def chart_input_from_dict(payload: Mapping[str, object]) -> ChartInput:
    raw_series = payload.get("series")
    if not isinstance(raw_series, list):
        raise TypeError("`series` must be a list")
    series = []
    for raw in raw_series:
        if not isinstance(raw, Mapping):
            raise TypeError("Each series must be a mapping")
        series.append(series_from_dict(raw))

    raw_settings = payload.get("settings")
    settings = None
    if raw_settings is not None:
        if not isinstance(raw_settings, Mapping):
            raise TypeError("`settings` must be a mapping when provided")
        settings = ChartSettings.from_mapping(raw_settings)
    return ChartInput(series=tuple(series), settings=settings)


def load_chart_input(path: str | Path) -> ChartInput:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, Mapping):
        raise TypeError("Chart input must be a JSON object")
    return chart_input_from_dict(payload)


def _coerce_optional_str(raw: object) -> str | None:
    if raw is None:
        return None
    text = str(raw).strip()
    return text if text else None
