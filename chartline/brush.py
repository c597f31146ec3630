from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import logging
from typing import Any, Literal

from chartline.errors import ChartDataError
from chartline.numeric import coerce_number
from chartline.series import (
    Column,
    QueryRef,
    Series,
    dimension_is_timeseries,
    first_nonempty_series,
    has_remapping_to_strings,
    is_multi_card_series,
)
from chartline.timeseries import parse_timestamp


LOGGER = logging.getLogger(__name__)

BrushState = Literal["idle", "selecting"]
FilterKind = Literal["datetime", "numeric"]


@dataclass(frozen=True)
class FilterUpdateRequest:
    kind: FilterKind
    column: Column
    query: QueryRef
    start: Any
    end: Any


def brush_enabled(series: Sequence[Series], *, has_filter_callback: bool) -> bool:
    if not has_filter_callback or not series:
        return False
    if is_multi_card_series(series):
        return False
    if not series[0].card.is_structured:
        return False
    return not has_remapping_to_strings(first_nonempty_series(series).data)


class BrushController:
    """Tracks a drag selection over the x-axis.

    `begin_change()` fires repeatedly while the pointer drags. `end(range)`
    finishes the gesture and returns the filter the selection implies, or
    None when the selection was cleared.
    """

    def __init__(self, series: Sequence[Series]) -> None:
        if not series:
            raise ValueError("BrushController requires at least one series")
        self._column = series[0].data.cols[0]
        self._query = series[0].card
        self._kind: FilterKind = "datetime" if dimension_is_timeseries(first_nonempty_series(series).data) else "numeric"
        self._state: BrushState = "idle"

    @property
    def state(self) -> BrushState:
        return self._state

    @property
    def filter_kind(self) -> FilterKind:
        return self._kind

    def is_selecting(self) -> bool:
        return self._state == "selecting"

    def begin_change(self) -> None:
        self._state = "selecting"

    def end(self, selection: Sequence[Any] | None) -> FilterUpdateRequest | None:
        self._state = "idle"
        if selection is None:
            return None
        if len(selection) != 2:
            raise ValueError("brush selection must be a (start, end) pair")
        start, end = (self._coerce_bound(v) for v in selection)
        if start is None or end is None:
            raise ChartDataError(f"brush selection has an empty bound: {selection!r}")
        if end < start:
            start, end = end, start
        LOGGER.debug("brush selected %s..%s on %s", start, end, self._column.name)
        return FilterUpdateRequest(kind=self._kind, column=self._column, query=self._query, start=start, end=end)

    def _coerce_bound(self, value: Any) -> Any:
        if self._kind == "datetime":
            return parse_timestamp(value)
        return coerce_number(value)
