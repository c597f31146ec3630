from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
import re
from typing import Any


DATE_TYPES: tuple[str, ...] = ("type/DateTime", "type/Date", "type/Time")
NUMERIC_TYPES: tuple[str, ...] = ("type/Number", "type/Integer", "type/BigInteger", "type/Float", "type/Decimal")

# Units that extract a component (hour of day, month of year, ...) are categories, not points in time.
EXTRACTION_UNITS: tuple[str, ...] = (
    "minute-of-hour",
    "hour-of-day",
    "day-of-week",
    "day-of-month",
    "day-of-year",
    "week-of-year",
    "month-of-year",
    "quarter-of-year",
)

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}([T ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?)?(Z|[+-]\d{2}:?\d{2})?$")


@dataclass(frozen=True)
class Column:
    name: str
    base_type: str = "type/Text"
    display_name: str | None = None
    unit: str | None = None
    bin_width: float | None = None
    special_type: str | None = None
    remapping: Mapping[Any, Any] | None = field(default=None, compare=False, hash=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Column.name must be non-empty")
        if self.bin_width is not None and not self.bin_width > 0:
            raise ValueError("Column.bin_width must be > 0")

    @property
    def friendly_name(self) -> str:
        return self.display_name or self.name


@dataclass(frozen=True)
class QueryRef:
    card_id: int | str | None = None
    is_structured: bool = True
    name: str | None = None


@dataclass(frozen=True)
class SeriesData:
    cols: tuple[Column, ...]
    rows: tuple[Sequence[Any], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "cols", tuple(self.cols))
        object.__setattr__(self, "rows", tuple(self.rows))


@dataclass(frozen=True)
class Series:
    data: SeriesData
    card: QueryRef = field(default_factory=QueryRef)


@dataclass(frozen=True)
class RowOrigin:
    series_index: int
    row_index: int


class Row(tuple):
    """Chart row `(x, m1, m2, ...)` remembering the raw record it came from."""

    origin: RowOrigin | None

    def __new__(cls, values: Iterable[Any], origin: RowOrigin | None = None) -> "Row":
        row = super().__new__(cls, values)
        row.origin = origin
        return row

    def replace_x(self, x: Any) -> "Row":
        return Row((x, *self[1:]), origin=self.origin)

    def raw_record(self, series: Sequence[Series]) -> Sequence[Any] | None:
        if self.origin is None:
            return None
        return series[self.origin.series_index].data.rows[self.origin.row_index]


def dataset_contains_no_results(data: SeriesData) -> bool:
    return len(data.rows) == 0


def first_nonempty_series(series: Sequence[Series]) -> Series:
    for s in series:
        if not dataset_contains_no_results(s.data):
            return s
    return series[0]


def is_date_column(col: Column) -> bool:
    if col.unit in EXTRACTION_UNITS:
        return False
    return col.base_type in DATE_TYPES


def is_numeric_column(col: Column) -> bool:
    return col.base_type in NUMERIC_TYPES


def looks_like_date(value: Any) -> bool:
    return isinstance(value, str) and _ISO_DATE_RE.match(value) is not None


def dimension_is_timeseries(data: SeriesData, index: int = 0) -> bool:
    col = data.cols[index]
    if is_date_column(col):
        return True
    if col.special_type is not None or col.unit in EXTRACTION_UNITS:
        return False
    return bool(data.rows) and looks_like_date(data.rows[0][index])


def dimension_is_numeric(data: SeriesData, index: int = 0) -> bool:
    if is_numeric_column(data.cols[index]):
        return True
    if not data.rows:
        return False
    value = data.rows[0][index]
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def has_remapping_to_strings(data: SeriesData, index: int = 0) -> bool:
    remapping = data.cols[index].remapping
    if not remapping:
        return False
    return all(isinstance(label, str) for label in remapping.values())


def is_multi_card_series(series: Sequence[Series]) -> bool:
    return len(series) > 1 and series[0].card.card_id != series[1].card.card_id
