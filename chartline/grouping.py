"""Immutable x-keyed grouping structures.

A `Dimension` is the sorted set of distinct keys produced by a key function
over some rows. A `Group` reduces rows onto those keys with an explicit
accumulator array indexed by key position. Both are rebuilt for every render.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, NamedTuple

import numpy as np
import pandas as pd


KeyFn = Callable[[Sequence[Any]], Hashable]
Reducer = Callable[[Any, Sequence[Any]], Any]


def sort_key(value: Any) -> tuple:
    """Total order over dimension keys: numbers, timestamps, strings, tuples, then None."""
    if value is None:
        return (1, 0, 0)
    if isinstance(value, bool):
        return (0, 0, int(value))
    if isinstance(value, (int, float)):
        return (0, 0, float(value))
    if isinstance(value, pd.Timestamp):
        return (0, 1, value.value)
    if isinstance(value, str):
        return (0, 2, value)
    if isinstance(value, tuple):
        return (0, 3, tuple(sort_key(v) for v in value))
    return (0, 4, str(value))


@dataclass(frozen=True)
class Dimension:
    keys: tuple[Hashable, ...]
    key_fn: KeyFn

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[Any]], key_fn: KeyFn) -> "Dimension":
        distinct = {key_fn(row) for row in rows}
        return cls(keys=tuple(sorted(distinct, key=sort_key)), key_fn=key_fn)

    def positions(self) -> dict[Hashable, int]:
        return {key: i for i, key in enumerate(self.keys)}

    def __len__(self) -> int:
        return len(self.keys)


class GroupEntry(NamedTuple):
    key: Hashable
    value: Any


@dataclass(frozen=True)
class Group:
    keys: tuple[Hashable, ...]
    values: tuple[Any, ...]

    def __post_init__(self) -> None:
        if len(self.keys) != len(self.values):
            raise ValueError("Group keys and values must have the same length")

    def all(self) -> list[GroupEntry]:
        return [GroupEntry(k, v) for k, v in zip(self.keys, self.values)]

    def value_for(self, key: Hashable) -> Any:
        for k, v in zip(self.keys, self.values):
            if k == key:
                return v
        raise KeyError(key)

    def reordered(
        self,
        index_map: Mapping[Hashable, int],
        key_of: Callable[[Hashable], Hashable] | None = None,
    ) -> "Group":
        """Reorder entries by `index_map`; keys it does not know keep their order at the end."""
        fallback = len(index_map)
        lookup = key_of or (lambda key: key)
        order = sorted(range(len(self.keys)), key=lambda i: index_map.get(lookup(self.keys[i]), fallback))
        return Group(keys=tuple(self.keys[i] for i in order), values=tuple(self.values[i] for i in order))

    def extent(self) -> tuple[float, float] | None:
        numbers = [float(v) for v in self.values if isinstance(v, (int, float)) and not isinstance(v, bool)]
        arr = np.asarray(numbers, dtype=np.float64)
        arr = arr[np.isfinite(arr)]
        if arr.size == 0:
            return None
        return (float(np.min(arr)), float(np.max(arr)))


def reduce_group(dimension: Dimension, rows: Iterable[Sequence[Any]], reducer: Reducer, initial: Any = None) -> Group:
    positions = dimension.positions()
    acc: list[Any] = [initial] * len(dimension.keys)
    for row in rows:
        i = positions[dimension.key_fn(row)]
        acc[i] = reducer(acc[i], row)
    return Group(keys=dimension.keys, values=tuple(acc))


def sum_column(column: int, on_duplicate: Callable[[], None] | None = None) -> Reducer:
    """Sum `row[column]` per key; a second row at a key that already has a value calls `on_duplicate`."""

    def reducer(acc: Any, row: Sequence[Any]) -> Any:
        value = row[column] if column < len(row) else None
        if acc is None and value is None:
            return None
        if acc is not None:
            if on_duplicate is not None:
                on_duplicate()
            return acc + (value or 0)
        return value or 0

    return reducer


def sum_size_or_count(column: int = 2) -> Reducer:
    def reducer(acc: Any, row: Sequence[Any]) -> Any:
        size = row[column] if column < len(row) else None
        return (acc or 0) + (size or 1)

    return reducer


def last_value(column: int = 1) -> Reducer:
    def reducer(acc: Any, row: Sequence[Any]) -> Any:
        return row[column]

    return reducer
