from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import logging

import numpy as np

from chartline.grouping import Group
from chartline.series import Series
from chartline.settings import ChartSettings, is_stacked


LOGGER = logging.getLogger(__name__)

Extent = tuple[float, float]

# Neighbouring magnitudes must differ by at least this factor to get their own axis.
SPLIT_AXIS_MIN_RATIO = 10.0


@dataclass(frozen=True)
class AxisSide:
    series_indices: tuple[int, ...]
    extent: Extent | None


@dataclass(frozen=True)
class YAxisProps:
    extents: tuple[Extent | None, ...]
    split: tuple[tuple[int, ...], ...]
    y_extent: Extent | None
    left: AxisSide
    right: AxisSide | None

    @property
    def is_split(self) -> bool:
        return self.right is not None and len(self.right.series_indices) > 0 and len(self.left.series_indices) > 0


def group_extents(groups: Sequence[Sequence[Group]]) -> tuple[Extent | None, ...]:
    return tuple(layers[0].extent() if layers else None for layers in groups)


def union_extent(extents: Sequence[Extent | None]) -> Extent | None:
    present = [e for e in extents if e is not None]
    if not present:
        return None
    return (min(e[0] for e in present), max(e[1] for e in present))


def compute_split(extents: Sequence[Extent | None]) -> tuple[tuple[int, ...], ...]:
    """Partition series into two axes at the largest magnitude jump between sorted extents.

    Series without values, or with only zeros, stay on the axis of series 0.
    Returns one group when no jump reaches SPLIT_AXIS_MIN_RATIO.
    """

    everyone = tuple(range(len(extents)))
    candidates = [i for i, e in enumerate(extents) if e is not None and max(abs(e[0]), abs(e[1])) > 0]
    if len(candidates) < 2:
        return (everyone,)

    magnitudes = np.asarray([max(abs(extents[i][0]), abs(extents[i][1])) for i in candidates], dtype=np.float64)
    order = np.argsort(magnitudes, kind="stable")
    ratios = magnitudes[order][1:] / magnitudes[order][:-1]
    cut = int(np.argmax(ratios))
    if not ratios[cut] >= SPLIT_AXIS_MIN_RATIO:
        return (everyone,)

    small = {candidates[int(i)] for i in order[: cut + 1]}
    large = {candidates[int(i)] for i in order[cut + 1 :]}
    # Series that took no part in the clustering sit with the smaller values.
    small.update(i for i in everyone if i not in small and i not in large)
    sides = sorted((tuple(sorted(small)), tuple(sorted(large))), key=lambda side: side[0])
    return (sides[0], sides[1])


def y_axis_split(
    settings: ChartSettings,
    series: Sequence[Series],
    extents: Sequence[Extent | None],
    *,
    chart_type: str,
    is_scalar_series: bool,
) -> tuple[tuple[int, ...], ...]:
    # Breakout multiseries share one metric column and never split.
    has_different_y_columns = len({s.data.cols[1] for s in series}) > 1
    if (
        not is_scalar_series
        and chart_type != "scatter"
        and not is_stacked(settings, len(series))
        and has_different_y_columns
        and settings.auto_split
    ):
        return compute_split(extents)
    return (tuple(range(len(series))),)


def y_axis_props(
    settings: ChartSettings,
    series: Sequence[Series],
    groups: Sequence[Sequence[Group]],
    *,
    chart_type: str,
    is_scalar_series: bool = False,
) -> YAxisProps:
    extents = group_extents(groups)
    split = y_axis_split(settings, series, extents, chart_type=chart_type, is_scalar_series=is_scalar_series)
    sides = [
        # Stacked charts have one extent for all of their series.
        AxisSide(series_indices=indices, extent=union_extent([extents[i] for i in indices if i < len(extents)]))
        for indices in split
    ]
    props = YAxisProps(
        extents=extents,
        split=split,
        y_extent=union_extent(extents),
        left=sides[0],
        right=sides[1] if len(sides) > 1 else None,
    )
    LOGGER.debug("y-axis split %s (is_split=%s)", props.split, props.is_split)
    return props
