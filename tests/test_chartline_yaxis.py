from __future__ import annotations

import unittest

from chartline import ChartSettings, Column, Group, Series, SeriesData
from chartline.yaxis import compute_split, y_axis_props


X = Column("x")


def _series(metric: str) -> Series:
    return Series(SeriesData(cols=(X, Column(metric, "type/Integer"))))


def _group(*values: float | None) -> Group:
    return Group(keys=tuple(range(len(values))), values=values)


class ComputeSplitTests(unittest.TestCase):
    def test_large_ratio_splits(self) -> None:
        self.assertEqual(compute_split([(0, 10), (0, 10000)]), ((0,), (1,)))

    def test_sides_are_ordered_by_lowest_series_index(self) -> None:
        self.assertEqual(compute_split([(0, 10000), (0, 10)]), ((0,), (1,)))

    def test_small_ratio_keeps_one_axis(self) -> None:
        self.assertEqual(compute_split([(0, 10), (0, 50)]), ((0, 1),))

    def test_cut_at_largest_jump(self) -> None:
        self.assertEqual(compute_split([(0, 5), (0, 5000), (0, 10)]), ((0, 2), (1,)))

    def test_negative_magnitudes_count(self) -> None:
        self.assertEqual(compute_split([(-2000, 0), (0, 3)]), ((0,), (1,)))

    def test_empty_and_zero_series_join_the_small_side(self) -> None:
        self.assertEqual(compute_split([(0, 10), None, (0, 0), (0, 10000)]), ((0, 1, 2), (3,)))

    def test_fewer_than_two_candidates(self) -> None:
        self.assertEqual(compute_split([(0, 10), None]), ((0, 1),))


class YAxisPropsTests(unittest.TestCase):
    def test_different_metrics_split(self) -> None:
        props = y_axis_props(
            ChartSettings(),
            [_series("count"), _series("revenue")],
            [(_group(0, 10),), (_group(0, 10000),)],
            chart_type="line",
        )

        self.assertTrue(props.is_split)
        self.assertEqual(props.split, ((0,), (1,)))
        self.assertEqual(props.left.extent, (0.0, 10.0))
        self.assertEqual(props.right.extent, (0.0, 10000.0))
        self.assertEqual(props.y_extent, (0.0, 10000.0))

    def test_conditions_that_keep_one_axis(self) -> None:
        two_metrics = [_series("count"), _series("revenue")]
        groups = [(_group(0, 10),), (_group(0, 10000),)]
        cases = [
            ("auto split off", ChartSettings(auto_split=False), two_metrics, "line", False),
            ("scatter", ChartSettings(), two_metrics, "scatter", False),
            ("scalar", ChartSettings(), two_metrics, "bar", True),
            ("same metric", ChartSettings(), [_series("count"), _series("count")], "line", False),
        ]
        for name, settings, series, chart_type, scalar in cases:
            with self.subTest(name):
                props = y_axis_props(settings, series, groups, chart_type=chart_type, is_scalar_series=scalar)
                self.assertEqual(props.split, ((0, 1),))
                self.assertFalse(props.is_split)
                self.assertIsNone(props.right)

    def test_stacked_charts_share_one_axis(self) -> None:
        props = y_axis_props(
            ChartSettings(stack_type="stacked"),
            [_series("count"), _series("revenue")],
            [(_group(0, 10), _group(0, 10000))],
            chart_type="area",
        )

        self.assertEqual(props.split, ((0, 1),))
        self.assertEqual(props.left.extent, (0.0, 10.0))


if __name__ == "__main__":
    unittest.main()
