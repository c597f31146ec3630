from __future__ import annotations

import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path

import pandas as pd

from chartline import (
    NULL_DIMENSION_WARNING,
    ChartDataError,
    ChartPayload,
    ChartSettings,
    Column,
    LineAreaBarChart,
    QueryRef,
    Series,
    SeriesData,
    area_chart,
    line_chart,
)
from chartline.cli import main
from chartline.exporters import json_value, payload_summary
from chartline.goal import GOAL_LABEL
from chartline.loaders import chart_input_from_dict, load_chart_input


DATE = Column("day", "type/DateTime")
CATEGORY = Column("category")
NUMBER = Column("x", "type/Integer")
COUNT = Column("count", "type/Integer")
REVENUE = Column("revenue", "type/Float")

DAILY_ROWS = (("2024-01-01", 1), ("2024-01-02", 2), ("2024-01-04", 4), ("2024-01-05", 5))


class _RecordingEngine:
    def __init__(self) -> None:
        self.payloads: list[ChartPayload] = []

    def draw(self, payload: ChartPayload) -> None:
        self.payloads.append(payload)


class LineAreaBarChartTests(unittest.TestCase):
    def test_render_runs_the_pipeline(self) -> None:
        series = [Series(SeriesData(cols=(DATE, COUNT), rows=DAILY_ROWS))]
        settings = ChartSettings(x_axis_scale="timeseries", missing="zero")
        engine = _RecordingEngine()
        results = []

        chart = LineAreaBarChart(series, settings, chart_type="line", engine=engine, on_render=results.append)
        payload = chart.render()

        self.assertEqual(engine.payloads, [payload])
        self.assertIs(chart.last_payload, payload)
        self.assertEqual(len(payload.x_axis.x_values), 5)
        self.assertEqual(payload.groups[0][0].values, (1, 2, 0, 4, 5))
        self.assertEqual(payload.dimension.keys[2], pd.Timestamp("2024-01-03", tz="UTC"))
        self.assertEqual(len(results), 1)
        self.assertEqual(results[0].y_axis_split, ((0,),))
        self.assertEqual(results[0].warnings, {})

    def test_default_settings_infer_scale(self) -> None:
        series = [Series(SeriesData(cols=(NUMBER, COUNT), rows=((1, 1), (2, 2))))]
        payload = LineAreaBarChart(series, chart_type="bar").render()
        self.assertEqual(payload.settings.x_axis_scale, "linear")

    def test_histogram_always_fills_with_zero(self) -> None:
        col = Column("x", "type/Float", bin_width=5.0)
        series = [Series(SeriesData(cols=(col, COUNT), rows=((0, 1), (10, 2))))]

        payload = LineAreaBarChart(series, ChartSettings(x_axis_scale="histogram"), chart_type="bar").render()

        self.assertEqual(payload.settings.missing, "zero")
        self.assertEqual(payload.groups[0][0].values, (1, 0, 2, 0))

    def test_too_many_series_is_fatal(self) -> None:
        series = [Series(SeriesData(cols=(CATEGORY, COUNT), rows=(("a", 1),))) for _ in range(3)]
        with self.assertRaisesRegex(ChartDataError, "more than 2 series"):
            LineAreaBarChart(series, chart_type="line", max_series=2).render()

    def test_unknown_chart_type(self) -> None:
        with self.assertRaises(ValueError):
            LineAreaBarChart([], chart_type="pie")  # type: ignore[arg-type]

    def test_null_dimension_warning_is_dropped_on_ordinal_axes(self) -> None:
        series = [Series(SeriesData(cols=(CATEGORY, COUNT), rows=(("a", 1), (None, 2))))]
        payload = LineAreaBarChart(series, chart_type="bar").render()
        self.assertEqual(payload.warnings, {})

    def test_null_dimension_warning_is_kept_on_timeseries_axes(self) -> None:
        series = [Series(SeriesData(cols=(DATE, COUNT), rows=(("2024-01-01", 1), (None, 2))))]
        payload = LineAreaBarChart(series, ChartSettings(x_axis_scale="timeseries"), chart_type="line").render()
        self.assertEqual(payload.warnings, {NULL_DIMENSION_WARNING: 1})

    def test_timeseries_scale_on_integer_years_keeps_raw_keys(self) -> None:
        col = Column("year", "type/Integer", unit="year")
        series = [Series(SeriesData(cols=(col, COUNT), rows=((2019, 10), (2020, 20), (2022, 30))))]

        payload = LineAreaBarChart(series, ChartSettings(x_axis_scale="timeseries"), chart_type="line").render()

        self.assertEqual(payload.dimension.keys, (2019, 2020, 2022))
        self.assertEqual(payload.groups[0][0].values, (10, 20, 30))

    def test_timeseries_scale_on_text_dimension_keeps_raw_keys(self) -> None:
        series = [Series(SeriesData(cols=(CATEGORY, COUNT), rows=(("a", 1), ("b", 2))))]

        payload = LineAreaBarChart(series, ChartSettings(x_axis_scale="timeseries"), chart_type="bar").render()

        self.assertEqual(payload.dimension.keys, ("a", "b"))
        self.assertEqual(payload.warnings, {})

    def test_ordinal_groups_follow_first_seen_order(self) -> None:
        series = [Series(SeriesData(cols=(CATEGORY, COUNT), rows=(("b", 2), ("a", 1), ("c", 3))))]
        payload = LineAreaBarChart(series, chart_type="bar").render()
        self.assertEqual(payload.groups[0][0].keys, ("b", "a", "c"))

    def test_split_axes_and_layer_colors(self) -> None:
        first = Series(SeriesData(cols=(CATEGORY, COUNT), rows=(("a", 1), ("b", 10))))
        second = Series(SeriesData(cols=(CATEGORY, REVENUE), rows=(("a", 5000.0), ("b", 9000.0))))

        payload = line_chart([first, second]).last_payload

        self.assertTrue(payload.y_axis.is_split)
        self.assertEqual([layer.use_right_y_axis for layer in payload.layers], [False, True])
        colors = payload.settings.colors
        self.assertEqual([layer.colors for layer in payload.layers], [(colors[0],), (colors[1],)])

    def test_stacked_area_has_one_layer(self) -> None:
        first = Series(SeriesData(cols=(CATEGORY, COUNT), rows=(("a", 1), ("b", 2))))
        second = Series(SeriesData(cols=(CATEGORY, COUNT), rows=(("a", 3), ("b", 4))))

        payload = area_chart([first, second], ChartSettings(stack_type="stacked")).last_payload

        self.assertEqual(payload.aggregate.mode, "stacked")
        self.assertEqual(len(payload.layers), 1)
        self.assertEqual(len(payload.layers[0].colors), 2)
        self.assertFalse(payload.y_axis.is_split)

    def test_goal_line_spans_the_domain(self) -> None:
        series = [Series(SeriesData(cols=(NUMBER, COUNT), rows=((1, 1), (2, 2), (3, 3))))]
        settings = ChartSettings(x_axis_scale="linear", show_goal=True, goal_value=5.0)

        payload = LineAreaBarChart(series, settings, chart_type="line").render()

        self.assertEqual(payload.goal.dimension.keys, (1, 3))
        self.assertEqual(payload.goal.group.values, (5.0, 5.0))
        self.assertEqual(payload.goal.hover_data(), [{"key": GOAL_LABEL, "value": 5.0}])

    def test_scalar_series_use_first_row_of_each_series(self) -> None:
        series = [
            Series(SeriesData(cols=(CATEGORY, COUNT), rows=(("Sales", 10),))),
            Series(SeriesData(cols=(CATEGORY, REVENUE), rows=(("Revenue", 9000.0),))),
        ]

        payload = LineAreaBarChart(series, chart_type="bar", is_scalar_series=True).render()

        self.assertEqual(payload.x_axis.x_values, ("Sales", "Revenue"))
        self.assertFalse(payload.y_axis.is_split)


class BrushIntegrationTests(unittest.TestCase):
    def test_brush_end_forwards_filter_request(self) -> None:
        series = [Series(SeriesData(cols=(NUMBER, COUNT), rows=((1, 1), (5, 2))), card=QueryRef(card_id=7))]
        requests = []
        chart = LineAreaBarChart(series, chart_type="line", on_filter=requests.append)

        payload = chart.render()
        chart.brush_change()
        self.assertFalse(chart.accepts_hover())
        request = chart.brush_end([4, 1])

        self.assertTrue(payload.brush_enabled)
        self.assertTrue(chart.accepts_hover())
        self.assertEqual(requests, [request])
        self.assertEqual((request.start, request.end), (1, 4))
        self.assertEqual(request.query.card_id, 7)

    def test_no_brush_without_filter_callback(self) -> None:
        series = [Series(SeriesData(cols=(NUMBER, COUNT), rows=((1, 1),)))]
        chart = LineAreaBarChart(series, chart_type="line")

        self.assertFalse(chart.render().brush_enabled)
        self.assertIsNone(chart.brush_end([1, 2]))
        self.assertTrue(chart.accepts_hover())


def _input_payload() -> dict:
    return {
        "series": [
            {
                "card": {"id": 1, "name": "Orders"},
                "data": {
                    "cols": [
                        {"name": "day", "base_type": "type/DateTime", "display_name": "Day"},
                        {"name": "count", "base_type": "type/Integer"},
                    ],
                    "rows": [list(row) for row in DAILY_ROWS],
                },
            }
        ],
        "settings": {"graph.x_axis.scale": "timeseries", "line.missing": "zero"},
    }


class LoaderAndExporterTests(unittest.TestCase):
    def test_chart_input_from_dict(self) -> None:
        chart_input = chart_input_from_dict(_input_payload())

        series = chart_input.series[0]
        self.assertEqual(series.card, QueryRef(card_id=1, is_structured=True, name="Orders"))
        self.assertEqual(series.data.cols[0].friendly_name, "Day")
        self.assertEqual(series.data.rows[2], ("2024-01-04", 4))
        self.assertTrue(chart_input.settings.is_timeseries)

    def test_binning_info_sets_bin_width(self) -> None:
        payload = _input_payload()
        payload["series"][0]["data"]["cols"][0] = {"name": "x", "base_type": "type/Float", "binning_info": {"bin_width": 2}}
        chart_input = chart_input_from_dict(payload)
        self.assertEqual(chart_input.series[0].data.cols[0].bin_width, 2.0)

    def test_bad_input_shapes_raise(self) -> None:
        with self.assertRaises(TypeError):
            chart_input_from_dict({"series": {}})
        with self.assertRaises(TypeError):
            chart_input_from_dict({"series": [{"data": []}]})

    def test_load_chart_input_reads_json_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "chart.json"
            path.write_text(json.dumps(_input_payload()), encoding="utf-8")
            chart_input = load_chart_input(path)
        self.assertEqual(len(chart_input.series), 1)

    def test_payload_summary_is_json_ready(self) -> None:
        chart_input = chart_input_from_dict(_input_payload())
        payload = LineAreaBarChart(chart_input.series, chart_input.settings, chart_type="bar").render()

        summary = json.loads(json.dumps(payload_summary(payload)))

        self.assertEqual(summary["mode"], "independent")
        self.assertEqual(summary["x_axis"]["interval"], {"unit": "day", "count": 1})
        self.assertEqual(summary["x_axis"]["domain"][0], "2024-01-01T00:00:00+00:00")
        self.assertEqual(len(summary["x_axis"]["values"]), 5)
        self.assertEqual([entry[1] for entry in summary["layers"][0]["groups"][0]], [1, 2, 0, 4, 5])
        self.assertEqual(summary["y_axis"]["split"], [[0]])
        self.assertIsNone(summary["goal"])

    def test_json_value(self) -> None:
        self.assertIsNone(json_value(float("nan")))
        self.assertEqual(json_value((1, "a")), [1, "a"])


class CliTests(unittest.TestCase):
    def _run(self, payload: dict, *args: str) -> tuple[int, str, str]:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "chart.json"
            path.write_text(json.dumps(payload), encoding="utf-8")
            stdout, stderr = io.StringIO(), io.StringIO()
            with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
                code = main(["summarize", str(path), *args])
        return code, stdout.getvalue(), stderr.getvalue()

    def test_summarize_prints_json(self) -> None:
        code, out, _ = self._run(_input_payload(), "--chart-type", "bar")
        self.assertEqual(code, 0)
        summary = json.loads(out)
        self.assertEqual(summary["chart_type"], "bar")
        self.assertEqual(len(summary["x_axis"]["values"]), 5)

    def test_overrides_apply_on_top_of_input_settings(self) -> None:
        code, out, _ = self._run(_input_payload(), "--missing", "interpolate")
        self.assertEqual(code, 0)
        self.assertEqual(len(json.loads(out)["x_axis"]["values"]), 4)

    def test_validation_errors_exit_with_two(self) -> None:
        payload = _input_payload()
        payload["series"][0]["data"]["cols"] = payload["series"][0]["data"]["cols"][:1]
        payload["series"][0]["data"]["rows"] = [["2024-01-01"]]

        code, out, err = self._run(payload)

        self.assertEqual(code, 2)
        self.assertEqual(out, "")
        self.assertIn("at least 2 columns", err)


if __name__ == "__main__":
    unittest.main()
