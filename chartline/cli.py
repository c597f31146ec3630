from __future__ import annotations

import argparse
import dataclasses
import json
import logging
from pathlib import Path
import sys
from typing import Any, Sequence

from chartline.axis import default_x_axis_scale
from chartline.chart import LineAreaBarChart
from chartline.errors import ChartDataError, ChartSettingsError
from chartline.exporters import payload_summary
from chartline.loaders import load_chart_input
from chartline.settings import (
    CHART_TYPES,
    DEFAULT_MAX_SERIES,
    MISSING_POLICIES,
    STACK_TYPES,
    X_AXIS_SCALES,
    ChartSettings,
)


LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chartline")
    parser.add_argument("--verbose", action="store_true", help="Log pipeline stages at DEBUG level.")
    sub = parser.add_subparsers(dest="command", required=True)

    summarize = sub.add_parser("summarize", help="Run the chart data pipeline on a JSON input and print a summary.")
    summarize.add_argument("input", type=Path)
    summarize.add_argument("--chart-type", choices=CHART_TYPES, default="line")
    summarize.add_argument("--scale", choices=X_AXIS_SCALES, default=None, help="Override graph.x_axis.scale.")
    summarize.add_argument("--stack", choices=STACK_TYPES, default=None, help="Override stackable.stack_type.")
    summarize.add_argument("--missing", choices=MISSING_POLICIES, default=None, help="Override line.missing.")
    summarize.add_argument("--no-auto-split", action="store_true", help="Keep every series on the left y-axis.")
    summarize.add_argument("--scalar", action="store_true", help="Treat the input as a scalar series chart.")
    summarize.add_argument("--max-series", type=int, default=DEFAULT_MAX_SERIES)
    summarize.add_argument("--indent", type=int, default=2)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.command == "summarize":
        return _summarize(args)
    return 2


def _summarize(args: argparse.Namespace) -> int:
    try:
        chart_input = load_chart_input(args.input)
        if not chart_input.series:
            raise ChartDataError("This chart type requires at least one series of data.")
        settings = chart_input.settings or ChartSettings(x_axis_scale=default_x_axis_scale(chart_input.series))
        overrides: dict[str, Any] = {}
        if args.scale is not None:
            overrides["x_axis_scale"] = args.scale
        if args.stack is not None:
            overrides["stack_type"] = args.stack
        if args.missing is not None:
            overrides["missing"] = args.missing
        if args.no_auto_split:
            overrides["auto_split"] = False
        if overrides:
            settings = dataclasses.replace(settings, **overrides)

        chart = LineAreaBarChart(
            chart_input.series,
            settings,
            chart_type=args.chart_type,
            is_scalar_series=args.scalar,
            max_series=args.max_series,
        )
        payload = chart.render()
    except (ChartDataError, ChartSettingsError) as exc:
        LOGGER.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except (OSError, TypeError, KeyError, json.JSONDecodeError) as exc:
        print(f"error: cannot read {args.input}: {exc}", file=sys.stderr)
        return 2

    print(json.dumps(payload_summary(payload), indent=args.indent))
    return 0
