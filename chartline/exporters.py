from __future__ import annotations

from decimal import Decimal
from typing import Any

import numpy as np
import pandas as pd

from chartline.chart import ChartPayload
from chartline.timeseries import TimeseriesInterval


def json_value(value: Any) -> Any:
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    if isinstance(value, tuple):
        return [json_value(v) for v in value]
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, float) and not np.isfinite(value):
        return None
    return value


def payload_summary(payload: ChartPayload) -> dict[str, Any]:
    """JSON-ready description of a rendered chart payload."""
    interval = payload.x_axis.x_interval
    if isinstance(interval, TimeseriesInterval):
        interval_out: Any = {"unit": interval.unit, "count": interval.count}
    else:
        interval_out = interval

    domain = payload.x_axis.x_domain
    y_axis = payload.y_axis
    return {
        "chart_type": payload.chart_type,
        "mode": payload.aggregate.mode,
        "x_axis": {
            "scale": payload.settings.x_axis_scale,
            "domain": None if domain is None else [json_value(domain[0]), json_value(domain[1])],
            "interval": interval_out,
            "values": [json_value(v) for v in payload.x_axis.x_values],
        },
        "layers": [
            {
                "index": layer.index,
                "right_axis": layer.use_right_y_axis,
                "colors": list(layer.colors),
                "groups": [
                    [[json_value(entry.key), json_value(entry.value)] for entry in group.all()]
                    for group in layer.groups
                ],
            }
            for layer in payload.layers
        ],
        "y_axis": {
            "split": [list(indices) for indices in y_axis.split],
            "is_split": y_axis.is_split,
            "left": None if y_axis.left.extent is None else list(y_axis.left.extent),
            "right": None if y_axis.right is None or y_axis.right.extent is None else list(y_axis.right.extent),
        },
        "goal": None if payload.goal is None else payload.goal.value,
        "brush_enabled": payload.brush_enabled,
        "warnings": dict(payload.warnings),
    }
