from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from chartline.grouping import Dimension, Group, last_value, reduce_group
from chartline.series import Row
from chartline.settings import ChartSettings


GOAL_LABEL = "Goal"


@dataclass(frozen=True)
class GoalLine:
    value: float
    dimension: Dimension
    group: Group

    def hover_data(self) -> list[dict[str, Any]]:
        return [{"key": GOAL_LABEL, "value": self.value}]


def goal_line(settings: ChartSettings, x_domain: tuple[Any, Any] | None) -> GoalLine | None:
    if not settings.show_goal or settings.goal_value is None or x_domain is None:
        return None
    value = settings.goal_value
    rows = [Row((x_domain[0], value)), Row((x_domain[1], value))]
    dimension = Dimension.from_rows(rows, lambda row: row[0])
    # Last value rather than a sum so a one-point domain still sits at the goal.
    group = reduce_group(dimension, rows, last_value(1), initial=0)
    return GoalLine(value=value, dimension=dimension, group=group)
