from __future__ import annotations

from collections import Counter

from chartline.series import Column


NULL_DIMENSION_WARNING = "Data includes missing dimension values."


def unaggregated_data_warning(col: Column) -> str:
    return (
        f'"{col.friendly_name}" is an unaggregated field: if it has more than one value '
        "at a point on the x-axis, the values will be summed."
    )


class WarningCollector:
    """Counts non-fatal warnings raised during one render."""

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()

    def warn(self, kind: str) -> None:
        self._counts[kind] += 1

    def discard(self, kind: str) -> None:
        self._counts.pop(kind, None)

    def count(self, kind: str) -> int:
        return self._counts.get(kind, 0)

    def kinds(self) -> tuple[str, ...]:
        return tuple(self._counts)

    def as_dict(self) -> dict[str, int]:
        return dict(self._counts)

    def __contains__(self, kind: object) -> bool:
        return kind in self._counts

    def __len__(self) -> int:
        return len(self._counts)
