from __future__ import annotations


class ChartDataError(ValueError):
    """Raised when series data cannot be charted. Aborts the render."""


class ChartSettingsError(ValueError):
    """Raised for unrecognized chart configuration values."""
