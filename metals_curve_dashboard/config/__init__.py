"""Dashboard configuration."""

from .settings import (
    BACK_SEGMENT,
    CSV_HEADER_ALIASES,
    CSV_REQUIRED_FIELDS,
    DIVERGENCE_THRESHOLD,
    FRONT_SEGMENT,
    HISTORY_DAYS_MAX,
    HISTORY_DAYS_MIN,
    MOVE_DRIVER_RATIO,
    REGIME_CARRY_THRESHOLD,
    SHAPE_SLOPE_THRESHOLD,
    SLOPE_FLAT_THRESHOLD,
    SLOPE_MILD_THRESHOLD,
    STRESS_THRESHOLDS,
    TRACKED_METALS,
    TRACKED_TENORS,
    Settings,
)

__all__ = [
    "BACK_SEGMENT",
    "CSV_HEADER_ALIASES",
    "CSV_REQUIRED_FIELDS",
    "DIVERGENCE_THRESHOLD",
    "FRONT_SEGMENT",
    "HISTORY_DAYS_MAX",
    "HISTORY_DAYS_MIN",
    "MOVE_DRIVER_RATIO",
    "REGIME_CARRY_THRESHOLD",
    "SHAPE_SLOPE_THRESHOLD",
    "SLOPE_FLAT_THRESHOLD",
    "SLOPE_MILD_THRESHOLD",
    "STRESS_THRESHOLDS",
    "TRACKED_METALS",
    "TRACKED_TENORS",
    "Settings",
]
