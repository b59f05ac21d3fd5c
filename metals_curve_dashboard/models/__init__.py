"""Domain models."""

from .market_data import (
    Curve,
    InvalidInputError,
    MacroSnapshot,
    Metal,
    Observation,
    TenorPoint,
)

__all__ = [
    "Curve",
    "InvalidInputError",
    "MacroSnapshot",
    "Metal",
    "Observation",
    "TenorPoint",
]
