"""Data models for metals curve data."""

import math
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class InvalidInputError(ValueError):
    """Malformed value passed where a validated one was required."""


class Metal(str, Enum):
    """Metals carried by the feed."""

    GOLD = "GOLD"
    SILVER = "SILVER"

    @classmethod
    def parse(cls, value: "str | Metal") -> "Metal":
        """Parse a metal name case-insensitively."""
        if isinstance(value, Metal):
            return value
        if not isinstance(value, str):
            raise InvalidInputError(f"Metal must be a string, got {type(value).__name__}")
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise InvalidInputError(f"Unknown metal: {value!r}") from None

    @property
    def key(self) -> str:
        """Lower-case key used in JSON payloads."""
        return self.value.lower()


def require_number(value: object, name: str) -> float:
    """
    Return value as float, failing fast on anything that is not a finite number.

    bool is rejected even though it subclasses int.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{name} must be a number, got {type(value).__name__}")
    result = float(value)
    if not math.isfinite(result):
        raise InvalidInputError(f"{name} must be finite, got {value!r}")
    return result


def optional_number(value: object, name: str) -> float | None:
    """Like require_number but passes None through."""
    if value is None:
        return None
    return require_number(value, name)


def require_tenor(value: object) -> int:
    """Validate a tenor in months."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"tenor_months must be an integer, got {type(value).__name__}")
    if value < 0:
        raise InvalidInputError(f"tenor_months must be >= 0, got {value}")
    return value


@dataclass(frozen=True)
class Observation:
    """Single (date, metal, tenor) price row with the macro fields carried alongside."""

    as_of_date: date
    metal: Metal
    tenor_months: int
    price: float
    real_10y_yield: float | None = None
    dollar_index: float | None = None
    deficit_flag: bool | None = None

    def __post_init__(self) -> None:
        # datetime subclasses date; a timestamp would group apart from its day
        if isinstance(self.as_of_date, datetime) or not isinstance(self.as_of_date, date):
            raise InvalidInputError(
                f"as_of_date must be a date, got {type(self.as_of_date).__name__}"
            )
        object.__setattr__(self, "metal", Metal.parse(self.metal))
        require_tenor(self.tenor_months)
        object.__setattr__(self, "price", require_number(self.price, "price"))
        object.__setattr__(
            self, "real_10y_yield", optional_number(self.real_10y_yield, "real_10y_yield")
        )
        object.__setattr__(
            self, "dollar_index", optional_number(self.dollar_index, "dollar_index")
        )
        if self.deficit_flag is not None and not isinstance(self.deficit_flag, bool):
            raise InvalidInputError(
                f"deficit_flag must be a bool or None, got {type(self.deficit_flag).__name__}"
            )

    @property
    def key(self) -> tuple[date, Metal, int]:
        """Identity key."""
        return (self.as_of_date, self.metal, self.tenor_months)


@dataclass(frozen=True)
class TenorPoint:
    """Today and prior price for one tenor."""

    tenor_months: int
    price_today: float | None
    price_prior: float | None

    def to_dict(self) -> dict:
        return {
            "tenorMonths": self.tenor_months,
            "priceToday": self.price_today,
            "pricePrior": self.price_prior,
        }


@dataclass(frozen=True)
class Curve:
    """Term structure for one metal, points sorted by tenor."""

    metal: Metal
    points: tuple[TenorPoint, ...] = ()

    @property
    def tenors(self) -> list[int]:
        return [p.tenor_months for p in self.points]

    def point(self, tenor_months: int) -> TenorPoint | None:
        for p in self.points:
            if p.tenor_months == tenor_months:
                return p
        return None

    def to_dict(self) -> dict:
        return {
            "metal": self.metal.value,
            "points": [p.to_dict() for p in self.points],
        }


@dataclass(frozen=True)
class MacroSnapshot:
    """Macro fields for the latest date and its prior date."""

    as_of_date: date | None
    prior_as_of_date: date | None
    real_10y: float | None = None
    real_10y_prior: float | None = None
    dollar_index: float | None = None
    dollar_index_prior: float | None = None
    deficit_flag: bool | None = None
    deficit_flag_prior: bool | None = None
    gold_front_month: float | None = None
    gold_front_month_prior: float | None = None

    def to_dict(self) -> dict:
        return {
            "asOfDate": _iso(self.as_of_date),
            "priorAsOfDate": _iso(self.prior_as_of_date),
            "real10y": self.real_10y,
            "real10yPrior": self.real_10y_prior,
            "dollarIndex": self.dollar_index,
            "dollarIndexPrior": self.dollar_index_prior,
            "deficitFlag": self.deficit_flag,
            "deficitFlagPrior": self.deficit_flag_prior,
            "goldFrontMonth": self.gold_front_month,
            "goldFrontMonthPrior": self.gold_front_month_prior,
        }


def _iso(d: date | None) -> str | None:
    return d.isoformat() if d is not None else None
