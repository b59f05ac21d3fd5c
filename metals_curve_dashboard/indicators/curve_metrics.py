"""Shape, carry and regime signals over a single curve.

Prices are looked up by exact tenor; nothing is interpolated. Every threshold
comparison is strict, so a value sitting exactly on a threshold takes the
non-extreme branch.
"""

from dataclasses import dataclass

from metals_curve_dashboard.config import (
    MOVE_DRIVER_RATIO,
    REGIME_CARRY_THRESHOLD,
    SHAPE_SLOPE_THRESHOLD,
    SLOPE_FLAT_THRESHOLD,
    SLOPE_MILD_THRESHOLD,
    STRESS_THRESHOLDS,
)
from metals_curve_dashboard.models.market_data import (
    Curve,
    InvalidInputError,
    Metal,
    optional_number,
)

TODAY = "today"
PRIOR = "prior"

NO_DATA = "No data"

SHAPE_STEEPENING = "Steepening (normal)"
SHAPE_INVERTED = "Inverted / stressed"
SHAPE_FLAT = "Flat / mild"

REGIME_CONTANGO = "Contango"
REGIME_BACKWARDATION = "Backwardation"
REGIME_FLAT = "Flat"


@dataclass(frozen=True)
class RegimeTag:
    """Contango/backwardation label with a human-readable detail line."""

    label: str
    detail: str

    def to_dict(self) -> dict:
        return {"label": self.label, "detail": self.detail}


@dataclass(frozen=True)
class SpotRelativePoint:
    """Price at a tenor as a fraction of today's spot (tenor 0) price."""

    tenor_months: int
    pct_today: float | None
    pct_prior: float | None


def _check_which(which: str) -> str:
    if which not in (TODAY, PRIOR):
        raise InvalidInputError(f"which must be 'today' or 'prior', got {which!r}")
    return which


def price_at(curve: Curve, tenor_months: int, which: str = TODAY) -> float | None:
    """Exact-match price lookup."""
    _check_which(which)
    point = curve.point(tenor_months)
    if point is None:
        return None
    return point.price_today if which == TODAY else point.price_prior


def carry(curve: Curve, t1: int, t2: int, which: str = TODAY) -> float | None:
    """Price difference p(t2) - p(t1)."""
    p1 = price_at(curve, t1, which)
    p2 = price_at(curve, t2, which)
    if p1 is None or p2 is None:
        return None
    return p2 - p1


def segment_slope(curve: Curve, t1: int, t2: int, which: str = TODAY) -> float | None:
    """Price change per tenor-month between t1 and t2."""
    if t1 == t2:
        return None
    diff = carry(curve, t1, t2, which)
    if diff is None:
        return None
    return diff / (t2 - t1)


def classify_shape(curve: Curve, which: str = TODAY) -> str:
    """Classify the 0M->12M slope. Same thresholds for gold and silver."""
    p0 = price_at(curve, 0, which)
    p12 = price_at(curve, 12, which)
    if p0 is None or p12 is None:
        return NO_DATA

    slope = (p12 - p0) / 12
    if slope > SHAPE_SLOPE_THRESHOLD:
        return SHAPE_STEEPENING
    if slope < -SHAPE_SLOPE_THRESHOLD:
        return SHAPE_INVERTED
    return SHAPE_FLAT


def regime_tag(curve: Curve, which: str = TODAY) -> RegimeTag:
    """Tag the curve as contango, backwardation or flat by 12M - 0M carry."""
    p0 = price_at(curve, 0, which)
    p12 = price_at(curve, 12, which)
    if p0 is None or p12 is None:
        return RegimeTag(NO_DATA, "Missing 0M or 12M price")

    diff = p12 - p0
    if diff > REGIME_CARRY_THRESHOLD:
        return RegimeTag(REGIME_CONTANGO, f"12M over spot by {diff:+.2f}")
    if diff < -REGIME_CARRY_THRESHOLD:
        return RegimeTag(REGIME_BACKWARDATION, f"12M under spot by {diff:+.2f}")
    return RegimeTag(
        REGIME_FLAT, f"12M vs spot {diff:+.2f} within ±{REGIME_CARRY_THRESHOLD:g}"
    )


def slope_change(curve: Curve, t1: int, t2: int) -> float | None:
    """Today's segment slope minus the prior date's."""
    today = segment_slope(curve, t1, t2, TODAY)
    prior = segment_slope(curve, t1, t2, PRIOR)
    if today is None or prior is None:
        return None
    return today - prior


def interpret_slope(
    delta_slope: float | None,
    flat: float = SLOPE_FLAT_THRESHOLD,
    mild: float = SLOPE_MILD_THRESHOLD,
) -> str:
    """Describe a slope (or slope change) in words."""
    delta = optional_number(delta_slope, "delta_slope")
    if delta is None:
        return NO_DATA

    magnitude = abs(delta)
    if magnitude <= flat:
        return "Flat"
    if magnitude <= mild:
        return "Gentle upward carry" if delta > 0 else "Gentle inversion"
    return "Upward carry (steep)" if delta > 0 else "Inversion (sharp)"


def move_driver_label(
    front_slope: float | None,
    back_slope: float | None,
    ratio: float = MOVE_DRIVER_RATIO,
) -> str:
    """Which end of the curve dominated the move."""
    front = optional_number(front_slope, "front_slope")
    back = optional_number(back_slope, "back_slope")
    if front is None or back is None:
        return NO_DATA

    if abs(front) > abs(back) * ratio:
        return "Front-led"
    if abs(back) > abs(front) * ratio:
        return "Back-led"
    return "Mixed"


def pct_vs_spot(curve: Curve) -> list[SpotRelativePoint]:
    """
    Express each tenor relative to today's spot price.

    Both the today and prior lines are divided by today's spot so the two
    shapes share a baseline. Fractions are None when spot is missing
    or zero.
    """
    spot = price_at(curve, 0, TODAY)
    points = []
    for p in curve.points:
        if spot is None or spot == 0:
            points.append(SpotRelativePoint(p.tenor_months, None, None))
            continue
        points.append(
            SpotRelativePoint(
                tenor_months=p.tenor_months,
                pct_today=(p.price_today - spot) / spot if p.price_today is not None else None,
                pct_prior=(p.price_prior - spot) / spot if p.price_prior is not None else None,
            )
        )
    return points


def front_end_slope(curve: Curve, which: str = TODAY) -> float | None:
    """Raw 0M->1M price difference."""
    return carry(curve, 0, 1, which)


def is_front_end_stressed(curve: Curve, metal: Metal | None = None) -> bool | None:
    """
    Today's front-end stress flag, None when 0M or 1M is missing.

    Uses the same thresholds as the stress streak.
    """
    metal = Metal.parse(metal) if metal is not None else curve.metal
    slope = front_end_slope(curve, TODAY)
    if slope is None:
        return None
    return abs(slope) > STRESS_THRESHOLDS[metal]
