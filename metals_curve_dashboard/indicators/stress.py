"""Front-end stress streak detection."""

from collections.abc import Iterable
from datetime import date

from metals_curve_dashboard.config import STRESS_THRESHOLDS, TRACKED_METALS
from metals_curve_dashboard.models.market_data import (
    InvalidInputError,
    Metal,
    Observation,
    require_number,
)


def _front_prices_by_date(observations: Iterable[Observation]) -> dict[date, dict[int, float]]:
    """Group tenor 0 and 1 prices by date. First-seen row wins on duplicates."""
    by_date: dict[date, dict[int, float]] = {}
    for obs in observations:
        if not isinstance(obs, Observation):
            raise InvalidInputError(f"Expected Observation, got {type(obs).__name__}")
        if obs.tenor_months not in (0, 1):
            continue
        by_date.setdefault(obs.as_of_date, {}).setdefault(obs.tenor_months, obs.price)
    return by_date


def compute_stress_streak(observations: Iterable[Observation], threshold: float) -> int:
    """
    Count consecutive most-recent dates with front-end stress.

    A date is stressed when |p(1M) - p(0M)| > threshold. The walk starts at
    the newest date and stops at the first date that is not stressed or that
    lacks either the 0M or 1M price, so only the unbroken tail is counted.

    Args:
        observations: Rows for a single metal; tenors other than 0 and 1
            are ignored
        threshold: Absolute 0M->1M price difference that counts as stress

    Returns:
        Streak length, 0 if the newest date is not stressed
    """
    threshold = require_number(threshold, "threshold")
    by_date = _front_prices_by_date(observations)

    streak = 0
    for as_of in sorted(by_date, reverse=True):
        prices = by_date[as_of]
        p0 = prices.get(0)
        p1 = prices.get(1)
        if p0 is None or p1 is None:
            break

        slope = p1 - p0
        if abs(slope) > threshold:
            streak += 1
        else:
            break

    return streak


def stress_streaks(
    observations: Iterable[Observation],
    metals: Iterable[Metal] = TRACKED_METALS,
) -> dict[Metal, int]:
    """Stress streak per metal using the configured thresholds."""
    rows = list(observations)
    for obs in rows:
        if not isinstance(obs, Observation):
            raise InvalidInputError(f"Expected Observation, got {type(obs).__name__}")
    return {
        metal: compute_stress_streak(
            [obs for obs in rows if obs.metal is metal],
            STRESS_THRESHOLDS[metal],
        )
        for metal in metals
    }
