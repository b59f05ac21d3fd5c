"""Build tenor-aligned today/prior curves from observations."""

from collections.abc import Iterable

from metals_curve_dashboard.config import TRACKED_METALS
from metals_curve_dashboard.models.market_data import (
    Curve,
    InvalidInputError,
    Metal,
    Observation,
    TenorPoint,
)


def _prices_by_tenor(metal: Metal, observations: Iterable[Observation]) -> dict[int, float]:
    """Map tenor -> price, first-seen row wins on duplicates."""
    prices: dict[int, float] = {}
    for obs in observations:
        if not isinstance(obs, Observation):
            raise InvalidInputError(f"Expected Observation, got {type(obs).__name__}")
        if obs.metal is not metal:
            continue
        prices.setdefault(obs.tenor_months, obs.price)
    return prices


def build_curve(
    metal: Metal | str,
    today_observations: Iterable[Observation],
    prior_observations: Iterable[Observation],
) -> Curve:
    """
    Join today's and the prior date's prices on tenor.

    Args:
        metal: Metal to build the curve for; rows of other metals are ignored
        today_observations: Observations on the latest date
        prior_observations: Observations on the prior date (may be empty)

    Returns:
        Curve with one point per tenor seen on either date, ascending
    """
    metal = Metal.parse(metal)
    today = _prices_by_tenor(metal, today_observations)
    prior = _prices_by_tenor(metal, prior_observations)

    points = tuple(
        TenorPoint(
            tenor_months=tenor,
            price_today=today.get(tenor),
            price_prior=prior.get(tenor),
        )
        for tenor in sorted(set(today) | set(prior))
    )
    return Curve(metal=metal, points=points)


def build_curves(
    today_observations: Iterable[Observation],
    prior_observations: Iterable[Observation],
    metals: Iterable[Metal] = TRACKED_METALS,
) -> dict[Metal, Curve]:
    """Build one curve per metal from mixed-metal inputs."""
    today = list(today_observations)
    prior = list(prior_observations)
    return {metal: build_curve(metal, today, prior) for metal in metals}
