"""Shared fixtures: realistic gold/silver curves on the published tenor set."""

from datetime import date, timedelta

import pytest

from metals_curve_dashboard.config import Settings
from metals_curve_dashboard.data.cache import ObservationStore
from metals_curve_dashboard.models.market_data import Metal, Observation


TENORS = (0, 1, 2, 3, 4, 5, 12)

GOLD_TODAY = {0: 4500.0, 1: 4512.0, 2: 4524.0, 3: 4536.0, 4: 4547.0, 5: 4558.0, 12: 4550.0}
GOLD_PRIOR = {0: 4480.0, 1: 4490.0, 2: 4501.0, 3: 4511.0, 4: 4521.0, 5: 4530.0, 12: 4600.0}
SILVER_TODAY = {0: 52.10, 1: 52.30, 2: 52.48, 3: 52.66, 4: 52.83, 5: 53.00, 12: 54.10}
SILVER_PRIOR = {0: 51.80, 1: 52.05, 2: 52.22, 3: 52.40, 4: 52.55, 5: 52.70, 12: 53.70}


def rows_for(
    metal: Metal,
    as_of: date,
    prices: dict[int, float],
    real_10y: float | None = 1.85,
    dollar_index: float | None = 99.4,
    deficit: bool | None = True,
) -> list[Observation]:
    """One observation per tenor with shared macro fields."""
    return [
        Observation(
            as_of_date=as_of,
            metal=metal,
            tenor_months=tenor,
            price=price,
            real_10y_yield=real_10y,
            dollar_index=dollar_index,
            deficit_flag=deficit,
        )
        for tenor, price in prices.items()
    ]


def front_rows(metal: Metal, start: date, diffs: list[float], spot: float = 4500.0) -> list[Observation]:
    """Tenor 0/1 rows on consecutive days, oldest first, with p1 - p0 = diff."""
    rows = []
    for i, diff in enumerate(diffs):
        d = start + timedelta(days=i)
        rows.append(Observation(d, metal, 0, spot))
        rows.append(Observation(d, metal, 1, spot + diff))
    return rows


@pytest.fixture
def today() -> date:
    return date(2025, 10, 17)


@pytest.fixture
def prior(today: date) -> date:
    # Friday -> previous Thursday
    return today - timedelta(days=1)


@pytest.fixture
def today_rows(today: date) -> list[Observation]:
    return rows_for(Metal.GOLD, today, GOLD_TODAY) + rows_for(Metal.SILVER, today, SILVER_TODAY)


@pytest.fixture
def prior_rows(prior: date) -> list[Observation]:
    return rows_for(Metal.GOLD, prior, GOLD_PRIOR, real_10y=1.80, dollar_index=99.9, deficit=False) + rows_for(
        Metal.SILVER, prior, SILVER_PRIOR, real_10y=1.80, dollar_index=99.9, deficit=False
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        csv_url="",
        cache_dir=tmp_path,
        db_override="",
        stress_lookback_days=60,
        history_days=90,
        momentum_lookback_days=3,
        momentum_noise_pct=0.5,
    )


@pytest.fixture
def store(settings: Settings) -> ObservationStore:
    return ObservationStore(settings.db_path)
