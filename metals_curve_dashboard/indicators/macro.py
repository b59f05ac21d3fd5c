"""Macro snapshot and day-over-day macro deltas."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from metals_curve_dashboard.models.market_data import (
    InvalidInputError,
    MacroSnapshot,
    Metal,
    Observation,
)


MACRO_FIELDS: tuple[str, ...] = ("real_10y_yield", "dollar_index", "deficit_flag")


@dataclass(frozen=True)
class MacroDelta:
    """Today minus prior for the numeric macro series."""

    real_10y_delta: float | None
    dollar_index_delta: float | None
    gold_front_month_delta: float | None
    deficit_flag_prior: bool | None
    deficit_flag_today: bool | None

    @property
    def deficit_flag_changed(self) -> bool:
        return (
            self.deficit_flag_prior is not None
            and self.deficit_flag_today is not None
            and self.deficit_flag_prior != self.deficit_flag_today
        )

    def to_dict(self) -> dict:
        return {
            "real10yDelta": self.real_10y_delta,
            "dollarIndexDelta": self.dollar_index_delta,
            "goldFrontMonthDelta": self.gold_front_month_delta,
            "deficitFlag": {
                "prior": self.deficit_flag_prior,
                "today": self.deficit_flag_today,
            },
        }


def _ordered(observations: Iterable[Observation]) -> list[Observation]:
    rows = list(observations)
    for obs in rows:
        if not isinstance(obs, Observation):
            raise InvalidInputError(f"Expected Observation, got {type(obs).__name__}")
    # Stable sort keeps first-seen order for duplicate keys
    return sorted(rows, key=lambda o: (o.metal.value, o.tenor_months))


def _representative(rows: Sequence[Observation]) -> Observation | None:
    return rows[0] if rows else None


def _gold_front_month(rows: Sequence[Observation]) -> float | None:
    for obs in rows:
        if obs.metal is Metal.GOLD and obs.tenor_months == 0:
            return obs.price
    return None


def build_macro_snapshot(
    today_observations: Iterable[Observation],
    prior_observations: Iterable[Observation],
    as_of_date: date | None,
    prior_as_of_date: date | None,
) -> MacroSnapshot:
    """
    Read macro fields from the representative row of each date.

    The representative row is the first one in (metal, tenor) order. Macro
    fields are expected to be identical across a date's rows; use
    check_macro_consistency to verify.
    """
    today = _ordered(today_observations)
    prior = _ordered(prior_observations) if prior_as_of_date is not None else []

    base_today = _representative(today)
    base_prior = _representative(prior)

    return MacroSnapshot(
        as_of_date=as_of_date,
        prior_as_of_date=prior_as_of_date,
        real_10y=base_today.real_10y_yield if base_today else None,
        real_10y_prior=base_prior.real_10y_yield if base_prior else None,
        dollar_index=base_today.dollar_index if base_today else None,
        dollar_index_prior=base_prior.dollar_index if base_prior else None,
        deficit_flag=base_today.deficit_flag if base_today else None,
        deficit_flag_prior=base_prior.deficit_flag if base_prior else None,
        gold_front_month=_gold_front_month(today),
        gold_front_month_prior=_gold_front_month(prior),
    )


def check_macro_consistency(observations: Iterable[Observation]) -> list[str]:
    """
    Return macro fields whose non-null values disagree within a single date.

    Each field is reported once, in MACRO_FIELDS order.
    """
    seen: dict[tuple[date, str], object] = {}
    inconsistent: set[str] = set()
    for obs in _ordered(observations):
        for name in MACRO_FIELDS:
            value = getattr(obs, name)
            if value is None:
                continue
            key = (obs.as_of_date, name)
            if key not in seen:
                seen[key] = value
            elif seen[key] != value:
                inconsistent.add(name)
    return [name for name in MACRO_FIELDS if name in inconsistent]


def _delta(today: float | None, prior: float | None) -> float | None:
    if today is None or prior is None:
        return None
    return today - prior


def macro_deltas(snapshot: MacroSnapshot) -> MacroDelta:
    """
    Today-minus-prior for real yield, dollar index and gold front month.

    With no prior date every delta is None. The deficit flag is boolean and
    is reported as a before/after pair instead.
    """
    if snapshot.prior_as_of_date is None:
        return MacroDelta(
            real_10y_delta=None,
            dollar_index_delta=None,
            gold_front_month_delta=None,
            deficit_flag_prior=None,
            deficit_flag_today=snapshot.deficit_flag,
        )

    return MacroDelta(
        real_10y_delta=_delta(snapshot.real_10y, snapshot.real_10y_prior),
        dollar_index_delta=_delta(snapshot.dollar_index, snapshot.dollar_index_prior),
        gold_front_month_delta=_delta(
            snapshot.gold_front_month, snapshot.gold_front_month_prior
        ),
        deficit_flag_prior=snapshot.deficit_flag_prior,
        deficit_flag_today=snapshot.deficit_flag,
    )
