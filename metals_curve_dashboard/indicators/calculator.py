"""Assemble curve, macro and stress views from stored observations."""

import json
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

import pandas as pd

from metals_curve_dashboard.config import (
    BACK_SEGMENT,
    FRONT_SEGMENT,
    HISTORY_DAYS_MAX,
    HISTORY_DAYS_MIN,
    TRACKED_METALS,
    TRACKED_TENORS,
    Settings,
)
from metals_curve_dashboard.data.cache import ObservationStore
from metals_curve_dashboard.indicators.curve_builder import build_curves
from metals_curve_dashboard.indicators.curve_metrics import (
    PRIOR,
    TODAY,
    RegimeTag,
    carry,
    classify_shape,
    interpret_slope,
    is_front_end_stressed,
    move_driver_label,
    regime_tag,
    slope_change,
)
from metals_curve_dashboard.indicators.macro import (
    MacroDelta,
    build_macro_snapshot,
    check_macro_consistency,
    macro_deltas,
)
from metals_curve_dashboard.indicators.momentum import (
    DivergenceResult,
    MomentumResult,
    curve_divergence,
    momentum_label,
)
from metals_curve_dashboard.indicators.stress import stress_streaks
from metals_curve_dashboard.models.market_data import (
    Curve,
    MacroSnapshot,
    Metal,
    Observation,
)


logger = logging.getLogger(__name__)


@dataclass
class CurveSignals:
    """Derived signals for one metal's curve."""

    metal: Metal
    shape_today: str
    shape_prior: str
    regime_today: RegimeTag
    regime_prior: RegimeTag
    carry_0_12: float | None
    front_slope_change: float | None
    back_slope_change: float | None
    front_interpretation: str
    back_interpretation: str
    move_driver: str
    front_end_stressed: bool | None
    stress_streak: int
    momentum: MomentumResult

    def to_dict(self) -> dict:
        return {
            "shapeToday": self.shape_today,
            "shapePrior": self.shape_prior,
            "regimeToday": self.regime_today.to_dict(),
            "regimePrior": self.regime_prior.to_dict(),
            "carry0to12": self.carry_0_12,
            "frontSlopeChange": self.front_slope_change,
            "backSlopeChange": self.back_slope_change,
            "frontInterpretation": self.front_interpretation,
            "backInterpretation": self.back_interpretation,
            "moveDriver": self.move_driver,
            "frontEndStressed": self.front_end_stressed,
            "stressStreak": self.stress_streak,
            "momentum": self.momentum.to_dict(),
        }


@dataclass
class CurveDashboardResult:
    """Complete dashboard result."""

    as_of_date: date
    prior_date: date | None
    curves: dict[Metal, Curve]
    macro: MacroSnapshot
    macro_delta: MacroDelta
    stress_streak: dict[Metal, int]
    signals: dict[Metal, CurveSignals]
    divergence: DivergenceResult
    inconsistent_macro_fields: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """JSON payload consumed by the dashboard front end."""
        return {
            "asOfDate": self.as_of_date.isoformat(),
            "priorDate": self.prior_date.isoformat() if self.prior_date else None,
            "curves": [curve.to_dict() for curve in self.curves.values()],
            "macro": self.macro.to_dict(),
            "stressStreak": {m.key: n for m, n in self.stress_streak.items()},
            "macroDelta": self.macro_delta.to_dict(),
            "signals": {m.key: s.to_dict() for m, s in self.signals.items()},
            "divergence": self.divergence.to_dict(),
            "dataQuality": {
                "inconsistentMacroFields": list(self.inconsistent_macro_fields),
            },
        }


class CurveCalculator:
    """Transforms stored observations into the dashboard view."""

    def __init__(
        self, settings: Settings | None = None, store: ObservationStore | None = None
    ) -> None:
        self.settings = settings or Settings()
        self.store = store or ObservationStore(self.settings.db_path)

    def _front_history(self, metal: Metal, latest: date) -> list[Observation]:
        """Tenor 0/1 rows over the stress lookback window ending at latest."""
        start = latest - timedelta(days=self.settings.stress_lookback_days)
        return self.store.observations_in_range(metal, start, latest, tenors=(0, 1))

    def _momentum(self, history: list[Observation]) -> MomentumResult:
        series = [
            {"as_of_date": obs.as_of_date, "price": obs.price}
            for obs in history
            if obs.tenor_months == 0
        ]
        return momentum_label(
            series,
            "price",
            self.settings.momentum_lookback_days,
            self.settings.momentum_noise_pct,
        )

    def _signals(
        self, curve: Curve, streak: int, momentum: MomentumResult
    ) -> CurveSignals:
        front = slope_change(curve, *FRONT_SEGMENT)
        back = slope_change(curve, *BACK_SEGMENT)
        return CurveSignals(
            metal=curve.metal,
            shape_today=classify_shape(curve, TODAY),
            shape_prior=classify_shape(curve, PRIOR),
            regime_today=regime_tag(curve, TODAY),
            regime_prior=regime_tag(curve, PRIOR),
            carry_0_12=carry(curve, 0, 12, TODAY),
            front_slope_change=front,
            back_slope_change=back,
            front_interpretation=interpret_slope(front),
            back_interpretation=interpret_slope(back),
            move_driver=move_driver_label(front, back),
            front_end_stressed=is_front_end_stressed(curve),
            stress_streak=streak,
            momentum=momentum,
        )

    def calculate(self) -> CurveDashboardResult | None:
        """
        Build the full dashboard view for the latest date.

        Returns None if the store holds no observations.
        """
        latest = self.store.latest_date()
        if latest is None:
            return None
        prior = self.store.prior_date(latest)

        today_rows = self.store.observations_on(latest)
        prior_rows = self.store.observations_on(prior) if prior else []

        curves = build_curves(today_rows, prior_rows)

        macro = build_macro_snapshot(today_rows, prior_rows, latest, prior)
        inconsistent = check_macro_consistency(today_rows + prior_rows)
        if inconsistent:
            logger.warning(
                f"Macro fields differ across rows of the same date: {inconsistent}"
            )

        history = {metal: self._front_history(metal, latest) for metal in TRACKED_METALS}
        streaks = stress_streaks([obs for rows in history.values() for obs in rows])

        signals = {
            metal: self._signals(curves[metal], streaks[metal], self._momentum(history[metal]))
            for metal in TRACKED_METALS
        }

        return CurveDashboardResult(
            as_of_date=latest,
            prior_date=prior,
            curves=curves,
            macro=macro,
            macro_delta=macro_deltas(macro),
            stress_streak=streaks,
            signals=signals,
            divergence=curve_divergence(curves[Metal.GOLD], curves[Metal.SILVER]),
            inconsistent_macro_fields=inconsistent,
        )

    def get_history(
        self,
        metal: Metal | str = Metal.GOLD,
        days: int | None = None,
        tenors: tuple[int, ...] | None = None,
    ) -> pd.DataFrame:
        """
        Get per-tenor price history for charting.

        Args:
            metal: Metal to chart
            days: Number of most recent dates, clamped to [10, 365]
            tenors: Tenors to include, defaults to the tracked set

        Returns:
            DataFrame with DatetimeIndex and one column per tenor
        """
        days = self.settings.history_days if days is None else days
        days = max(HISTORY_DAYS_MIN, min(days, HISTORY_DAYS_MAX))
        tenors = TRACKED_TENORS if tenors is None else tenors

        dates = self.store.recent_dates(metal, days)
        if not dates:
            return pd.DataFrame()

        return self.store.get_history_frame(
            metal, start_date=min(dates), end_date=max(dates), tenors=tenors
        )


def main() -> None:
    """CLI entry point: print the dashboard payload as JSON."""
    import argparse
    import sys

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Print the metals curve dashboard payload")
    parser.add_argument(
        "--output",
        type=str,
        help="Write JSON to this file instead of stdout",
    )
    args = parser.parse_args()

    calc = CurveCalculator()
    result = calc.calculate()

    if result is None:
        print("No data available. Run: python -m metals_curve_dashboard.data.csv_ingest")
        sys.exit(1)

    payload = json.dumps(result.to_dict(), indent=2)
    if args.output:
        with open(args.output, "w") as f:
            f.write(payload)
        print(f"Saved dashboard payload for {result.as_of_date} to {args.output}")
    else:
        print(payload)


if __name__ == "__main__":
    main()
