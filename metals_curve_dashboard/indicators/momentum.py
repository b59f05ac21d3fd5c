"""Momentum classification and gold/silver correlation."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

import numpy as np

from metals_curve_dashboard.config import DIVERGENCE_THRESHOLD
from metals_curve_dashboard.models.market_data import (
    Curve,
    InvalidInputError,
    optional_number,
    require_number,
)

INSUFFICIENT_HISTORY = "Insufficient history"
NO_DATA = "No data"


@dataclass(frozen=True)
class MomentumResult:
    """Direction label, percent change and noise/signal tag."""

    label: str  # Up, Down, Flat, Insufficient history, No data
    pct: float | None
    tag: str | None  # Noise or Signal

    def to_dict(self) -> dict:
        return {"label": self.label, "pct": self.pct, "tag": self.tag}


@dataclass(frozen=True)
class DivergenceResult:
    """Correlation of gold and silver day-over-day curve moves."""

    correlation: float | None
    diverging: bool

    def to_dict(self) -> dict:
        return {"correlation": self.correlation, "diverging": self.diverging}


def momentum_label(
    series: Sequence[Mapping],
    key: str,
    lookback_days: int,
    noise_threshold_pct: float,
) -> MomentumResult:
    """
    Classify the percent move over the last lookback_days points.

    Args:
        series: Rows ordered oldest first
        key: Field holding the value in each row
        lookback_days: Number of points back to compare against
        noise_threshold_pct: Moves smaller than this (in %) are noise

    Returns:
        MomentumResult. Fewer than lookback_days + 1 rows gives
        "Insufficient history" with pct None.
    """
    if isinstance(lookback_days, bool) or not isinstance(lookback_days, int) or lookback_days < 1:
        raise InvalidInputError(f"lookback_days must be a positive integer, got {lookback_days!r}")
    noise = require_number(noise_threshold_pct, "noise_threshold_pct")

    if len(series) < lookback_days + 1:
        return MomentumResult(INSUFFICIENT_HISTORY, None, None)

    last = optional_number(series[-1].get(key), key)
    base = optional_number(series[-1 - lookback_days].get(key), key)
    if last is None or base is None or base == 0:
        return MomentumResult(NO_DATA, None, None)

    pct = (last - base) / base * 100
    if pct > 0:
        label = "Up"
    elif pct < 0:
        label = "Down"
    else:
        label = "Flat"
    tag = "Noise" if abs(pct) < noise else "Signal"
    return MomentumResult(label, pct, tag)


def pearson_correlation(
    xs: Sequence[float | None], ys: Sequence[float | None]
) -> float | None:
    """
    Pearson correlation over pairs where both values are present.

    Returns None with fewer than 3 valid pairs or when either side has zero
    variance.
    """
    if len(xs) != len(ys):
        raise InvalidInputError(
            f"Series must be the same length, got {len(xs)} and {len(ys)}"
        )

    pairs = [
        (require_number(x, "x"), require_number(y, "y"))
        for x, y in zip(xs, ys)
        if x is not None and y is not None
    ]
    if len(pairs) < 3:
        return None

    x = np.array([p[0] for p in pairs], dtype=float)
    y = np.array([p[1] for p in pairs], dtype=float)
    # Zero variance
    if np.all(x == x[0]) or np.all(y == y[0]):
        return None

    return float(np.corrcoef(x, y)[0, 1])


def _daily_changes(curve: Curve) -> dict[int, float | None]:
    changes: dict[int, float | None] = {}
    for p in curve.points:
        if p.price_today is None or p.price_prior is None:
            changes[p.tenor_months] = None
        else:
            changes[p.tenor_months] = p.price_today - p.price_prior
    return changes


def curve_divergence(
    first: Curve, second: Curve, threshold: float = DIVERGENCE_THRESHOLD
) -> DivergenceResult:
    """
    Correlate two curves' day-over-day moves, aligned by tenor.

    The curves diverge when the correlation exists and is below threshold.
    """
    a = _daily_changes(first)
    b = _daily_changes(second)
    tenors = sorted(set(a) & set(b))
    corr = pearson_correlation([a[t] for t in tenors], [b[t] for t in tenors])
    return DivergenceResult(
        correlation=corr,
        diverging=corr is not None and corr < threshold,
    )
