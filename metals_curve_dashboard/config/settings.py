"""Configuration settings for the dashboard."""

from dataclasses import dataclass, field
from pathlib import Path
import os

from dotenv import load_dotenv

from metals_curve_dashboard.models.market_data import Metal


load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


TRACKED_METALS: tuple[Metal, ...] = (Metal.GOLD, Metal.SILVER)

# Tenors published by the daily feed (months). Fixtures and the history view use
# these; the curve computations work over whatever tenors are present.
TRACKED_TENORS: tuple[int, ...] = (0, 1, 2, 3, 4, 5, 12)

# Front-end stress: |p(1M) - p(0M)| above this is stress.
# Shared by the streak and the UI flag.
STRESS_THRESHOLDS: dict[Metal, float] = {
    Metal.GOLD: 20.0,
    Metal.SILVER: 1.25,
}

# Curve shape: slope 0M->12M per month, same pair for both metals
SHAPE_SLOPE_THRESHOLD = 3.0

# Regime: 12M - 0M carry in price units
REGIME_CARRY_THRESHOLD = 15.0

# Day-over-day slope change interpretation
SLOPE_FLAT_THRESHOLD = 0.5
SLOPE_MILD_THRESHOLD = 2.0

# Move driver: one end must move this many times more than the other
MOVE_DRIVER_RATIO = 1.5
FRONT_SEGMENT: tuple[int, int] = (0, 3)
BACK_SEGMENT: tuple[int, int] = (3, 12)

# Gold/silver day-over-day change correlation below this flags divergence
DIVERGENCE_THRESHOLD = 0.0

# History view bounds (days)
HISTORY_DAYS_MIN = 10
HISTORY_DAYS_MAX = 365

# Normalized CSV header -> canonical field. Normalization lower-cases and
# drops spaces/underscores, so "As Of Date" and "as_of_date" both map.
CSV_HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "as_of_date": ("asofdate",),
    "metal": ("metal",),
    "tenor_months": ("tenormonths",),
    "price": ("price", "cmecontrprice", "cmecontractprice"),
    "real_10y_yield": ("10yrrealyld", "10yrrealyield", "realyield", "real10yryld"),
    "dollar_index": ("dollarindex",),
    "deficit_flag": ("deficitgdpflag",),
}

CSV_REQUIRED_FIELDS: tuple[str, ...] = ("as_of_date", "metal", "tenor_months", "price")


@dataclass
class Settings:
    """Application settings."""

    csv_url: str = field(default_factory=lambda: os.getenv("METALS_CSV_URL", ""))
    cache_dir: Path = field(
        default_factory=lambda: Path(__file__).parent.parent.parent / "cache"
    )
    db_override: str = field(default_factory=lambda: os.getenv("METALS_DB_PATH", ""))
    stress_lookback_days: int = field(
        default_factory=lambda: _env_int("STRESS_LOOKBACK_DAYS", 60)
    )
    history_days: int = field(default_factory=lambda: _env_int("HISTORY_DAYS", 90))
    momentum_lookback_days: int = field(
        default_factory=lambda: _env_int("MOMENTUM_LOOKBACK_DAYS", 5)
    )
    momentum_noise_pct: float = field(
        default_factory=lambda: _env_float("MOMENTUM_NOISE_PCT", 0.5)
    )
    db_path: Path = field(init=False)

    def __post_init__(self) -> None:
        if self.db_override:
            self.db_path = Path(self.db_override)
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        else:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self.db_path = self.cache_dir / "metals_curve.db"

        if self.stress_lookback_days < 1:
            raise ValueError("STRESS_LOOKBACK_DAYS must be at least 1")
        if self.momentum_lookback_days < 1:
            raise ValueError("MOMENTUM_LOOKBACK_DAYS must be at least 1")

    def validate(self) -> None:
        """Validate settings required for fetching the feed."""
        if not self.csv_url:
            raise ValueError(
                "METALS_CSV_URL not set. Point it at the published CSV feed "
                "or pass --file to ingest a local export."
            )

    def has_csv_url(self) -> bool:
        """Check if a feed URL is configured."""
        return bool(self.csv_url)
