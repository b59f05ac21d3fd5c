"""CSV feed ingestion: fetch, normalize headers, validate rows, store."""

import io
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path

import httpx
import pandas as pd

from metals_curve_dashboard.config import (
    CSV_HEADER_ALIASES,
    CSV_REQUIRED_FIELDS,
    Settings,
)
from metals_curve_dashboard.data.cache import ObservationStore
from metals_curve_dashboard.models.market_data import (
    InvalidInputError,
    Metal,
    Observation,
)


logger = logging.getLogger(__name__)


_TRUE_FLAGS = {"1", "true", "yes", "y"}
_FALSE_FLAGS = {"0", "false", "no", "n"}

# Stands in for the fields of a row that had more fields than the header
_OVERFLOW = "\x00overflow"


@dataclass
class ParseResult:
    """Valid observations and the rows that were rejected."""

    observations: list[Observation] = field(default_factory=list)
    rejected: list[tuple[int, str]] = field(default_factory=list)  # (csv line, reason)


@dataclass
class IngestResult:
    """Outcome of one ingestion run."""

    parsed: int
    stored: int
    rejected: list[tuple[int, str]]
    as_of_dates: list[date]


def normalize_header(name: str) -> str:
    """Lower-case a header and drop quotes, spaces and underscores."""
    text = str(name).strip().strip('"').lower()
    return "".join(ch for ch in text if not ch.isspace() and ch != "_")


def resolve_columns(headers: list[str]) -> dict[str, str]:
    """
    Map canonical field names to the CSV's own headers.

    Raises:
        ValueError: If a required field has no matching header
    """
    by_norm: dict[str, str] = {}
    for h in headers:
        by_norm.setdefault(normalize_header(h), h)

    mapping: dict[str, str] = {}
    for canonical, aliases in CSV_HEADER_ALIASES.items():
        for alias in aliases:
            if alias in by_norm:
                mapping[canonical] = by_norm[alias]
                break

    missing = [f for f in CSV_REQUIRED_FIELDS if f not in mapping]
    if missing:
        raise ValueError(
            f"CSV headers not recognized: missing {missing}, got {list(headers)}"
        )
    return mapping


def _clean(value: object) -> str:
    # Short rows come back from pandas padded with NaN
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value).strip().strip('"').strip()


def _parse_date(text: str) -> date:
    if len(text) < 10:
        raise InvalidInputError(f"bad date {text!r}")
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        raise InvalidInputError(f"bad date {text!r}") from None


def _parse_float(text: str, name: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise InvalidInputError(f"{name} is not a number: {text!r}") from None
    if not math.isfinite(value):
        raise InvalidInputError(f"{name} is not finite: {text!r}")
    return value


def _parse_optional_float(text: str, name: str) -> float | None:
    return None if text == "" else _parse_float(text, name)


def _parse_tenor(text: str) -> int:
    value = _parse_float(text, "tenor_months")
    if not value.is_integer():
        raise InvalidInputError(f"tenor_months is not a whole number: {text!r}")
    return int(value)


def _parse_flag(text: str) -> bool | None:
    lowered = text.lower()
    if lowered == "":
        return None
    if lowered in _TRUE_FLAGS:
        return True
    if lowered in _FALSE_FLAGS:
        return False
    raise InvalidInputError(f"deficit_flag not recognized: {text!r}")


def parse_row(row: dict[str, str], columns: dict[str, str]) -> Observation:
    """Parse one CSV row into an Observation, raising InvalidInputError."""

    def get(canonical: str) -> str:
        header = columns.get(canonical)
        return _clean(row.get(header)) if header is not None else ""

    metal_text = get("metal")
    if not metal_text:
        raise InvalidInputError("metal is blank")
    tenor_text = get("tenor_months")
    if not tenor_text:
        raise InvalidInputError("tenor_months is blank")
    price_text = get("price")
    if not price_text:
        raise InvalidInputError("price is blank")

    return Observation(
        as_of_date=_parse_date(get("as_of_date")),
        metal=Metal.parse(metal_text),
        tenor_months=_parse_tenor(tenor_text),
        price=_parse_float(price_text, "price"),
        real_10y_yield=_parse_optional_float(get("real_10y_yield"), "real_10y_yield"),
        dollar_index=_parse_optional_float(get("dollar_index"), "dollar_index"),
        deficit_flag=_parse_flag(get("deficit_flag")),
    )


def parse_csv(text: str) -> ParseResult:
    """
    Parse feed text into validated observations.

    Rows that fail validation are rejected and logged, never coerced.

    Raises:
        ValueError: If the CSV is empty or required headers are missing
    """
    if not text.strip():
        raise ValueError("CSV empty or missing rows")

    headers = list(pd.read_csv(io.StringIO(text), nrows=0, skipinitialspace=True).columns)
    columns = resolve_columns(headers)

    overflow: list[int] = []

    def _too_many_fields(fields: list[str]) -> list[str]:
        # Keep a placeholder row so later line numbers stay aligned
        overflow.append(len(fields))
        return [_OVERFLOW] * len(headers)

    df = pd.read_csv(
        io.StringIO(text),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        skipinitialspace=True,
        engine="python",
        on_bad_lines=_too_many_fields,
    )

    result = ParseResult()
    overflow_counts = iter(overflow)
    for i, row in enumerate(df.to_dict(orient="records")):
        line = i + 2  # header is line 1
        try:
            if _OVERFLOW in row.values():
                raise InvalidInputError(
                    f"expected {len(headers)} fields, got {next(overflow_counts)}"
                )
            result.observations.append(parse_row(row, columns))
        except InvalidInputError as e:
            logger.warning(f"  Rejected line {line}: {e}")
            result.rejected.append((line, str(e)))

    return result


class CsvIngestor:
    """Fetches the CSV feed and writes it into the observation store."""

    def __init__(
        self, settings: Settings | None = None, store: ObservationStore | None = None
    ) -> None:
        self.settings = settings or Settings()
        self.store = store or ObservationStore(self.settings.db_path)
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Lazy-initialize HTTP client."""
        if self._client is None:
            self._client = httpx.Client(timeout=30.0, follow_redirects=True)
        return self._client

    def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "CsvIngestor":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def fetch_csv(self) -> str:
        """Download the configured feed."""
        self.settings.validate()
        logger.info("Fetching metals CSV feed...")
        response = self.client.get(self.settings.csv_url)
        response.raise_for_status()
        return response.text

    def ingest_text(self, text: str) -> IngestResult:
        """Parse feed text and store the valid rows."""
        parsed = parse_csv(text)
        if not parsed.observations:
            raise ValueError("All rows invalid after validation")

        stored = self.store.store_observations(parsed.observations, datetime.now())
        dates = sorted({obs.as_of_date for obs in parsed.observations})

        if parsed.rejected:
            logger.warning(f"Rejected {len(parsed.rejected)} rows")
        logger.info(
            f"Ingested {len(parsed.observations)} rows for "
            f"{', '.join(d.isoformat() for d in dates)}: {stored} new in history"
        )

        return IngestResult(
            parsed=len(parsed.observations),
            stored=stored,
            rejected=parsed.rejected,
            as_of_dates=dates,
        )

    def ingest_file(self, path: Path | str) -> IngestResult:
        """Ingest a local CSV export."""
        logger.info(f"Reading {path}...")
        return self.ingest_text(Path(path).read_text(encoding="utf-8-sig"))

    def ingest_url(self) -> IngestResult:
        """Fetch and ingest the configured feed."""
        return self.ingest_text(self.fetch_csv())

    def get_status(self) -> dict:
        """Store coverage report."""
        return self.store.get_status()


def main() -> None:
    """CLI entry point for ingesting the feed."""
    import argparse
    import sys

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Ingest the metals curve CSV feed")
    parser.add_argument(
        "--file",
        type=str,
        help="Ingest a local CSV file instead of METALS_CSV_URL",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Show store status and exit",
    )
    args = parser.parse_args()

    try:
        with CsvIngestor() as ingestor:
            if not args.status:
                if args.file:
                    result = ingestor.ingest_file(args.file)
                else:
                    result = ingestor.ingest_url()
                print(
                    f"\nIngested {result.parsed} rows, {result.stored} new, "
                    f"{len(result.rejected)} rejected"
                )

            status = ingestor.get_status()
            history = status["curve_history"]
            latest = status["curve_latest"]
            print("\nStore Status:")
            print("-" * 70)
            print(
                f"history | {history['rows']:6} rows | {history['days']:4} days | "
                f"{history['first_day'] or 'N/A'} .. {history['last_day'] or 'N/A'}"
            )
            print(
                f"latest  | {latest['rows']:6} rows | last date: {latest['last_day'] or 'N/A'}"
            )
            for group in status["history_counts_recent"][:10]:
                print(f"  {group['as_of_date']}  {group['metal']:6}  {group['rows']} rows")

    except ValueError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)
    except httpx.HTTPStatusError as e:
        print(f"Feed error: {e.response.status_code} - {e.response.text[:200]}")
        sys.exit(1)
    except httpx.HTTPError as e:
        print(f"Feed error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
