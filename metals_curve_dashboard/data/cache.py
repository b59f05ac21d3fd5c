"""SQLite store for metals curve observations."""

import logging
import sqlite3
from collections.abc import Iterable
from datetime import date, datetime
from pathlib import Path

import pandas as pd

from metals_curve_dashboard.config import TRACKED_METALS
from metals_curve_dashboard.models.market_data import Metal, Observation


logger = logging.getLogger(__name__)


_COLUMNS = "as_of_date, metal, tenor_months, price, real_10yr_yld, dollar_index, deficit_gdp_flag"


def _metal_params() -> list[str]:
    return [m.value for m in TRACKED_METALS]


def _placeholders(n: int) -> str:
    return ", ".join("?" for _ in range(n))


def _flag_to_db(flag: bool | None) -> int | None:
    return None if flag is None else int(flag)


def _row_to_observation(row: sqlite3.Row) -> Observation:
    flag = row["deficit_gdp_flag"]
    return Observation(
        as_of_date=date.fromisoformat(row["as_of_date"]),
        metal=Metal(row["metal"]),
        tenor_months=int(row["tenor_months"]),
        price=float(row["price"]),
        real_10y_yield=row["real_10yr_yld"],
        dollar_index=row["dollar_index"],
        deficit_flag=None if flag is None else bool(flag),
    )


class ObservationStore:
    """
    SQLite-backed observation store.

    curve_history is append-only with one row per (date, metal, tenor);
    curve_latest keeps the newest row per (metal, tenor).
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection with row factory."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS curve_latest (
                    metal TEXT NOT NULL,
                    tenor_months INTEGER NOT NULL,
                    as_of_date TEXT NOT NULL,
                    price REAL NOT NULL,
                    real_10yr_yld REAL,
                    dollar_index REAL,
                    deficit_gdp_flag INTEGER,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (metal, tenor_months)
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS curve_history (
                    as_of_date TEXT NOT NULL,
                    metal TEXT NOT NULL,
                    tenor_months INTEGER NOT NULL,
                    price REAL NOT NULL,
                    real_10yr_yld REAL,
                    dollar_index REAL,
                    deficit_gdp_flag INTEGER,
                    inserted_at TEXT NOT NULL,
                    PRIMARY KEY (as_of_date, metal, tenor_months)
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_history_metal_date
                ON curve_history(metal, as_of_date)
            """)

    def store_observations(
        self, observations: Iterable[Observation], stored_at: datetime | None = None
    ) -> int:
        """
        Upsert into latest and append into history in one transaction.

        A latest row is only replaced by an observation that is not older
        than it. Re-ingesting a (date, metal, tenor) already in history is a
        no-op there.

        Returns:
            Number of new history rows
        """
        rows = [
            (
                obs.as_of_date.isoformat(),
                obs.metal.value,
                obs.tenor_months,
                obs.price,
                obs.real_10y_yield,
                obs.dollar_index,
                _flag_to_db(obs.deficit_flag),
            )
            for obs in observations
        ]
        if not rows:
            return 0

        stamp = (stored_at or datetime.now()).isoformat()
        stamped = [row + (stamp,) for row in rows]

        with self._get_connection() as conn:
            conn.executemany(
                f"""
                INSERT INTO curve_latest ({_COLUMNS}, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (metal, tenor_months) DO UPDATE SET
                    as_of_date = excluded.as_of_date,
                    price = excluded.price,
                    real_10yr_yld = excluded.real_10yr_yld,
                    dollar_index = excluded.dollar_index,
                    deficit_gdp_flag = excluded.deficit_gdp_flag,
                    updated_at = excluded.updated_at
                WHERE excluded.as_of_date >= curve_latest.as_of_date
                """,
                stamped,
            )
            before = conn.total_changes
            conn.executemany(
                f"""
                INSERT OR IGNORE INTO curve_history ({_COLUMNS}, inserted_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                stamped,
            )
            inserted = conn.total_changes - before

        logger.info(f"Stored {inserted} new history rows ({len(rows)} submitted)")
        return inserted

    def latest_date(self) -> date | None:
        """Most recent as-of date across the tracked metals."""
        metals = _metal_params()
        with self._get_connection() as conn:
            row = conn.execute(
                f"SELECT MAX(as_of_date) AS max_date FROM curve_history "
                f"WHERE metal IN ({_placeholders(len(metals))})",
                metals,
            ).fetchone()
        if row and row["max_date"]:
            return date.fromisoformat(row["max_date"])
        return None

    def prior_date(self, before: date) -> date | None:
        """Most recent as-of date strictly before `before`, shared by all metals."""
        metals = _metal_params()
        with self._get_connection() as conn:
            row = conn.execute(
                f"SELECT MAX(as_of_date) AS max_date FROM curve_history "
                f"WHERE as_of_date < ? AND metal IN ({_placeholders(len(metals))})",
                [before.isoformat(), *metals],
            ).fetchone()
        if row and row["max_date"]:
            return date.fromisoformat(row["max_date"])
        return None

    def observations_on(self, as_of_date: date) -> list[Observation]:
        """All tracked-metal observations for one date, ordered by metal and tenor."""
        metals = _metal_params()
        with self._get_connection() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM curve_history "
                f"WHERE as_of_date = ? AND metal IN ({_placeholders(len(metals))}) "
                f"ORDER BY metal, tenor_months",
                [as_of_date.isoformat(), *metals],
            ).fetchall()
        return [_row_to_observation(r) for r in rows]

    def observations_in_range(
        self,
        metal: Metal | str,
        from_date: date,
        to_date: date,
        tenors: Iterable[int] | None = None,
    ) -> list[Observation]:
        """
        Observations for one metal between two dates inclusive.

        Ordered by date ascending, then tenor.
        """
        metal = Metal.parse(metal)
        query = (
            f"SELECT {_COLUMNS} FROM curve_history "
            "WHERE metal = ? AND as_of_date >= ? AND as_of_date <= ?"
        )
        params: list = [metal.value, from_date.isoformat(), to_date.isoformat()]

        if tenors is not None:
            tenor_list = [int(t) for t in tenors]
            if not tenor_list:
                return []
            query += f" AND tenor_months IN ({_placeholders(len(tenor_list))})"
            params.extend(tenor_list)

        query += " ORDER BY as_of_date, tenor_months"

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_observation(r) for r in rows]

    def recent_dates(self, metal: Metal | str, limit: int) -> list[date]:
        """The `limit` most recent distinct dates for a metal, newest first."""
        metal = Metal.parse(metal)
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT DISTINCT as_of_date FROM curve_history WHERE metal = ? "
                "ORDER BY as_of_date DESC LIMIT ?",
                (metal.value, limit),
            ).fetchall()
        return [date.fromisoformat(r["as_of_date"]) for r in rows]

    def latest_observations(self) -> list[Observation]:
        """Contents of the latest projection."""
        with self._get_connection() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM curve_latest ORDER BY metal, tenor_months"
            ).fetchall()
        return [_row_to_observation(r) for r in rows]

    def get_history_frame(
        self,
        metal: Metal | str,
        start_date: date | None = None,
        end_date: date | None = None,
        tenors: Iterable[int] | None = None,
    ) -> pd.DataFrame:
        """
        Retrieve price history for charting.

        Returns:
            DataFrame with DatetimeIndex and one column per tenor
        """
        metal = Metal.parse(metal)
        query = "SELECT as_of_date, tenor_months, price FROM curve_history WHERE metal = ?"
        params: list = [metal.value]

        if start_date:
            query += " AND as_of_date >= ?"
            params.append(start_date.isoformat())
        if end_date:
            query += " AND as_of_date <= ?"
            params.append(end_date.isoformat())
        if tenors is not None:
            tenor_list = [int(t) for t in tenors]
            query += f" AND tenor_months IN ({_placeholders(len(tenor_list))})"
            params.extend(tenor_list)

        query += " ORDER BY as_of_date, tenor_months"

        with self._get_connection() as conn:
            df = pd.read_sql_query(query, conn, params=params)

        if df.empty:
            return pd.DataFrame()

        df["as_of_date"] = pd.to_datetime(df["as_of_date"])
        frame = df.pivot(index="as_of_date", columns="tenor_months", values="price")
        frame.columns.name = None
        frame.index.name = "date"
        return frame

    def get_status(self, recent_groups: int = 60) -> dict:
        """Row counts and date coverage for both tables."""
        with self._get_connection() as conn:
            history = conn.execute("""
                SELECT
                    COUNT(*) AS rows,
                    COUNT(DISTINCT as_of_date) AS days,
                    MIN(as_of_date) AS first_day,
                    MAX(as_of_date) AS last_day,
                    MAX(inserted_at) AS last_inserted_at
                FROM curve_history
            """).fetchone()
            latest = conn.execute("""
                SELECT
                    COUNT(*) AS rows,
                    COUNT(DISTINCT as_of_date) AS days,
                    MIN(as_of_date) AS first_day,
                    MAX(as_of_date) AS last_day,
                    MAX(updated_at) AS last_updated_at
                FROM curve_latest
            """).fetchone()
            counts = conn.execute(
                """
                SELECT as_of_date, metal, COUNT(*) AS rows
                FROM curve_history
                GROUP BY as_of_date, metal
                ORDER BY as_of_date DESC, metal
                LIMIT ?
                """,
                (recent_groups,),
            ).fetchall()

        return {
            "curve_history": dict(history),
            "curve_latest": dict(latest),
            "history_counts_recent": [dict(r) for r in counts],
        }
