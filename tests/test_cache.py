"""Tests for the SQLite observation store."""

from datetime import date, datetime, timedelta

from conftest import GOLD_TODAY, front_rows, rows_for
from metals_curve_dashboard.data.cache import ObservationStore
from metals_curve_dashboard.models.market_data import Metal, Observation


class TestStoreObservations:
    """History is append-only, latest keeps the newest row per tenor."""

    def test_returns_new_history_rows(self, store, today_rows):
        assert store.store_observations(today_rows) == len(today_rows)

    def test_duplicate_ingestion_adds_nothing(self, store, today_rows):
        store.store_observations(today_rows)

        assert store.store_observations(today_rows) == 0
        assert store.get_status()["curve_history"]["rows"] == len(today_rows)

    def test_first_stored_row_wins_in_history(self, store, today):
        store.store_observations([Observation(today, Metal.GOLD, 0, 4500.0)])
        store.store_observations([Observation(today, Metal.GOLD, 0, 4600.0)])

        assert store.observations_on(today)[0].price == 4500.0

    def test_empty_batch(self, store):
        assert store.store_observations([]) == 0

    def test_latest_not_overwritten_by_older_date(self, store, today_rows, prior_rows):
        store.store_observations(today_rows)
        store.store_observations(prior_rows)

        latest = {(o.metal, o.tenor_months): o for o in store.latest_observations()}

        assert latest[(Metal.GOLD, 0)].as_of_date == date(2025, 10, 17)
        assert latest[(Metal.GOLD, 0)].price == GOLD_TODAY[0]

    def test_latest_follows_newer_date(self, store, today_rows, prior_rows):
        store.store_observations(prior_rows)
        store.store_observations(today_rows)

        latest = {(o.metal, o.tenor_months): o for o in store.latest_observations()}

        assert latest[(Metal.SILVER, 12)].price == 54.10
        assert len(latest) == len(today_rows)

    def test_round_trips_macro_fields(self, store, today):
        store.store_observations(rows_for(Metal.GOLD, today, {0: 4500.0}, deficit=False))
        store.store_observations(
            [Observation(today, Metal.SILVER, 0, 52.1, real_10y_yield=None, dollar_index=None)]
        )

        gold, silver = store.observations_on(today)

        assert gold.real_10y_yield == 1.85
        assert gold.dollar_index == 99.4
        assert gold.deficit_flag is False
        assert silver.real_10y_yield is None
        assert silver.deficit_flag is None

    def test_stored_at_is_recorded(self, store, today_rows):
        store.store_observations(today_rows, stored_at=datetime(2025, 10, 17, 18, 30))

        status = store.get_status()

        assert status["curve_history"]["last_inserted_at"] == "2025-10-17T18:30:00"


class TestDateQueries:

    def test_empty_store(self, store, today):
        assert store.latest_date() is None
        assert store.prior_date(today) is None
        assert store.observations_on(today) == []

    def test_latest_and_prior(self, store, today, prior, today_rows, prior_rows):
        store.store_observations(today_rows + prior_rows)

        assert store.latest_date() == today
        assert store.prior_date(today) == prior
        assert store.prior_date(prior) is None

    def test_prior_date_is_shared_across_metals(self, store):
        d1, d2, d3 = date(2025, 10, 14), date(2025, 10, 15), date(2025, 10, 16)
        store.store_observations(
            rows_for(Metal.GOLD, d1, {0: 4400.0})
            + rows_for(Metal.SILVER, d2, {0: 51.0})
            + rows_for(Metal.GOLD, d3, {0: 4500.0})
            + rows_for(Metal.SILVER, d3, {0: 52.0})
        )

        # Gold has no d2 row, but the prior date is still d2
        assert store.prior_date(d3) == d2
        assert store.observations_on(d2)[0].metal is Metal.SILVER

    def test_observations_on_is_ordered(self, store, today, today_rows):
        store.store_observations(list(reversed(today_rows)))

        rows = store.observations_on(today)

        assert [(o.metal, o.tenor_months) for o in rows] == sorted(
            (o.metal, o.tenor_months) for o in today_rows
        )

    def test_range_with_tenor_filter(self, store):
        start = date(2025, 9, 1)
        store.store_observations(front_rows(Metal.GOLD, start, [25.0] * 10))
        store.store_observations(rows_for(Metal.GOLD, start, {12: 4600.0}))

        rows = store.observations_in_range(
            Metal.GOLD, start + timedelta(days=2), start + timedelta(days=4), tenors=(0,)
        )

        assert [o.as_of_date for o in rows] == [start + timedelta(days=i) for i in (2, 3, 4)]
        assert all(o.tenor_months == 0 for o in rows)

    def test_range_with_empty_tenor_filter(self, store, today, today_rows):
        store.store_observations(today_rows)

        assert store.observations_in_range(Metal.GOLD, today, today, tenors=()) == []

    def test_recent_dates_newest_first(self, store):
        start = date(2025, 9, 1)
        store.store_observations(front_rows(Metal.GOLD, start, [1.0] * 5))

        assert store.recent_dates(Metal.GOLD, 2) == [
            start + timedelta(days=4),
            start + timedelta(days=3),
        ]
        assert store.recent_dates(Metal.SILVER, 2) == []


class TestHistoryFrame:

    def test_pivot_by_tenor(self, store):
        start = date(2025, 9, 1)
        store.store_observations(front_rows(Metal.GOLD, start, [10.0, 20.0, 30.0]))

        frame = store.get_history_frame(Metal.GOLD)

        assert frame.index.name == "date"
        assert list(frame.columns) == [0, 1]
        assert len(frame) == 3
        assert frame[1].iloc[-1] == 4530.0

    def test_date_and_tenor_filters(self, store):
        start = date(2025, 9, 1)
        store.store_observations(front_rows(Metal.GOLD, start, [10.0, 20.0, 30.0]))

        frame = store.get_history_frame(
            "gold", start_date=start + timedelta(days=1), tenors=(1,)
        )

        assert list(frame.columns) == [1]
        assert list(frame[1]) == [4520.0, 4530.0]

    def test_empty(self, store):
        assert store.get_history_frame(Metal.SILVER).empty


class TestStatus:

    def test_counts(self, store, today_rows, prior_rows):
        store.store_observations(today_rows + prior_rows)

        status = store.get_status()

        assert status["curve_history"]["rows"] == len(today_rows) + len(prior_rows)
        assert status["curve_history"]["days"] == 2
        assert status["curve_history"]["first_day"] == "2025-10-16"
        assert status["curve_latest"]["rows"] == len(today_rows)
        assert status["history_counts_recent"][0] == {
            "as_of_date": "2025-10-17",
            "metal": "GOLD",
            "rows": 7,
        }

    def test_reopen_keeps_data(self, settings, today_rows):
        ObservationStore(settings.db_path).store_observations(today_rows)

        assert ObservationStore(settings.db_path).latest_date() == date(2025, 10, 17)
