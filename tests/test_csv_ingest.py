"""Tests for CSV parsing and ingestion."""

import dataclasses
from datetime import date

import httpx
import pytest

from metals_curve_dashboard.data.csv_ingest import (
    CsvIngestor,
    normalize_header,
    parse_csv,
    resolve_columns,
)
from metals_curve_dashboard.models.market_data import Metal


FEED = """As Of Date,Metal,Tenor Months,CME Contr Price,10 Yr Real Yld,Dollar Index,Deficit GDP Flag
2025-10-16,GOLD,0,4480.0,1.80,99.9,0
2025-10-16,GOLD,1,4490.0,1.80,99.9,0
2025-10-16,SILVER,0,51.80,1.80,99.9,0
2025-10-17,GOLD,0,4500.0,1.85,99.4,1
2025-10-17,GOLD,1,4512.0,1.85,99.4,1
2025-10-17,SILVER,0,52.10,1.85,99.4,1
"""


@pytest.fixture
def ingestor(settings, store):
    with CsvIngestor(settings, store) as ing:
        yield ing


class TestHeaders:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("As Of Date", "asofdate"),
            ("as_of_date", "asofdate"),
            ('"Tenor_Months"', "tenormonths"),
            (" CME Contr Price ", "cmecontrprice"),
        ],
    )
    def test_normalize_header(self, raw, expected):
        assert normalize_header(raw) == expected

    def test_resolve_aliases(self):
        headers = ["as_of_date", "metal", "tenor_months", "price", "Real Yield", "dollar_index"]

        columns = resolve_columns(headers)

        assert columns["price"] == "price"
        assert columns["real_10y_yield"] == "Real Yield"
        assert "deficit_flag" not in columns

    def test_missing_required_header(self):
        with pytest.raises(ValueError, match="price"):
            resolve_columns(["as_of_date", "metal", "tenor_months"])


class TestParseCsv:

    def test_parses_feed(self):
        result = parse_csv(FEED)

        assert len(result.observations) == 6
        assert result.rejected == []
        first = result.observations[0]
        assert first.as_of_date == date(2025, 10, 16)
        assert first.metal is Metal.GOLD
        assert first.price == 4480.0
        assert first.real_10y_yield == 1.80
        assert first.deficit_flag is False

    def test_rejects_bad_rows_with_line_numbers(self):
        text = (
            "as_of_date,metal,tenor_months,price\n"
            "2025-10-17,GOLD,0,4500\n"
            "2025-10-17,GOLD,abc,4512\n"
            "2025-10-17,PLATINUM,0,1000\n"
            "10/17/2025,GOLD,2,4524\n"
            "2025-10-17,GOLD,3,\n"
            "2025-10-17,GOLD,1.5,4520\n"
        )

        result = parse_csv(text)

        assert len(result.observations) == 1
        assert [line for line, _ in result.rejected] == [3, 4, 5, 6, 7]

    def test_optional_fields_may_be_blank(self):
        text = (
            "as_of_date,metal,tenor_months,price,dollar_index,deficit_gdp_flag\n"
            "2025-10-17,gold,1.0,4512,,\n"
        )

        (obs,) = parse_csv(text).observations

        assert obs.tenor_months == 1
        assert obs.dollar_index is None
        assert obs.deficit_flag is None
        assert obs.real_10y_yield is None

    @pytest.mark.parametrize(
        "flag,expected",
        [("1", True), ("true", True), ("Yes", True), ("0", False), ("N", False)],
    )
    def test_flag_values(self, flag, expected):
        text = f"as_of_date,metal,tenor_months,price,deficit_gdp_flag\n2025-10-17,GOLD,0,4500,{flag}\n"

        assert parse_csv(text).observations[0].deficit_flag is expected

    def test_unrecognized_flag_is_rejected(self):
        text = "as_of_date,metal,tenor_months,price,deficit_gdp_flag\n2025-10-17,GOLD,0,4500,maybe\n"

        result = parse_csv(text)

        assert result.observations == []
        assert "deficit_flag" in result.rejected[0][1]

    def test_timestamp_dates_keep_the_day(self):
        text = "as_of_date,metal,tenor_months,price\n2025-10-17T00:00:00Z,GOLD,0,4500\n"

        assert parse_csv(text).observations[0].as_of_date == date(2025, 10, 17)

    def test_short_row_is_rejected(self):
        text = "as_of_date,metal,tenor_months,price\n2025-10-17,GOLD,0\n"

        result = parse_csv(text)

        assert result.observations == []
        assert result.rejected[0][0] == 2

    def test_row_with_extra_fields_is_rejected(self):
        text = (
            "as_of_date,metal,tenor_months,price\n"
            "2025-10-17,GOLD,0,4500\n"
            "2025-10-17,GOLD,1,4512,stray\n"
            "2025-10-17,GOLD,2,4524\n"
            "2025-10-17,GOLD,x,4536\n"
        )

        result = parse_csv(text)

        assert [o.tenor_months for o in result.observations] == [0, 2]
        assert [line for line, _ in result.rejected] == [3, 5]
        assert "got 5" in result.rejected[0][1]

    def test_empty_text(self):
        with pytest.raises(ValueError):
            parse_csv("   \n")


class TestCsvIngestor:

    def test_ingest_text(self, ingestor, store):
        result = ingestor.ingest_text(FEED)

        assert result.parsed == 6
        assert result.stored == 6
        assert result.as_of_dates == [date(2025, 10, 16), date(2025, 10, 17)]
        assert store.latest_date() == date(2025, 10, 17)

    def test_reingest_stores_nothing_new(self, ingestor):
        ingestor.ingest_text(FEED)

        assert ingestor.ingest_text(FEED).stored == 0

    def test_all_rows_invalid(self, ingestor):
        text = "as_of_date,metal,tenor_months,price\n2025-10-17,GOLD,x,y\n"

        with pytest.raises(ValueError, match="All rows invalid"):
            ingestor.ingest_text(text)

    def test_ingest_file_with_bom(self, ingestor, tmp_path):
        path = tmp_path / "export.csv"
        path.write_text("\ufeff" + FEED, encoding="utf-8")

        assert ingestor.ingest_file(path).parsed == 6

    def test_fetch_requires_url(self, ingestor):
        with pytest.raises(ValueError, match="METALS_CSV_URL"):
            ingestor.fetch_csv()

    def test_ingest_url(self, settings, store):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, text=FEED)

        configured = dataclasses.replace(settings, csv_url="https://feed.example.com/metals.csv")
        with CsvIngestor(configured, store) as ing:
            ing._client = httpx.Client(transport=httpx.MockTransport(handler))
            result = ing.ingest_url()

        assert seen == ["https://feed.example.com/metals.csv"]
        assert result.stored == 6

    def test_http_error_propagates(self, settings, store):
        configured = dataclasses.replace(settings, csv_url="https://feed.example.com/metals.csv")
        with CsvIngestor(configured, store) as ing:
            ing._client = httpx.Client(
                transport=httpx.MockTransport(lambda request: httpx.Response(503))
            )
            with pytest.raises(httpx.HTTPStatusError):
                ing.ingest_url()

    def test_close_resets_client(self, ingestor):
        client = ingestor.client

        ingestor.close()

        assert client.is_closed
        assert ingestor._client is None
