"""Tests for the daily snapshot recorder."""

from __future__ import annotations

from datetime import date

import pytest
from assettracker.db.asset_store import refresh_price
from assettracker.db.config_store import get_config
from assettracker.db.ledger_store import record_transaction
from assettracker.db.portfolio_store import get_snapshots
from assettracker.portfolio.holdings import recompute_holdings
from assettracker.portfolio.snapshots import LAST_SNAPSHOT_KEY, record_daily_snapshot


@pytest.fixture
def priced(catalog):
    record_transaction(catalog, "buy", "AAPL", "Etoro", 10, 100.0, "2024-01-15", fees=1.0)
    record_transaction(catalog, "buy", "SPY", "Etoro", 2, 440.0, "2024-01-15")
    refresh_price(catalog, "AAPL", 150.0)
    recompute_holdings(catalog, "AAPL")
    recompute_holdings(catalog, "SPY")
    return catalog


class TestRecordDailySnapshot:
    """Tests for once-per-day snapshots."""

    def test_snapshots_priced_holdings(self, priced):
        assert record_daily_snapshot(priced, "2024-03-01") == 1
        rows = get_snapshots(priced)
        assert len(rows) == 1
        row = rows[0]
        assert row["asset_symbol"] == "AAPL"
        assert row["snapshot_date"] == date(2024, 3, 1)
        assert row["quantity"] == 10
        assert row["price_per_unit"] == pytest.approx(150.0)
        assert row["total_value"] == pytest.approx(1500.0)
        assert row["unrealized_pnl"] == pytest.approx(499.0)

    def test_second_run_same_day_is_noop(self, priced):
        record_daily_snapshot(priced, "2024-03-01")
        refresh_price(priced, "AAPL", 200.0)
        recompute_holdings(priced, "AAPL")

        assert record_daily_snapshot(priced, "2024-03-01") == 0
        rows = get_snapshots(priced, "AAPL")
        assert len(rows) == 1
        assert rows[0]["total_value"] == pytest.approx(1500.0)

    def test_next_day_is_recorded(self, priced):
        record_daily_snapshot(priced, "2024-03-01")
        assert record_daily_snapshot(priced, "2024-03-02") == 1
        assert len(get_snapshots(priced, "AAPL")) == 2

    def test_updates_last_snapshot_date(self, priced):
        record_daily_snapshot(priced, date(2024, 3, 1))
        assert get_config(priced, LAST_SNAPSHOT_KEY) == "2024-03-01"

    def test_backfill_keeps_latest_snapshot_date(self, priced):
        record_daily_snapshot(priced, "2024-03-02")
        assert record_daily_snapshot(priced, "2024-03-01") == 1
        assert get_config(priced, LAST_SNAPSHOT_KEY) == "2024-03-02"

    def test_defaults_to_today(self, priced):
        assert record_daily_snapshot(priced) == 1
        assert get_snapshots(priced)[0]["snapshot_date"] == date.fromisoformat(
            get_config(priced, LAST_SNAPSHOT_KEY)
        )

    def test_no_holdings(self, catalog):
        assert record_daily_snapshot(catalog, "2024-03-01") == 0
        assert get_snapshots(catalog) == []
