"""Tests for seed data and corrective fixups."""

from __future__ import annotations

from assettracker.db.asset_store import get_asset, list_assets, refresh_price
from assettracker.db.config_store import get_config, verify_password
from assettracker.db.ledger_store import get_transaction, record_transaction
from assettracker.db.seed import (
    APP_VERSION,
    DEFAULT_ASSETS,
    DEFAULT_WATCHLIST,
    backfill_transaction_enrichment,
    clear_seed_prices,
    seed_all,
    seed_summary,
)
from assettracker.db.watchlist_store import get_watchlist


class TestSeedAll:
    """Tests for first-run seeding."""

    def test_seeds_every_table(self, db):
        counts = seed_all(db)
        assert counts == {
            "config": 6,
            "assets": len(DEFAULT_ASSETS),
            "watchlist": len(DEFAULT_WATCHLIST),
        }
        assert seed_summary(db) == counts

    def test_replay_is_noop(self, db):
        seed_all(db)
        assert seed_all(db) == {"config": 0, "assets": 0, "watchlist": 0}
        assert len(get_watchlist(db)) == len(DEFAULT_WATCHLIST)

    def test_seeded_prices_are_pending(self, db):
        seed_all(db)
        assert all(a["current_price"] is None for a in list_assets(db))

    def test_default_config(self, db):
        seed_all(db)
        assert get_config(db, "app_version") == APP_VERSION
        assert get_config(db, "last_snapshot_date") == ""
        assert verify_password(db, "asset123")

    def test_keeps_changed_password(self, db):
        seed_all(db)
        db.execute("UPDATE config SET value = 'changed' WHERE key = 'app_password'")
        seed_all(db)
        assert verify_password(db, "changed")

    def test_watchlist_active_flags(self, db):
        seed_all(db)
        active = {i["asset_symbol"] for i in get_watchlist(db, active_only=True)}
        assert active == {"AAPL", "BTC", "TSLA", "ETH"}


class TestClearSeedPrices:
    """Tests for resetting hardcoded seed prices."""

    def test_clears_only_untouched_prices(self, db):
        seed_all(db)
        refresh_price(db, "AAPL", 175.85)
        refresh_price(db, "BTC", 61000.0)

        cleared = clear_seed_prices(db)
        assert cleared == ["AAPL"]
        assert get_asset(db, "AAPL")["current_price"] is None
        assert get_asset(db, "BTC")["current_price"] == 61000.0

    def test_replay_is_noop(self, db):
        seed_all(db)
        refresh_price(db, "AAPL", 175.85)
        clear_seed_prices(db)
        assert clear_seed_prices(db) == []


class TestBackfillEnrichment:
    """Tests for filling purchase details on old ledger rows."""

    def test_fills_missing_details(self, catalog):
        tx_id = record_transaction(catalog, "buy", "AAPL", "Etoro", 1, 100.0, "2024-01-02")
        assert backfill_transaction_enrichment(catalog) == 1

        row = get_transaction(catalog, tx_id)
        assert row["purchase_location"] == "Etoro"
        assert row["purchase_time"] == "00:00:00"
        assert row["purchase_method"] == "online"
        assert backfill_transaction_enrichment(catalog) == 0

    def test_keeps_existing_details(self, catalog):
        tx_id = record_transaction(
            catalog,
            "buy",
            "AAPL",
            "Etoro",
            1,
            100.0,
            "2024-01-02",
            purchase_location="Branch office",
            purchase_method="app",
        )
        assert backfill_transaction_enrichment(catalog) == 0
        assert get_transaction(catalog, tx_id)["purchase_method"] == "app"
