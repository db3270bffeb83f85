"""Tests for the asset catalog store."""

from __future__ import annotations

from datetime import datetime

import pytest
from assettracker.db.asset_store import (
    delete_asset,
    find_asset,
    get_asset,
    list_assets,
    refresh_price,
    require_asset,
    search_assets,
    update_asset_details,
    upsert_asset,
)
from assettracker.db.ledger_store import record_transaction
from assettracker.errors import ConstraintViolation, NotFoundError, ValidationError


class TestUpsertAsset:
    """Tests for creating catalog entries."""

    def test_creates_asset_with_pending_price(self, db):
        assert upsert_asset(db, "aapl", "Apple Inc.", "stocks", "alphavantage", "AAPL")
        asset = get_asset(db, "AAPL")
        assert asset["symbol"] == "AAPL"
        assert asset["category"] == "stocks"
        assert asset["api_source"] == "alphavantage"
        assert asset["current_price"] is None
        assert asset["price_updated_at"] is None

    def test_duplicate_symbol_is_noop(self, db):
        assert upsert_asset(db, "BTC", "Bitcoin", "crypto")
        refresh_price(db, "BTC", 43250.0)

        assert upsert_asset(db, "BTC", "Renamed", "stocks") is False
        asset = get_asset(db, "BTC")
        assert asset["name"] == "Bitcoin"
        assert asset["category"] == "crypto"
        assert asset["current_price"] == 43250.0
        assert len(list_assets(db)) == 1

    def test_invalid_category_raises(self, db):
        with pytest.raises(ValidationError, match="category must be one of"):
            upsert_asset(db, "GLD", "Gold", "commodities")
        assert find_asset(db, "GLD") is None

    def test_empty_symbol_raises(self, db):
        with pytest.raises(ValidationError):
            upsert_asset(db, "  ", "Nothing", "stocks")

    def test_empty_name_raises(self, db):
        with pytest.raises(ValidationError, match="name"):
            upsert_asset(db, "X", "", "stocks")


class TestLookup:
    """Tests for finding assets."""

    def test_unknown_symbol_raises_not_found(self, db):
        with pytest.raises(NotFoundError, match="UNKNOWN"):
            get_asset(db, "UNKNOWN")

    def test_not_found_is_lookup_error(self, db):
        with pytest.raises(LookupError):
            require_asset(db, "NOPE")

    def test_find_asset_returns_none(self, db):
        assert find_asset(db, "NOPE") is None

    def test_lookup_is_case_insensitive(self, catalog):
        assert get_asset(catalog, "btc")["symbol"] == "BTC"
        assert require_asset(catalog, " eth ") == "ETH"


class TestRefreshPrice:
    """Tests for overwriting current prices."""

    def test_sets_price_and_timestamp(self, catalog):
        when = datetime(2024, 3, 1, 12, 30)
        asset = refresh_price(catalog, "AAPL", 175.5, when)
        assert asset["current_price"] == 175.5
        assert asset["price_updated_at"] == when

    def test_overwrites_previous_price(self, catalog):
        refresh_price(catalog, "AAPL", 170.0)
        refresh_price(catalog, "AAPL", 180.0)
        assert get_asset(catalog, "AAPL")["current_price"] == 180.0

    def test_defaults_timestamp_to_now(self, catalog):
        asset = refresh_price(catalog, "AAPL", 170.0)
        assert isinstance(asset["price_updated_at"], datetime)

    def test_non_positive_price_raises(self, catalog):
        with pytest.raises(ValidationError, match="price must be positive"):
            refresh_price(catalog, "AAPL", 0)
        assert get_asset(catalog, "AAPL")["current_price"] is None

    @pytest.mark.parametrize("price", [float("inf"), float("nan")])
    def test_non_finite_price_raises(self, catalog, price):
        with pytest.raises(ValidationError, match="price must be finite"):
            refresh_price(catalog, "BTC", price)
        assert get_asset(catalog, "BTC")["current_price"] is None

    def test_unknown_symbol_raises(self, catalog):
        with pytest.raises(NotFoundError):
            refresh_price(catalog, "UNKNOWN", 10.0)


class TestUpdateDetails:
    """Tests for editing descriptive fields."""

    def test_updates_name_and_exchange(self, catalog):
        asset = update_asset_details(catalog, "SPY", name="S&P 500 ETF", exchange="NYSE")
        assert asset["name"] == "S&P 500 ETF"
        assert asset["exchange"] == "NYSE"
        assert asset["category"] == "etfs"

    def test_no_fields_is_noop(self, catalog):
        before = get_asset(catalog, "SPY")
        assert update_asset_details(catalog, "SPY") == before

    def test_blank_name_raises(self, catalog):
        with pytest.raises(ValidationError):
            update_asset_details(catalog, "SPY", name=" ")


class TestListAndSearch:
    """Tests for catalog listing and search."""

    def test_list_ordered_by_symbol(self, catalog):
        assert [a["symbol"] for a in list_assets(catalog)] == ["AAPL", "BTC", "ETH", "SPY"]

    def test_list_by_category(self, catalog):
        assert [a["symbol"] for a in list_assets(catalog, "crypto")] == ["BTC", "ETH"]

    def test_list_invalid_category_raises(self, catalog):
        with pytest.raises(ValidationError):
            list_assets(catalog, "bonds")

    def test_search_by_name(self, catalog):
        assert [a["symbol"] for a in search_assets(catalog, "bitc")] == ["BTC"]

    def test_exact_symbol_sorts_first(self, db):
        upsert_asset(db, "ETHE", "Grayscale Ethereum Trust", "etfs")
        upsert_asset(db, "ETH", "Ethereum", "crypto")
        results = search_assets(db, "eth")
        assert results[0]["symbol"] == "ETH"
        assert {a["symbol"] for a in results} == {"ETH", "ETHE"}

    def test_short_query_returns_nothing(self, catalog):
        assert search_assets(catalog, "a") == []
        assert search_assets(catalog, "") == []

    def test_limit(self, catalog):
        assert len(search_assets(catalog, "in", limit=1)) == 1


class TestDeleteAsset:
    """Tests for removing catalog entries."""

    def test_delete_unreferenced(self, catalog):
        delete_asset(catalog, "SPY")
        assert find_asset(catalog, "SPY") is None

    def test_delete_referenced_raises(self, catalog):
        record_transaction(catalog, "buy", "AAPL", "Etoro", 1, 100.0, "2024-01-02")
        with pytest.raises(ConstraintViolation, match="transactions"):
            delete_asset(catalog, "AAPL")
        assert find_asset(catalog, "AAPL") is not None

    def test_delete_unknown_raises(self, db):
        with pytest.raises(NotFoundError):
            delete_asset(db, "NOPE")
