"""Tests for holdings aggregation from the ledger."""

from __future__ import annotations

import logging

import pytest
from assettracker.db.asset_store import refresh_price
from assettracker.db.ledger_store import record_transaction
from assettracker.db.portfolio_store import get_holding, get_holdings
from assettracker.errors import NotFoundError
from assettracker.portfolio.holdings import (
    Holding,
    compute_holding,
    recompute_all_holdings,
    recompute_holdings,
)


def _record(conn, tx_type, symbol, quantity, price, date, fees=0.0):
    return record_transaction(conn, tx_type, symbol, "Etoro", quantity, price, date, fees=fees)


class TestComputeHolding:
    """Tests for the pure holding computation."""

    def test_empty_ledger(self):
        holding = compute_holding("AAPL", [], 150.0)
        assert holding.quantity == 0
        assert holding.current_value == 0.0
        assert not holding.is_open

    def test_pending_price(self):
        txns = [{"type": "buy", "quantity": 2, "price_per_unit": 10.0, "fees": 0.0}]
        holding = compute_holding("AAPL", txns, None)
        assert holding.quantity == 2
        assert holding.current_value is None
        assert holding.unrealized_pnl is None


class TestRecomputeHoldings:
    """Tests for rebuilding the holdings cache."""

    def test_buy_with_fee(self, catalog):
        _record(catalog, "buy", "AAPL", 10, 100.0, "2024-01-15", fees=1.0)
        refresh_price(catalog, "AAPL", 150.0)
        holding = recompute_holdings(catalog, "AAPL")

        assert holding.quantity == 10
        assert holding.total_invested == pytest.approx(1001.0)
        assert holding.avg_purchase_price == pytest.approx(100.1)
        assert holding.current_value == pytest.approx(1500.0)
        assert holding.unrealized_pnl == pytest.approx(499.0)

        stored = get_holding(catalog, "AAPL")
        assert stored["total_invested"] == pytest.approx(1001.0)
        assert stored["unrealized_pnl"] == pytest.approx(499.0)

    def test_no_transactions(self, catalog):
        holding = recompute_holdings(catalog, "SPY")
        assert holding.quantity == 0
        assert get_holding(catalog, "SPY") is None

    def test_idempotent(self, catalog):
        _record(catalog, "buy", "BTC", 0.5, 40000.0, "2024-01-10", fees=5.0)
        _record(catalog, "sell", "BTC", 0.2, 45000.0, "2024-02-10")
        refresh_price(catalog, "BTC", 50000.0)

        first = recompute_holdings(catalog, "BTC")
        stored_first = get_holding(catalog, "BTC")
        second = recompute_holdings(catalog, "BTC")
        stored_second = get_holding(catalog, "BTC")

        assert first == second
        stored_first.pop("last_updated")
        stored_second.pop("last_updated")
        assert stored_first == stored_second

    def test_replays_in_date_order(self, catalog):
        # Recorded out of order: the sell is dated after the second buy
        _record(catalog, "buy", "ETH", 2, 1000.0, "2024-01-01")
        _record(catalog, "sell", "ETH", 1, 3000.0, "2024-03-01")
        _record(catalog, "buy", "ETH", 2, 2500.0, "2024-02-01")
        holding = recompute_holdings(catalog, "ETH")
        assert holding.quantity == pytest.approx(3)
        assert holding.avg_purchase_price == pytest.approx(1750.0)

    def test_closed_position_removes_row(self, catalog):
        _record(catalog, "buy", "AAPL", 5, 100.0, "2024-01-01")
        recompute_holdings(catalog, "AAPL")
        _record(catalog, "sell", "AAPL", 5, 120.0, "2024-01-02")

        holding = recompute_holdings(catalog, "AAPL")
        assert holding.quantity == 0
        assert holding.realized_pnl == pytest.approx(100.0)
        assert get_holding(catalog, "AAPL") is None

    def test_oversell_logs_warning(self, catalog, caplog):
        _record(catalog, "buy", "AAPL", 1, 100.0, "2024-01-01")
        _record(catalog, "sell", "AAPL", 3, 100.0, "2024-01-02")
        with caplog.at_level(logging.WARNING):
            holding = recompute_holdings(catalog, "AAPL")
        assert holding.quantity == 0
        assert "clamped" in caplog.text

    def test_pending_price_stored_as_null(self, catalog):
        _record(catalog, "buy", "SPY", 3, 440.0, "2024-01-01")
        recompute_holdings(catalog, "SPY")
        stored = get_holding(catalog, "SPY")
        assert stored["quantity"] == 3
        assert stored["current_value"] is None
        assert stored["unrealized_pnl"] is None

    def test_unknown_symbol_raises(self, catalog):
        with pytest.raises(NotFoundError):
            recompute_holdings(catalog, "UNKNOWN")

    def test_returns_holding(self, catalog):
        assert isinstance(recompute_holdings(catalog, "AAPL"), Holding)


class TestRecomputeAll:
    """Tests for rebuilding every holding."""

    def test_covers_ledger_symbols(self, catalog):
        _record(catalog, "buy", "AAPL", 1, 100.0, "2024-01-01")
        _record(catalog, "buy", "BTC", 1, 40000.0, "2024-01-01")
        holdings = recompute_all_holdings(catalog)
        assert [h.asset_symbol for h in holdings] == ["AAPL", "BTC"]
        assert len(get_holdings(catalog)) == 2
