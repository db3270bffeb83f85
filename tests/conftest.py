"""Shared pytest fixtures for AssetTracker tests."""

from __future__ import annotations

import pytest
from assettracker.db.asset_store import upsert_asset
from assettracker.db.connection import init_memory_db


@pytest.fixture
def db():
    """Provide an empty in-memory database with the full schema."""
    conn = init_memory_db()
    yield conn
    conn.close()


@pytest.fixture
def catalog(db):
    """Provide a database with a small asset catalog (prices pending)."""
    upsert_asset(db, "AAPL", "Apple Inc.", "stocks", "alphavantage", "AAPL")
    upsert_asset(db, "BTC", "Bitcoin", "crypto", "coingecko", "bitcoin")
    upsert_asset(db, "ETH", "Ethereum", "crypto", "coingecko", "ethereum")
    upsert_asset(db, "SPY", "SPDR S&P 500 ETF Trust", "etfs", "alphavantage", "SPY")
    return db
