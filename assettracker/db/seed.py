"""Seed and corrective fixup data.

Every function here is idempotent: seeds insert only what is absent and
fixups only touch rows still in the state they correct. Seeded assets
carry no price; prices arrive from the first live fetch.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from assettracker.db.asset_store import upsert_asset
from assettracker.db.config_store import set_config_default
from assettracker.db.connection import utcnow
from assettracker.db.watchlist_store import add_to_watchlist

if TYPE_CHECKING:
    import duckdb

logger = logging.getLogger(__name__)

APP_VERSION = "2.0.0"
DEFAULT_APP_PASSWORD = "asset123"  # noqa: S105
DEFAULT_EXCHANGES = "Bitso,Binance,Etoro,Lbank,Metamask,Bybit,Dexscreener,Ledger"

# (symbol, name, category, subcategory, api_source, api_id)
DEFAULT_ASSETS: list[tuple[str, str, str, str, str, str]] = [
    ("BTC", "Bitcoin", "crypto", "major", "coingecko", "bitcoin"),
    ("ETH", "Ethereum", "crypto", "major", "coingecko", "ethereum"),
    ("USDT", "Tether", "crypto", "stablecoin", "coingecko", "tether"),
    ("BNB", "Binance Coin", "crypto", "exchange", "coingecko", "binancecoin"),
    ("ADA", "Cardano", "crypto", "altcoin", "coingecko", "cardano"),
    ("SOL", "Solana", "crypto", "altcoin", "coingecko", "solana"),
    ("AAPL", "Apple Inc.", "stocks", "technology", "alphavantage", "AAPL"),
    ("MSFT", "Microsoft Corporation", "stocks", "technology", "alphavantage", "MSFT"),
    ("GOOGL", "Alphabet Inc.", "stocks", "technology", "alphavantage", "GOOGL"),
    ("TSLA", "Tesla, Inc.", "stocks", "technology", "alphavantage", "TSLA"),
    ("NVDA", "NVIDIA Corporation", "stocks", "technology", "alphavantage", "NVDA"),
    ("SPY", "SPDR S&P 500 ETF Trust", "etfs", "index", "alphavantage", "SPY"),
    ("QQQ", "Invesco QQQ Trust", "etfs", "technology", "alphavantage", "QQQ"),
    ("VTI", "Vanguard Total Stock Market ETF", "etfs", "index", "alphavantage", "VTI"),
    ("USD", "US Dollar", "fiat", "currency", "manual", "USD"),
]

# (symbol, notes, target_price, alert_percent, active)
DEFAULT_WATCHLIST: list[tuple[str, str, float, float | None, bool]] = [
    ("AAPL", "Waiting for Q4 results before entering", 180.00, 5.0, True),
    ("BTC", "Following the uptrend", 115000.00, 3.0, True),
    ("SPY", "ETF for portfolio diversification", 450.00, None, False),
    ("TSLA", "Target reached, consider a partial sale", 240.00, 2.0, True),
    ("ETH", "Waiting for the network upgrade", 4000.00, 4.0, True),
]

# Hardcoded prices that early seeds wrote into the catalog
LEGACY_SEED_PRICES: dict[str, float] = {
    "AAPL": 175.85,
    "BTC": 43250.00,
    "SPY": 442.15,
    "TSLA": 248.50,
    "ETH": 2650.75,
}


def seed_config(conn: duckdb.DuckDBPyConnection) -> int:
    """Insert default settings that are not set yet.

    Returns:
        Number of settings created.

    """
    defaults = {
        "app_password": DEFAULT_APP_PASSWORD,
        "app_version": APP_VERSION,
        "deployment_date": utcnow().isoformat(timespec="seconds"),
        "last_snapshot_date": "",
        "app_initialized": "true",
        "exchanges": DEFAULT_EXCHANGES,
    }
    created = sum(set_config_default(conn, key, value) for key, value in defaults.items())
    logger.info("Seeded %d config entries", created)
    return created


def seed_assets(
    conn: duckdb.DuckDBPyConnection,
    assets: list[tuple[str, str, str, str, str, str]] | None = None,
) -> int:
    """Insert the default catalog (prices left pending).

    Returns:
        Number of assets created.

    """
    created = 0
    for symbol, name, category, subcategory, api_source, api_id in assets or DEFAULT_ASSETS:
        if upsert_asset(
            conn,
            symbol,
            name,
            category,
            api_source=api_source,
            api_id=api_id,
            subcategory=subcategory,
        ):
            created += 1
    logger.info("Seeded %d assets", created)
    return created


def seed_watchlist(conn: duckdb.DuckDBPyConnection) -> int:
    """Add the default watchlist items whose symbol is not watched yet.

    The watchlist does not enforce one row per symbol, so this checks
    first to stay idempotent.

    Returns:
        Number of items created.

    """
    created = 0
    for symbol, notes, target, percent, active in DEFAULT_WATCHLIST:
        watched = conn.execute(
            "SELECT 1 FROM watchlist WHERE asset_symbol = ?", [symbol]
        ).fetchone()
        if watched:
            continue
        add_to_watchlist(
            conn,
            symbol,
            target_price=target,
            alert_percent=percent,
            active=active,
            notes=notes,
        )
        created += 1
    logger.info("Seeded %d watchlist items", created)
    return created


def seed_all(conn: duckdb.DuckDBPyConnection) -> dict[str, int]:
    """Apply config, catalog and watchlist seeds in dependency order."""
    return {
        "config": seed_config(conn),
        "assets": seed_assets(conn),
        "watchlist": seed_watchlist(conn),
    }


def clear_seed_prices(
    conn: duckdb.DuckDBPyConnection,
    prices: dict[str, float] | None = None,
) -> list[str]:
    """Reset hardcoded seed prices to pending.

    Only assets whose price still equals the seeded value are touched,
    so live prices fetched since are kept.

    Args:
        conn: Active DuckDB connection.
        prices: Symbol to seeded price. Defaults to LEGACY_SEED_PRICES.

    Returns:
        Symbols whose price was cleared.

    """
    cleared: list[str] = []
    for symbol, seeded in (prices or LEGACY_SEED_PRICES).items():
        row = conn.execute(
            "SELECT current_price FROM assets WHERE symbol = ?", [symbol]
        ).fetchone()
        if row is None or row[0] is None or abs(row[0] - seeded) > 1e-9:
            continue
        conn.execute(
            """
            UPDATE assets
            SET current_price = NULL, price_updated_at = NULL, updated_at = ?
            WHERE symbol = ?
            """,
            [utcnow(), symbol],
        )
        cleared.append(symbol)

    logger.info("Cleared seeded prices for %s", ", ".join(cleared) or "no assets")
    return cleared


def backfill_transaction_enrichment(conn: duckdb.DuckDBPyConnection) -> int:
    """Fill purchase details on ledger rows recorded before they existed.

    Location defaults to the exchange, time to midnight, method to
    "online" and currency to USD.

    Returns:
        Number of rows updated.

    """
    row = conn.execute(
        "SELECT COUNT(*) FROM transactions WHERE purchase_location IS NULL"
    ).fetchone()
    pending: int = int(row[0]) if row else 0
    if not pending:
        return 0

    conn.execute(
        """
        UPDATE transactions
        SET purchase_location = COALESCE(exchange, 'Unspecified'),
            purchase_time = COALESCE(purchase_time, '00:00:00'),
            purchase_method = COALESCE(purchase_method, 'online'),
            currency = COALESCE(currency, 'USD'),
            updated_at = ?
        WHERE purchase_location IS NULL
        """,
        [utcnow()],
    )
    logger.info("Backfilled purchase details on %d transactions", pending)
    return pending


def seed_summary(conn: duckdb.DuckDBPyConnection) -> dict[str, Any]:
    """Row counts per seeded table, for the sidecar's status call."""
    counts: dict[str, Any] = {}
    for table in ("config", "assets", "watchlist"):
        row = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()  # noqa: S608
        counts[table] = int(row[0]) if row else 0
    return counts
