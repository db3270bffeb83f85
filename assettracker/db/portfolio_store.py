"""Portfolio data store: DuckDB CRUD for holdings and daily snapshots.

Holdings are a materialized cache of the ledger; the only writer is
:mod:`assettracker.portfolio.holdings`. Snapshots are insert-if-absent
history and are never updated once written.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Any

from assettracker.db.connection import fetch_dict, fetch_dicts, utcnow
from assettracker.db.validation import normalize_symbol, parse_date

if TYPE_CHECKING:
    import duckdb

logger = logging.getLogger(__name__)


def upsert_holding(  # noqa: PLR0913
    conn: duckdb.DuckDBPyConnection,
    symbol: str,
    quantity: float,
    avg_purchase_price: float,
    total_invested: float,
    current_value: float | None,
    unrealized_pnl: float | None,
) -> None:
    """Insert or replace the single holding row for an asset.

    Args:
        conn: Active DuckDB connection.
        symbol: Asset symbol (the holding's identity).
        quantity: Net position.
        avg_purchase_price: Weighted-average cost per unit.
        total_invested: Cost basis of the open position.
        current_value: quantity * current price, None while price is pending.
        unrealized_pnl: current_value - total_invested, None while pending.

    """
    conn.execute(
        """
        INSERT INTO holdings
            (asset_symbol, quantity, avg_purchase_price, total_invested,
             current_value, unrealized_pnl, last_updated)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT (asset_symbol) DO UPDATE SET
            quantity = excluded.quantity,
            avg_purchase_price = excluded.avg_purchase_price,
            total_invested = excluded.total_invested,
            current_value = excluded.current_value,
            unrealized_pnl = excluded.unrealized_pnl,
            last_updated = excluded.last_updated
        """,
        [
            normalize_symbol(symbol),
            quantity,
            avg_purchase_price,
            total_invested,
            current_value,
            unrealized_pnl,
            utcnow(),
        ],
    )


def delete_holding(conn: duckdb.DuckDBPyConnection, symbol: str) -> bool:
    """Remove the holding row for a closed position.

    Returns:
        True if a row was removed.

    """
    normalized = normalize_symbol(symbol)
    existed = conn.execute(
        "SELECT 1 FROM holdings WHERE asset_symbol = ?", [normalized]
    ).fetchone()
    if existed is None:
        return False
    conn.execute("DELETE FROM holdings WHERE asset_symbol = ?", [normalized])
    logger.info("Closed holding for %s", normalized)
    return True


def get_holding(
    conn: duckdb.DuckDBPyConnection,
    symbol: str,
) -> dict[str, Any] | None:
    """Get the stored holding for one asset, or None."""
    return fetch_dict(
        conn,
        "SELECT * FROM holdings WHERE asset_symbol = ?",
        [normalize_symbol(symbol)],
    )


def get_holdings(conn: duckdb.DuckDBPyConnection) -> list[dict[str, Any]]:
    """Get all stored holdings with asset name, category and current price.

    Returns:
        List of holding dicts ordered by symbol.

    """
    return fetch_dicts(
        conn,
        """
        SELECT h.*, a.name, a.category, a.current_price
        FROM holdings h
        JOIN assets a ON h.asset_symbol = a.symbol
        ORDER BY h.asset_symbol
        """,
    )


def insert_snapshot_if_absent(  # noqa: PLR0913
    conn: duckdb.DuckDBPyConnection,
    symbol: str,
    snapshot_date: date | str,
    quantity: float,
    price_per_unit: float,
    total_value: float,
    unrealized_pnl: float,
) -> bool:
    """Write one daily snapshot unless (symbol, date) is already recorded.

    Returns:
        True if a row was inserted, False if the day was already recorded.

    """
    normalized = normalize_symbol(symbol)
    day = parse_date(snapshot_date)
    exists = conn.execute(
        "SELECT 1 FROM daily_snapshots WHERE asset_symbol = ? AND snapshot_date = ?",
        [normalized, day],
    ).fetchone()
    if exists:
        return False

    conn.execute(
        """
        INSERT INTO daily_snapshots
            (asset_symbol, snapshot_date, quantity, price_per_unit,
             total_value, unrealized_pnl)
        VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT (asset_symbol, snapshot_date) DO NOTHING
        """,
        [normalized, day, quantity, price_per_unit, total_value, unrealized_pnl],
    )
    return True


def get_snapshots(
    conn: duckdb.DuckDBPyConnection,
    symbol: str | None = None,
    start_date: date | str | None = None,
    end_date: date | str | None = None,
) -> list[dict[str, Any]]:
    """Query daily snapshots.

    Args:
        conn: Active DuckDB connection.
        symbol: Optional asset filter.
        start_date: Optional inclusive start date (YYYY-MM-DD).
        end_date: Optional inclusive end date (YYYY-MM-DD).

    Returns:
        List of snapshot dicts ordered by date, then symbol.

    """
    query = "SELECT * FROM daily_snapshots WHERE 1=1"
    params: list[Any] = []

    if symbol:
        query += " AND asset_symbol = ?"
        params.append(normalize_symbol(symbol))
    if start_date:
        query += " AND snapshot_date >= ?"
        params.append(parse_date(start_date))
    if end_date:
        query += " AND snapshot_date <= ?"
        params.append(parse_date(end_date))

    query += " ORDER BY snapshot_date ASC, asset_symbol ASC"
    return fetch_dicts(conn, query, params)


def get_portfolio_history(
    conn: duckdb.DuckDBPyConnection,
    start_date: date | str | None = None,
    end_date: date | str | None = None,
) -> list[dict[str, Any]]:
    """Daily portfolio totals summed across assets.

    Returns:
        List of dicts with snapshot_date, total_value, unrealized_pnl and
        asset_count, ordered by date ascending.

    """
    query = """
        SELECT snapshot_date,
               SUM(total_value) AS total_value,
               SUM(unrealized_pnl) AS unrealized_pnl,
               COUNT(*) AS asset_count
        FROM daily_snapshots
        WHERE 1=1
    """
    params: list[Any] = []
    if start_date:
        query += " AND snapshot_date >= ?"
        params.append(parse_date(start_date))
    if end_date:
        query += " AND snapshot_date <= ?"
        params.append(parse_date(end_date))

    query += " GROUP BY snapshot_date ORDER BY snapshot_date ASC"
    return fetch_dicts(conn, query, params)
