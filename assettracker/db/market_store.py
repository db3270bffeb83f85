"""Market data store: the price history cache.

Observations are deduplicated on (asset_symbol, timestamp, source):
replaying the same poll is a silent no-op, so upstream fetchers can
retry freely. Rows are never updated.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

import pandas as pd

from assettracker.db.asset_store import require_asset
from assettracker.db.connection import fetch_dict, fetch_dicts
from assettracker.db.validation import normalize_symbol, parse_timestamp, require_positive
from assettracker.errors import ValidationError

if TYPE_CHECKING:
    import duckdb

logger = logging.getLogger(__name__)


def record_price_observation(
    conn: duckdb.DuckDBPyConnection,
    symbol: str,
    price: float,
    timestamp: datetime | date | str,
    source: str,
) -> bool:
    """Insert a price observation unless the same source already reported it.

    Args:
        conn: Active DuckDB connection.
        symbol: Asset symbol; must be in the catalog.
        price: Observed price (positive).
        timestamp: Observation instant.
        source: Data source identifier (e.g. "coingecko").

    Returns:
        True if stored, False if (symbol, timestamp, source) already existed.

    Raises:
        ValidationError: If price is not positive or source is empty.
        NotFoundError: If the symbol is not in the catalog.

    """
    price = require_positive("price", price)
    if not source or not source.strip():
        msg = "source must be a non-empty string"
        raise ValidationError(msg)
    source = source.strip()
    when = parse_timestamp(timestamp)
    normalized = require_asset(conn, symbol)

    exists = conn.execute(
        """
        SELECT 1 FROM price_history
        WHERE asset_symbol = ? AND "timestamp" = ? AND source = ?
        """,
        [normalized, when, source],
    ).fetchone()
    if exists:
        logger.debug("Duplicate %s price for %s at %s dropped", source, normalized, when)
        return False

    conn.execute(
        """
        INSERT INTO price_history (asset_symbol, price, "timestamp", source)
        VALUES (?, ?, ?, ?)
        ON CONFLICT (asset_symbol, "timestamp", source) DO NOTHING
        """,
        [normalized, price, when, source],
    )
    return True


def record_price_observations(
    conn: duckdb.DuckDBPyConnection,
    records: list[dict[str, Any]],
    source: str,
) -> int:
    """Store a batch of observations from one source.

    Args:
        conn: Active DuckDB connection.
        records: List of dicts with keys: symbol, price, timestamp.
        source: Data source identifier.

    Returns:
        Number of new rows stored (duplicates are not counted).

    """
    count = 0
    for rec in records:
        if record_price_observation(
            conn, rec["symbol"], rec["price"], rec["timestamp"], source
        ):
            count += 1

    logger.info("Stored %d of %d %s price observations", count, len(records), source)
    return count


def _history_query(
    symbol: str,
    start: datetime | date | str | None,
    end: datetime | date | str | None,
    source: str | None,
) -> tuple[str, list[Any]]:
    query = 'SELECT * FROM price_history WHERE asset_symbol = ?'
    params: list[Any] = [normalize_symbol(symbol)]

    if start:
        query += ' AND "timestamp" >= ?'
        params.append(parse_timestamp(start))
    if end:
        query += ' AND "timestamp" <= ?'
        params.append(parse_timestamp(end))
    if source:
        query += " AND source = ?"
        params.append(source)

    query += ' ORDER BY "timestamp" ASC, source ASC'
    return query, params


def query_price_history(
    conn: duckdb.DuckDBPyConnection,
    symbol: str,
    start: datetime | date | str | None = None,
    end: datetime | date | str | None = None,
    source: str | None = None,
) -> list[dict[str, Any]]:
    """Query price history for a symbol.

    Args:
        conn: Active DuckDB connection.
        symbol: Asset symbol.
        start: Optional inclusive lower bound on timestamp.
        end: Optional inclusive upper bound on timestamp.
        source: Optional source filter.

    Returns:
        List of observation dicts ordered by timestamp ascending.

    """
    query, params = _history_query(symbol, start, end, source)
    return fetch_dicts(conn, query, params)


def price_history_frame(
    conn: duckdb.DuckDBPyConnection,
    symbol: str,
    start: datetime | date | str | None = None,
    end: datetime | date | str | None = None,
    source: str | None = None,
) -> pd.DataFrame:
    """Price history as a DataFrame indexed by timestamp, for charting.

    Returns:
        DataFrame with columns price and source. Empty (with those
        columns) when there is no data.

    """
    query, params = _history_query(symbol, start, end, source)
    df = conn.execute(query, params).df()
    if df.empty:
        return pd.DataFrame(
            {"price": pd.Series(dtype="float64"), "source": pd.Series(dtype="object")},
            index=pd.DatetimeIndex([], name="timestamp"),
        )
    return df.set_index("timestamp")[["price", "source"]]


def get_latest_price(
    conn: duckdb.DuckDBPyConnection,
    symbol: str,
    source: str | None = None,
) -> dict[str, Any] | None:
    """Most recent observation for a symbol, or None if there is none."""
    query = "SELECT * FROM price_history WHERE asset_symbol = ?"
    params: list[Any] = [normalize_symbol(symbol)]
    if source:
        query += " AND source = ?"
        params.append(source)
    query += ' ORDER BY "timestamp" DESC, id DESC LIMIT 1'
    return fetch_dict(conn, query, params)
