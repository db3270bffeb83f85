"""Asset catalog store: the referential anchor for every other table.

Seeding is idempotent (insert if absent) and kept apart from price
refreshes, which always overwrite the stored price. A price of NULL
means the asset has not been fetched yet.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from assettracker.db.connection import fetch_dict, fetch_dicts, utcnow
from assettracker.db.validation import (
    normalize_symbol,
    parse_timestamp,
    require_positive,
    validate_category,
)
from assettracker.errors import ConstraintViolation, NotFoundError, ValidationError

if TYPE_CHECKING:
    import duckdb

logger = logging.getLogger(__name__)

# Tables holding an asset_symbol reference to the catalog
_REFERENCING_TABLES = (
    "transactions",
    "holdings",
    "daily_snapshots",
    "price_history",
    "watchlist",
)

_MIN_SEARCH_LENGTH = 2


def upsert_asset(  # noqa: PLR0913
    conn: duckdb.DuckDBPyConnection,
    symbol: str,
    name: str,
    category: str,
    api_source: str | None = None,
    api_id: str | None = None,
    subcategory: str | None = None,
    exchange: str | None = None,
) -> bool:
    """Create an asset if its symbol is not in the catalog yet.

    Existing rows are left untouched, so seeding can be replayed.

    Args:
        conn: Active DuckDB connection.
        symbol: Ticker symbol (normalized to upper case).
        name: Display name.
        category: One of "stocks", "etfs", "crypto", "fiat".
        api_source: Price provider key (e.g. "coingecko").
        api_id: Identifier of the asset at that provider.
        subcategory: Optional free-text grouping.
        exchange: Optional listing exchange.

    Returns:
        True if a row was created, False if the symbol already existed.

    Raises:
        ValidationError: If category or symbol is invalid.

    """
    symbol = normalize_symbol(symbol)
    validate_category(category)
    if not name or not name.strip():
        msg = "name must be a non-empty string"
        raise ValidationError(msg)

    if conn.execute("SELECT 1 FROM assets WHERE symbol = ?", [symbol]).fetchone():
        logger.debug("Asset %s already in catalog", symbol)
        return False

    conn.execute(
        """
        INSERT INTO assets
            (symbol, name, category, subcategory, exchange, api_source, api_id)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT (symbol) DO NOTHING
        """,
        [symbol, name.strip(), category, subcategory, exchange, api_source, api_id],
    )
    logger.info("Added asset %s (%s)", symbol, category)
    return True


def find_asset(
    conn: duckdb.DuckDBPyConnection,
    symbol: str,
) -> dict[str, Any] | None:
    """Look up an asset, returning None when the symbol is unknown."""
    return fetch_dict(
        conn,
        "SELECT * FROM assets WHERE symbol = ?",
        [normalize_symbol(symbol)],
    )


def get_asset(
    conn: duckdb.DuckDBPyConnection,
    symbol: str,
) -> dict[str, Any]:
    """Look up an asset.

    Raises:
        NotFoundError: If the symbol is not in the catalog.

    """
    asset = find_asset(conn, symbol)
    if asset is None:
        msg = f"Unknown asset symbol '{symbol}'"
        raise NotFoundError(msg)
    return asset


def require_asset(conn: duckdb.DuckDBPyConnection, symbol: str) -> str:
    """Return the normalized symbol, raising NotFoundError if it is unknown."""
    normalized = normalize_symbol(symbol)
    row = conn.execute(
        "SELECT 1 FROM assets WHERE symbol = ?", [normalized]
    ).fetchone()
    if row is None:
        msg = f"Unknown asset symbol '{symbol}'"
        raise NotFoundError(msg)
    return normalized


def refresh_price(
    conn: duckdb.DuckDBPyConnection,
    symbol: str,
    price: float,
    observed_at: datetime | str | None = None,
) -> dict[str, Any]:
    """Overwrite an asset's current price.

    Args:
        conn: Active DuckDB connection.
        symbol: Ticker symbol.
        price: Latest observed price (must be positive).
        observed_at: When the price was observed. Defaults to now (UTC).

    Returns:
        The updated asset row.

    Raises:
        NotFoundError: If the symbol is not in the catalog.
        ValidationError: If price is not positive.

    """
    price = require_positive("price", price)
    when = utcnow() if observed_at is None else parse_timestamp(observed_at)
    normalized = require_asset(conn, symbol)

    conn.execute(
        """
        UPDATE assets
        SET current_price = ?, price_updated_at = ?, updated_at = ?
        WHERE symbol = ?
        """,
        [price, when, utcnow(), normalized],
    )
    logger.info("Refreshed price for %s: %s", normalized, price)
    return get_asset(conn, normalized)


def update_asset_details(
    conn: duckdb.DuckDBPyConnection,
    symbol: str,
    name: str | None = None,
    subcategory: str | None = None,
    exchange: str | None = None,
) -> dict[str, Any]:
    """Update descriptive fields of an asset.

    Symbol and category are fixed once created; watchlist rows keep the
    name they copied at insertion time.

    Raises:
        NotFoundError: If the symbol is not in the catalog.

    """
    normalized = require_asset(conn, symbol)
    updates: dict[str, Any] = {}
    if name is not None:
        if not name.strip():
            msg = "name must be a non-empty string"
            raise ValidationError(msg)
        updates["name"] = name.strip()
    if subcategory is not None:
        updates["subcategory"] = subcategory
    if exchange is not None:
        updates["exchange"] = exchange

    if updates:
        updates["updated_at"] = utcnow()
        assignments = ", ".join(f"{column} = ?" for column in updates)
        conn.execute(
            f"UPDATE assets SET {assignments} WHERE symbol = ?",  # noqa: S608
            [*updates.values(), normalized],
        )
    return get_asset(conn, normalized)


def list_assets(
    conn: duckdb.DuckDBPyConnection,
    category: str | None = None,
) -> list[dict[str, Any]]:
    """List the catalog, optionally filtered by category, ordered by symbol."""
    if category:
        validate_category(category)
        return fetch_dicts(
            conn,
            "SELECT * FROM assets WHERE category = ? ORDER BY symbol",
            [category],
        )
    return fetch_dicts(conn, "SELECT * FROM assets ORDER BY symbol")


def search_assets(
    conn: duckdb.DuckDBPyConnection,
    query: str,
    limit: int = 15,
) -> list[dict[str, Any]]:
    """Case-insensitive search on symbol or name.

    Exact symbol matches sort first. Queries shorter than two characters
    return nothing.
    """
    term = (query or "").strip()
    if len(term) < _MIN_SEARCH_LENGTH:
        return []

    pattern = f"%{term.lower()}%"
    return fetch_dicts(
        conn,
        """
        SELECT * FROM assets
        WHERE lower(symbol) LIKE ? OR lower(name) LIKE ?
        ORDER BY (upper(symbol) = ?) DESC, symbol
        LIMIT ?
        """,
        [pattern, pattern, term.upper(), limit],
    )


def delete_asset(conn: duckdb.DuckDBPyConnection, symbol: str) -> None:
    """Remove an asset that nothing references.

    Raises:
        NotFoundError: If the symbol is not in the catalog.
        ConstraintViolation: If any ledger, holding, snapshot, price or
            watchlist row still references the asset.

    """
    normalized = require_asset(conn, symbol)
    for table in _REFERENCING_TABLES:
        row = conn.execute(
            f"SELECT COUNT(*) FROM {table} WHERE asset_symbol = ?",  # noqa: S608
            [normalized],
        ).fetchone()
        if row and row[0]:
            msg = f"Asset '{normalized}' is still referenced by {row[0]} {table} row(s)"
            raise ConstraintViolation(msg)

    conn.execute("DELETE FROM assets WHERE symbol = ?", [normalized])
    logger.info("Deleted asset %s", normalized)
