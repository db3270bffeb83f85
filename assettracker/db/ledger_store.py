"""Transaction ledger store: append-mostly buy/sell/trade records.

The writer owns ``total_amount``: it is computed here as
``quantity * price_per_unit`` and a caller-supplied value that disagrees
is rejected. Recording a transaction does not touch holdings; callers
run :func:`assettracker.portfolio.holdings.recompute_holdings` as a
separate step.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any

from assettracker.db.asset_store import require_asset
from assettracker.db.connection import fetch_dict, fetch_dicts, utcnow
from assettracker.db.validation import (
    normalize_symbol,
    parse_timestamp,
    require_non_negative,
    require_positive,
    validate_time_of_day,
    validate_tx_type,
)
from assettracker.errors import ArithmeticInconsistency, NotFoundError, ValidationError

if TYPE_CHECKING:
    import duckdb

logger = logging.getLogger(__name__)

# Relative tolerance when checking a supplied total_amount
_TOTAL_REL_TOLERANCE = 1e-6
_TOTAL_ABS_TOLERANCE = 1e-9

_SELECT_WITH_ASSET = """
    SELECT t.*, a.name AS asset_name, a.category
    FROM transactions t
    LEFT JOIN assets a ON t.asset_symbol = a.symbol
"""


def compute_total_amount(
    quantity: float,
    price_per_unit: float,
    total_amount: float | None = None,
) -> float:
    """Compute quantity * price, checking it against a supplied total.

    Raises:
        ArithmeticInconsistency: If ``total_amount`` is given and differs
            from the product beyond a 1e-6 relative tolerance.

    """
    expected = quantity * price_per_unit
    if total_amount is None:
        return expected

    supplied = float(total_amount)
    if not math.isclose(
        supplied,
        expected,
        rel_tol=_TOTAL_REL_TOLERANCE,
        abs_tol=_TOTAL_ABS_TOLERANCE,
    ):
        msg = (
            f"total_amount {supplied} does not equal quantity * price_per_unit "
            f"({quantity} * {price_per_unit} = {expected})"
        )
        raise ArithmeticInconsistency(msg)
    return expected


def record_transaction(  # noqa: PLR0913
    conn: duckdb.DuckDBPyConnection,
    tx_type: str,
    symbol: str,
    exchange: str,
    quantity: float,
    price_per_unit: float,
    transaction_date: datetime | date | str,
    fees: float = 0.0,
    notes: str = "",
    total_amount: float | None = None,
    purchase_location: str | None = None,
    purchase_time: str | None = None,
    purchase_method: str | None = None,
    transaction_reference: str | None = None,
    currency: str = "USD",
) -> int:
    """Record a new ledger entry.

    Args:
        conn: Active DuckDB connection.
        tx_type: "buy", "sell", "trade_in", or "trade_out".
        symbol: Asset symbol; must already be in the catalog.
        exchange: Exchange or broker the trade happened on.
        quantity: Units traded (positive).
        price_per_unit: Price per unit (positive).
        transaction_date: When the trade happened.
        fees: Fees paid (non-negative).
        notes: Free-text notes.
        total_amount: Optional caller-computed total, verified against
            quantity * price_per_unit.
        purchase_location: Specific store/broker/venue.
        purchase_time: Time of day as HH:MM:SS.
        purchase_method: Free-text channel, e.g. "online", "app".
        transaction_reference: External confirmation number.
        currency: Transaction currency code.

    Returns:
        The new transaction id.

    Raises:
        ValidationError: If type, amounts or formats are invalid.
        NotFoundError: If the symbol is not in the catalog.
        ArithmeticInconsistency: If total_amount disagrees with the product.

    """
    validate_tx_type(tx_type)
    quantity = require_positive("quantity", quantity)
    price_per_unit = require_positive("price_per_unit", price_per_unit)
    fees = require_non_negative("fees", fees)
    if not exchange or not exchange.strip():
        msg = "exchange must be a non-empty string"
        raise ValidationError(msg)
    if purchase_time is not None:
        validate_time_of_day(purchase_time)
    when = parse_timestamp(transaction_date)
    currency = (currency or "USD").strip().upper()
    total = compute_total_amount(quantity, price_per_unit, total_amount)
    normalized = require_asset(conn, symbol)

    row = conn.execute(
        """
        INSERT INTO transactions
            (type, asset_symbol, exchange, quantity, price_per_unit,
             total_amount, fees, notes, transaction_date, purchase_location,
             purchase_time, purchase_method, transaction_reference, currency)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        RETURNING id
        """,
        [
            tx_type,
            normalized,
            exchange.strip(),
            quantity,
            price_per_unit,
            total,
            fees,
            notes or "",
            when,
            purchase_location,
            purchase_time,
            purchase_method,
            transaction_reference,
            currency,
        ],
    ).fetchone()

    tx_id = int(row[0])
    logger.info(
        "Recorded %s transaction #%d: %s %s @ %s",
        tx_type,
        tx_id,
        quantity,
        normalized,
        price_per_unit,
    )
    return tx_id


def get_transaction(
    conn: duckdb.DuckDBPyConnection,
    tx_id: int,
) -> dict[str, Any]:
    """Fetch one transaction with its asset name and category.

    Raises:
        NotFoundError: If no transaction has this id.

    """
    row = fetch_dict(conn, _SELECT_WITH_ASSET + " WHERE t.id = ?", [tx_id])
    if row is None:
        msg = f"Transaction {tx_id} not found"
        raise NotFoundError(msg)
    return row


def get_transactions(  # noqa: PLR0913
    conn: duckdb.DuckDBPyConnection,
    symbol: str | None = None,
    tx_type: str | None = None,
    start_date: datetime | date | str | None = None,
    end_date: datetime | date | str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[dict[str, Any]]:
    """Query transactions with optional filters.

    Args:
        conn: Active DuckDB connection.
        symbol: Optional symbol filter.
        tx_type: Optional type filter.
        start_date: Optional inclusive lower bound on transaction_date.
        end_date: Optional inclusive upper bound on transaction_date.
        limit: Optional page size.
        offset: Rows to skip (with limit).

    Returns:
        List of transaction dicts, newest first, with asset_name and
        category joined from the catalog.

    """
    query = _SELECT_WITH_ASSET + " WHERE 1=1"
    params: list[Any] = []

    if symbol:
        query += " AND t.asset_symbol = ?"
        params.append(normalize_symbol(symbol))
    if tx_type:
        query += " AND t.type = ?"
        params.append(validate_tx_type(tx_type))
    if start_date:
        query += " AND t.transaction_date >= ?"
        params.append(parse_timestamp(start_date))
    if end_date:
        query += " AND t.transaction_date <= ?"
        params.append(parse_timestamp(end_date))

    query += " ORDER BY t.transaction_date DESC, t.id DESC"
    if limit is not None:
        query += " LIMIT ? OFFSET ?"
        params.extend([int(limit), int(offset)])

    return fetch_dicts(conn, query, params)


def get_symbol_history(
    conn: duckdb.DuckDBPyConnection,
    symbol: str,
) -> list[dict[str, Any]]:
    """All transactions for one symbol in replay order (oldest first)."""
    return fetch_dicts(
        conn,
        """
        SELECT * FROM transactions
        WHERE asset_symbol = ?
        ORDER BY transaction_date ASC, id ASC
        """,
        [normalize_symbol(symbol)],
    )


def count_transactions(conn: duckdb.DuckDBPyConnection) -> int:
    """Total number of ledger rows."""
    row = conn.execute("SELECT COUNT(*) FROM transactions").fetchone()
    return int(row[0]) if row else 0


def get_recent_transactions(
    conn: duckdb.DuckDBPyConnection,
    days: int = 3,
    limit: int = 10,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """Transactions dated within the last ``days`` days, newest first."""
    reference = utcnow() if now is None else parse_timestamp(now)
    since = reference - timedelta(days=days)
    return fetch_dicts(
        conn,
        _SELECT_WITH_ASSET
        + """
        WHERE t.transaction_date >= ?
        ORDER BY t.transaction_date DESC, t.id DESC
        LIMIT ?
        """,
        [since, limit],
    )


def delete_transaction(
    conn: duckdb.DuckDBPyConnection,
    tx_id: int,
) -> dict[str, Any]:
    """Remove a ledger entry (corrective use only).

    Holdings are not touched; recompute the returned row's
    ``asset_symbol`` afterwards.

    Returns:
        The deleted transaction row.

    Raises:
        NotFoundError: If no transaction has this id.

    """
    row = get_transaction(conn, tx_id)
    conn.execute("DELETE FROM transactions WHERE id = ?", [tx_id])
    logger.info("Deleted transaction #%d (%s)", tx_id, row["asset_symbol"])
    return row
