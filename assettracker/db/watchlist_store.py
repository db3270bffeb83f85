"""Watchlist store: user-curated assets with alert thresholds.

Name and category are copied from the catalog when an item is added
and are not kept in sync afterwards, so the watchlist can be listed
without a join. The asset price at that moment is kept as the
``baseline_price`` that percentage alerts are measured against.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from assettracker.db.asset_store import get_asset
from assettracker.db.connection import fetch_dict, fetch_dicts, utcnow
from assettracker.db.validation import require_positive
from assettracker.errors import NotFoundError

if TYPE_CHECKING:
    import duckdb

logger = logging.getLogger(__name__)

# Sentinel distinguishing "leave unchanged" from an explicit None
_UNSET: Any = object()


def add_to_watchlist(  # noqa: PLR0913
    conn: duckdb.DuckDBPyConnection,
    symbol: str,
    target_price: float | None = None,
    alert_percent: float | None = None,
    active: bool = False,
    notes: str | None = None,
) -> int:
    """Add an asset to the watchlist.

    Args:
        conn: Active DuckDB connection.
        symbol: Asset symbol; must be in the catalog.
        target_price: Optional price level to alert on.
        alert_percent: Optional move (in percent) from baseline to alert on.
        active: Whether alerts are active.
        notes: Free-text notes.

    Returns:
        The new watchlist item id.

    Raises:
        NotFoundError: If the symbol is not in the catalog.
        ValidationError: If a threshold is not positive.

    """
    if target_price is not None:
        target_price = require_positive("target_price", target_price)
    if alert_percent is not None:
        alert_percent = require_positive("alert_percent", alert_percent)
    asset = get_asset(conn, symbol)
    now = utcnow()

    row = conn.execute(
        """
        INSERT INTO watchlist
            (asset_symbol, name, category, notes, target_price, alert_percent,
             active_alerts, baseline_price, added_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        RETURNING id
        """,
        [
            asset["symbol"],
            asset["name"],
            asset["category"],
            notes,
            target_price,
            alert_percent,
            bool(active),
            asset["current_price"],
            now,
            now,
        ],
    ).fetchone()

    item_id = int(row[0])
    logger.info("Added %s to watchlist as item #%d", asset["symbol"], item_id)
    return item_id


def get_watchlist_item(
    conn: duckdb.DuckDBPyConnection,
    item_id: int,
) -> dict[str, Any]:
    """Fetch one watchlist item.

    Raises:
        NotFoundError: If no item has this id.

    """
    row = fetch_dict(conn, "SELECT * FROM watchlist WHERE id = ?", [item_id])
    if row is None:
        msg = f"Watchlist item {item_id} not found"
        raise NotFoundError(msg)
    return row


def get_watchlist(
    conn: duckdb.DuckDBPyConnection,
    active_only: bool = False,
) -> list[dict[str, Any]]:
    """List watchlist items, most recently added first.

    Args:
        conn: Active DuckDB connection.
        active_only: Only return items with active alerts.

    """
    query = "SELECT * FROM watchlist"
    if active_only:
        query += " WHERE active_alerts"
    query += " ORDER BY added_at DESC, id DESC"
    return fetch_dicts(conn, query)


def update_watchlist_item(
    conn: duckdb.DuckDBPyConnection,
    item_id: int,
    *,
    notes: str | None = _UNSET,
    target_price: float | None = _UNSET,
    alert_percent: float | None = _UNSET,
    active_alerts: bool = _UNSET,
) -> dict[str, Any]:
    """Update the given fields of a watchlist item.

    Passing None clears a threshold. Changing a threshold re-captures the
    baseline from the asset's current price.

    Raises:
        NotFoundError: If no item has this id.
        ValidationError: If a threshold is not positive.

    """
    item = get_watchlist_item(conn, item_id)
    updates: dict[str, Any] = {}

    if notes is not _UNSET:
        updates["notes"] = notes
    if target_price is not _UNSET:
        updates["target_price"] = (
            None if target_price is None else require_positive("target_price", target_price)
        )
    if alert_percent is not _UNSET:
        updates["alert_percent"] = (
            None
            if alert_percent is None
            else require_positive("alert_percent", alert_percent)
        )
    if active_alerts is not _UNSET:
        updates["active_alerts"] = bool(active_alerts)

    if not updates:
        return item

    if "target_price" in updates or "alert_percent" in updates:
        asset = get_asset(conn, item["asset_symbol"])
        updates["baseline_price"] = asset["current_price"]

    updates["updated_at"] = utcnow()
    assignments = ", ".join(f"{column} = ?" for column in updates)
    conn.execute(
        f"UPDATE watchlist SET {assignments} WHERE id = ?",  # noqa: S608
        [*updates.values(), item_id],
    )
    return get_watchlist_item(conn, item_id)


def set_alerts_active(
    conn: duckdb.DuckDBPyConnection,
    item_id: int,
    active: bool,
) -> dict[str, Any]:
    """Toggle alerts for a watchlist item without touching its thresholds."""
    return update_watchlist_item(conn, item_id, active_alerts=active)


def remove_from_watchlist(conn: duckdb.DuckDBPyConnection, item_id: int) -> None:
    """Remove a watchlist item.

    Raises:
        NotFoundError: If no item has this id.

    """
    item = get_watchlist_item(conn, item_id)
    conn.execute("DELETE FROM watchlist WHERE id = ?", [item_id])
    logger.info("Removed %s from watchlist (item #%d)", item["asset_symbol"], item_id)
