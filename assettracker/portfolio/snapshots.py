"""Daily snapshot recorder.

Meant to be fired once a day by an external scheduler (the app runs it
at 21:00 local time). The recorder keeps no state of its own: each call
copies the current holdings into ``daily_snapshots`` and relies on the
(asset_symbol, snapshot_date) uniqueness to stay at-most-once per day.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from assettracker.db.config_store import get_config, set_config
from assettracker.db.connection import fetch_dicts, utcnow
from assettracker.db.portfolio_store import insert_snapshot_if_absent
from assettracker.db.validation import parse_date

if TYPE_CHECKING:
    import duckdb

logger = logging.getLogger(__name__)

LAST_SNAPSHOT_KEY = "last_snapshot_date"


def record_daily_snapshot(
    conn: duckdb.DuckDBPyConnection,
    snapshot_date: date | str | None = None,
) -> int:
    """Snapshot every open holding for the given day.

    Values are taken from the holdings cache as it stands, so callers
    that want fresh prices recompute holdings first. Holdings whose
    price is still pending are skipped. Days that are already recorded
    for an asset are left as they are. ``last_snapshot_date`` only
    moves forward.

    Args:
        conn: Active DuckDB connection.
        snapshot_date: Day to record. Defaults to today (UTC).

    Returns:
        Number of snapshot rows written.

    """
    day = utcnow().date() if snapshot_date is None else parse_date(snapshot_date)

    holdings = fetch_dicts(
        conn,
        """
        SELECT asset_symbol, quantity, current_value, unrealized_pnl
        FROM holdings
        WHERE quantity > 0
        ORDER BY asset_symbol
        """,
    )

    written = 0
    for holding in holdings:
        symbol = holding["asset_symbol"]
        if holding["current_value"] is None:
            logger.warning("Skipping %s snapshot for %s: price pending", symbol, day)
            continue

        # Price the holding was last valued at
        price = holding["current_value"] / holding["quantity"]
        if insert_snapshot_if_absent(
            conn,
            symbol,
            day,
            quantity=holding["quantity"],
            price_per_unit=price,
            total_value=holding["current_value"],
            unrealized_pnl=holding["unrealized_pnl"],
        ):
            written += 1

    # Back-filled days never move the marker backwards
    if day.isoformat() > (get_config(conn, LAST_SNAPSHOT_KEY) or ""):
        set_config(conn, LAST_SNAPSHOT_KEY, day.isoformat())
    logger.info("Daily snapshot %s: %d of %d holdings written", day, written, len(holdings))
    return written
