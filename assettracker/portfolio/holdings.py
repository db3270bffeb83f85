"""Holdings aggregation: derive each asset's position from its ledger.

The holdings table is a cache. :func:`recompute_holdings` rebuilds one
row from the asset's full transaction history and its latest price,
so running it twice without new transactions changes nothing but the
``last_updated`` stamp.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from assettracker.db.asset_store import get_asset
from assettracker.db.connection import utcnow
from assettracker.db.ledger_store import get_symbol_history
from assettracker.db.portfolio_store import delete_holding, upsert_holding
from assettracker.portfolio.cost_basis import replay

if TYPE_CHECKING:
    import duckdb

logger = logging.getLogger(__name__)


@dataclass
class Holding:
    """Net position and valuation for one asset.

    ``current_value`` and ``unrealized_pnl`` are None while the asset's
    price has not been fetched yet.
    """

    asset_symbol: str
    quantity: float = 0.0
    avg_purchase_price: float = 0.0
    total_invested: float = 0.0
    current_value: float | None = None
    unrealized_pnl: float | None = None
    realized_pnl: float = 0.0
    last_updated: datetime | None = field(default=None, compare=False)

    @property
    def is_open(self) -> bool:
        return self.quantity > 0


def compute_holding(
    symbol: str,
    transactions: list[dict[str, Any]],
    current_price: float | None,
) -> Holding:
    """Compute a holding from a chronologically ordered ledger.

    Args:
        symbol: Asset symbol.
        transactions: Ledger rows for this asset, oldest first.
        current_price: Latest asset price, or None if pending.

    Returns:
        The derived Holding (quantity 0 for an empty or closed ledger).

    """
    tracker = replay(transactions)
    if tracker.oversold_quantity:
        logger.warning(
            "%s ledger sells %.8g more units than it holds; position clamped to zero",
            symbol,
            tracker.oversold_quantity,
        )

    current_value = None
    unrealized = None
    if current_price is not None:
        current_value = tracker.quantity * float(current_price)
        unrealized = current_value - tracker.total_cost

    return Holding(
        asset_symbol=symbol,
        quantity=tracker.quantity,
        avg_purchase_price=tracker.average_cost,
        total_invested=tracker.total_cost,
        current_value=current_value,
        unrealized_pnl=unrealized,
        realized_pnl=tracker.realized_pnl,
    )


def recompute_holdings(conn: duckdb.DuckDBPyConnection, symbol: str) -> Holding:
    """Rebuild the stored holding for one asset from its full history.

    Open positions are upserted; a closed position removes the row.

    Raises:
        NotFoundError: If the symbol is not in the catalog.

    """
    asset = get_asset(conn, symbol)
    normalized = asset["symbol"]
    history = get_symbol_history(conn, normalized)

    holding = compute_holding(normalized, history, asset["current_price"])
    holding.last_updated = utcnow()

    if holding.is_open:
        upsert_holding(
            conn,
            normalized,
            quantity=holding.quantity,
            avg_purchase_price=holding.avg_purchase_price,
            total_invested=holding.total_invested,
            current_value=holding.current_value,
            unrealized_pnl=holding.unrealized_pnl,
        )
        logger.info(
            "Recomputed %s: %s units @ avg %.4f",
            normalized,
            holding.quantity,
            holding.avg_purchase_price,
        )
    else:
        delete_holding(conn, normalized)
    return holding


def recompute_all_holdings(conn: duckdb.DuckDBPyConnection) -> list[Holding]:
    """Recompute every asset that has transactions or a stored holding."""
    rows = conn.execute(
        """
        SELECT asset_symbol FROM transactions
        UNION
        SELECT asset_symbol FROM holdings
        ORDER BY asset_symbol
        """
    ).fetchall()
    return [recompute_holdings(conn, row[0]) for row in rows]
