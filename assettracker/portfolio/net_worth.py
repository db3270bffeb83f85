"""Portfolio summary and diversification for the dashboard.

Both read the holdings cache only; holdings whose price is pending
contribute their cost basis but no value.

"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

from assettracker.db.connection import fetch_dicts

if TYPE_CHECKING:
    import duckdb


@dataclass
class PortfolioSummary:
    """Totals across open holdings.

    Attributes:
        total_invested: Sum of cost bases.
        current_value: Sum of priced holdings' values.
        total_pnl: Sum of unrealized P&L of priced holdings.
        pending_symbols: Holdings left out of value/P&L (no price yet).

    """

    total_invested: float = 0.0
    current_value: float = 0.0
    total_pnl: float = 0.0
    pending_symbols: list[str] = field(default_factory=list)


def portfolio_summary(conn: duckdb.DuckDBPyConnection) -> dict[str, Any]:
    """Compute invested, value and P&L totals over open holdings."""
    rows = fetch_dicts(
        conn,
        """
        SELECT asset_symbol, total_invested, current_value, unrealized_pnl
        FROM holdings
        WHERE quantity > 0
        ORDER BY asset_symbol
        """,
    )

    summary = PortfolioSummary()
    for row in rows:
        summary.total_invested += row["total_invested"]
        if row["current_value"] is None:
            summary.pending_symbols.append(row["asset_symbol"])
            continue
        summary.current_value += row["current_value"]
        summary.total_pnl += row["unrealized_pnl"]

    return asdict(summary)


def diversification(conn: duckdb.DuckDBPyConnection) -> list[dict[str, Any]]:
    """Share of portfolio value per asset category.

    Returns:
        List of dicts with category, value and percentage (rounded to a
        whole number), sorted by value descending.

    """
    rows = fetch_dicts(
        conn,
        """
        SELECT a.category, SUM(h.current_value) AS value
        FROM holdings h
        JOIN assets a ON h.asset_symbol = a.symbol
        WHERE h.quantity > 0 AND h.current_value IS NOT NULL
        GROUP BY a.category
        """,
    )

    total = sum(row["value"] for row in rows)
    result = [
        {
            "category": row["category"],
            "value": row["value"],
            "percentage": round(row["value"] / total * 100) if total > 0 else 0,
        }
        for row in rows
    ]
    return sorted(result, key=lambda r: r["value"], reverse=True)
