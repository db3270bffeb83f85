"""Watchlist alert evaluation.

Read-only: nothing here writes back to the watchlist. Each active item
is checked against its target price and its percentage threshold:

- target: with a baseline price, the alert fires once the price has
  moved from one side of the target onto or past it (crossed up or
  down). Without a baseline (price was pending when the item was
  added) a price at or above the target counts as crossed up. A
  baseline sitting exactly on the target counts as below it, so only
  a later rise past the target fires.
- percent: with a baseline, fires when the absolute move from the
  baseline is at least ``alert_percent`` percent.

"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from assettracker.db.connection import fetch_dicts

if TYPE_CHECKING:
    import duckdb

TARGET_CROSSED_UP = "target_crossed_up"
TARGET_CROSSED_DOWN = "target_crossed_down"
PERCENT_MOVE = "percent_move"


@dataclass
class Alert:
    """A triggered watchlist alert."""

    watchlist_id: int
    asset_symbol: str
    reason: str
    current_price: float
    target_price: float | None = None
    baseline_price: float | None = None
    change_pct: float | None = None


def _target_reason(
    price: float,
    target: float,
    baseline: float | None,
) -> str | None:
    if baseline is None:
        return TARGET_CROSSED_UP if price >= target else None
    if baseline <= target <= price and price > baseline:
        return TARGET_CROSSED_UP
    if baseline > target >= price:
        return TARGET_CROSSED_DOWN
    return None


def check_item(item: dict[str, Any], price: float) -> list[Alert]:
    """Evaluate one watchlist row against a current price."""
    alerts: list[Alert] = []
    target = item.get("target_price")
    baseline = item.get("baseline_price")
    percent = item.get("alert_percent")

    change_pct = None
    if baseline:
        change_pct = (price - baseline) / baseline * 100.0

    if target is not None:
        reason = _target_reason(price, target, baseline)
        if reason:
            alerts.append(
                Alert(
                    watchlist_id=item["id"],
                    asset_symbol=item["asset_symbol"],
                    reason=reason,
                    current_price=price,
                    target_price=target,
                    baseline_price=baseline,
                    change_pct=change_pct,
                )
            )

    if percent is not None and change_pct is not None and abs(change_pct) >= percent:
        alerts.append(
            Alert(
                watchlist_id=item["id"],
                asset_symbol=item["asset_symbol"],
                reason=PERCENT_MOVE,
                current_price=price,
                target_price=target,
                baseline_price=baseline,
                change_pct=change_pct,
            )
        )

    return alerts


def evaluate_alerts(
    conn: duckdb.DuckDBPyConnection,
    current_prices: dict[str, float] | None = None,
) -> list[Alert]:
    """Find triggered alerts among active watchlist items.

    Args:
        conn: Active DuckDB connection.
        current_prices: Optional symbol to price overrides. Symbols not
            present fall back to the asset's stored current price.

    Returns:
        Triggered alerts, ordered by watchlist id. Items without any
        known price are skipped.

    """
    overrides = {k.upper(): float(v) for k, v in (current_prices or {}).items()}
    items = fetch_dicts(
        conn,
        """
        SELECT w.*, a.current_price
        FROM watchlist w
        JOIN assets a ON w.asset_symbol = a.symbol
        WHERE w.active_alerts
        ORDER BY w.id
        """,
    )

    alerts: list[Alert] = []
    for item in items:
        price = overrides.get(item["asset_symbol"], item["current_price"])
        if price is None:
            continue
        alerts.extend(check_item(item, float(price)))
    return alerts
