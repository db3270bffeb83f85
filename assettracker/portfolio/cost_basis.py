"""Weighted-average cost basis tracking.

Replays a ledger in order and keeps a single pooled position per asset:
every inflow (buy, trade_in) is added to the pool at its full cost,
fees included, and every outflow (sell, trade_out) removes units at the
current average cost, leaving the average unchanged.

The result depends only on the transaction history, so recomputing from
the full ledger always yields the same position.

"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from assettracker.db.schema import INFLOW_TYPES, TRANSACTION_TYPES

# Positions at or below this size are treated as closed
_QTY_EPSILON = 1e-9


@dataclass
class AverageCostTracker:
    """Pooled position with weighted-average cost.

    Attributes:
        quantity: Units currently held.
        total_cost: Cost basis of the units held (fees included).
        realized_pnl: Gains/losses locked in by outflows, net of fees.
        oversold_quantity: Units sold beyond the position, ignored.

    """

    quantity: float = 0.0
    total_cost: float = 0.0
    realized_pnl: float = 0.0
    oversold_quantity: float = field(default=0.0, repr=False)

    @property
    def average_cost(self) -> float:
        """Cost per unit held, 0.0 for a closed position."""
        if self.quantity <= _QTY_EPSILON:
            return 0.0
        return self.total_cost / self.quantity

    def add(self, quantity: float, price: float, fees: float = 0.0) -> None:
        """Add units to the pool at their full cost."""
        self.quantity += quantity
        self.total_cost += quantity * price + fees

    def remove(self, quantity: float, price: float, fees: float = 0.0) -> float:
        """Remove units at the current average cost.

        Selling more than is held closes the position; the excess is
        recorded in ``oversold_quantity``.

        Returns:
            Realized gain (positive) or loss (negative) for this outflow.

        """
        sold = min(quantity, self.quantity)
        if quantity - sold > _QTY_EPSILON:
            self.oversold_quantity += quantity - sold

        removed_cost = sold * self.average_cost
        gain = sold * price - fees - removed_cost
        self.realized_pnl += gain

        self.quantity -= sold
        self.total_cost -= removed_cost
        if self.quantity <= _QTY_EPSILON:
            self.quantity = 0.0
            self.total_cost = 0.0
        return gain

    def apply(self, txn: dict[str, Any]) -> None:
        """Apply one ledger row (keys: type, quantity, price_per_unit, fees).

        Raises:
            ValueError: If the type is not a ledger transaction type.

        """
        tx_type = txn["type"]
        if tx_type not in TRANSACTION_TYPES:
            msg = f"Unknown transaction type: {tx_type}"
            raise ValueError(msg)

        quantity = float(txn["quantity"])
        price = float(txn["price_per_unit"])
        fees = float(txn.get("fees") or 0.0)

        if tx_type in INFLOW_TYPES:
            self.add(quantity, price, fees)
        else:
            self.remove(quantity, price, fees)

    def to_dict(self) -> dict[str, Any]:
        """Serialize tracker state to a dictionary."""
        return {
            "quantity": self.quantity,
            "total_cost": self.total_cost,
            "average_cost": self.average_cost,
            "realized_pnl": self.realized_pnl,
        }


def replay(transactions: list[dict[str, Any]]) -> AverageCostTracker:
    """Build a tracker from transactions already in chronological order."""
    tracker = AverageCostTracker()
    for txn in transactions:
        tracker.apply(txn)
    return tracker
