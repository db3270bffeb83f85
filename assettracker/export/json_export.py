"""JSON export for portfolio data.

Produces a JSON dump of holdings, transactions, snapshots and the
watchlist with metadata. Also provides the encoder the sidecar uses
for its responses.

"""

from __future__ import annotations

import dataclasses
import json
from datetime import UTC, date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd


class PortfolioEncoder(json.JSONEncoder):
    """JSON encoder for dates, dataclasses, NumPy and pandas values."""

    def default(self, o: Any) -> Any:
        """Convert non-serializable types to JSON-safe values."""
        if dataclasses.is_dataclass(o) and not isinstance(o, type):
            return dataclasses.asdict(o)
        if isinstance(o, datetime | date | time):
            return o.isoformat()
        if isinstance(o, Decimal):
            return float(o)
        if isinstance(o, np.ndarray):
            return o.tolist()
        if isinstance(o, np.integer):
            return int(o)
        if isinstance(o, np.floating):
            return float(o)
        if isinstance(o, pd.DataFrame):
            return o.reset_index().to_dict(orient="records")
        return super().default(o)


def export_portfolio_json(
    holdings: list[dict[str, Any]] | None = None,
    transactions: list[dict[str, Any]] | None = None,
    snapshots: list[dict[str, Any]] | None = None,
    watchlist: list[dict[str, Any]] | None = None,
    output_path: str | None = None,
) -> str:
    """Export portfolio data to JSON format.

    Args:
        holdings: List of holding dicts.
        transactions: List of transaction dicts.
        snapshots: List of daily snapshot dicts.
        watchlist: List of watchlist item dicts.
        output_path: File path to write. If None, returns JSON string.

    Returns:
        JSON string, or file path if output_path given.

    """
    now = datetime.now(tz=UTC).isoformat()

    export_data: dict[str, Any] = {
        "metadata": {
            "export_date": now,
            "format_version": "1.0",
            "source": "AssetTracker",
        },
    }

    sections = {
        "holdings": holdings,
        "transactions": transactions,
        "snapshots": snapshots,
        "watchlist": watchlist,
    }
    for name, rows in sections.items():
        if rows is not None:
            export_data[name] = rows
            export_data["metadata"][f"{name}_count"] = len(rows)

    content = json.dumps(export_data, cls=PortfolioEncoder, indent=2)

    if output_path:
        Path(output_path).write_text(content, encoding="utf-8")
        return output_path
    return content
