"""CSV export for holdings, transactions and daily snapshots.

Generates CSV files with metadata comment lines (title, generation
time) ahead of the header row.

"""

from __future__ import annotations

import csv
import io
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

HOLDINGS_FIELDS = [
    "asset_symbol",
    "name",
    "category",
    "quantity",
    "avg_purchase_price",
    "total_invested",
    "current_value",
    "unrealized_pnl",
    "last_updated",
]

TRANSACTIONS_FIELDS = [
    "id",
    "transaction_date",
    "type",
    "asset_symbol",
    "exchange",
    "quantity",
    "price_per_unit",
    "total_amount",
    "fees",
    "currency",
    "purchase_location",
    "purchase_time",
    "purchase_method",
    "transaction_reference",
    "notes",
]

SNAPSHOT_FIELDS = [
    "snapshot_date",
    "asset_symbol",
    "quantity",
    "price_per_unit",
    "total_value",
    "unrealized_pnl",
]


def _export_rows(
    rows: list[dict[str, Any]],
    fieldnames: list[str],
    title: str,
    output_path: str | None,
) -> str:
    output = io.StringIO()
    _write_metadata_header(output, title)

    writer = csv.DictWriter(output, fieldnames=fieldnames, extrasaction="ignore")
    writer.writeheader()
    for record in rows:
        writer.writerow({k: _cell(record.get(k)) for k in fieldnames})

    content = output.getvalue()
    if output_path:
        Path(output_path).write_text(content, encoding="utf-8")
        return output_path
    return content


def _cell(value: Any) -> Any:
    """Blank for missing values (e.g. a pending price), ISO for dates."""
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def export_holdings_csv(
    holdings: list[dict[str, Any]],
    output_path: str | None = None,
) -> str:
    """Export holdings to CSV format.

    Args:
        holdings: Holding dicts as returned by ``get_holdings``.
        output_path: File path to write. If None, returns CSV string.

    Returns:
        The CSV content as a string, or file path if output_path given.

    """
    return _export_rows(holdings, HOLDINGS_FIELDS, "Holdings Export", output_path)


def export_transactions_csv(
    transactions: list[dict[str, Any]],
    output_path: str | None = None,
) -> str:
    """Export ledger rows to CSV format.

    Args:
        transactions: Transaction dicts as returned by ``get_transactions``.
        output_path: File path to write. If None, returns CSV string.

    Returns:
        The CSV content as a string, or file path if output_path given.

    """
    return _export_rows(
        transactions, TRANSACTIONS_FIELDS, "Transactions Export", output_path
    )


def export_snapshots_csv(
    snapshots: list[dict[str, Any]],
    output_path: str | None = None,
) -> str:
    """Export daily snapshots to CSV format."""
    return _export_rows(snapshots, SNAPSHOT_FIELDS, "Daily Snapshots Export", output_path)


def _write_metadata_header(output: io.StringIO, title: str) -> None:
    """Write the title and generation time as comment lines."""
    now = datetime.now(tz=UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
    output.write(f"# {title}\n")
    output.write(f"# Generated: {now}\n")
