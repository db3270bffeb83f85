"""AssetTracker sidecar entry point.

Communicates with the UI process via stdin/stdout using
newline-delimited JSON messages. Logging goes to stderr.

Protocol:
    Request:  {"id": "uuid", "method": "string", "params": {}}
    Response: {"id": "uuid", "result": {}}
    Error:    {"id": "uuid", "error": {"message": "string", "type": "string"}}
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from typing import TYPE_CHECKING, Any

from assettracker import log_config
from assettracker.alerts import evaluate_alerts
from assettracker.db.asset_store import (
    delete_asset,
    get_asset,
    list_assets,
    refresh_price,
    search_assets,
    update_asset_details,
    upsert_asset,
)
from assettracker.db.config_store import (
    get_config,
    list_config,
    set_config,
    set_config_default,
    verify_password,
)
from assettracker.db.connection import init_db, init_memory_db
from assettracker.db.ledger_store import (
    count_transactions,
    delete_transaction,
    get_recent_transactions,
    get_transaction,
    get_transactions,
    record_transaction,
)
from assettracker.db.market_store import (
    get_latest_price,
    price_history_frame,
    query_price_history,
    record_price_observation,
)
from assettracker.db.portfolio_store import (
    get_holding,
    get_holdings,
    get_portfolio_history,
    get_snapshots,
)
from assettracker.db.seed import (
    backfill_transaction_enrichment,
    clear_seed_prices,
    seed_all,
    seed_summary,
)
from assettracker.db.watchlist_store import (
    add_to_watchlist,
    get_watchlist,
    get_watchlist_item,
    remove_from_watchlist,
    set_alerts_active,
    update_watchlist_item,
)
from assettracker.errors import AssetTrackerError
from assettracker.export.csv_export import (
    export_holdings_csv,
    export_snapshots_csv,
    export_transactions_csv,
)
from assettracker.export.json_export import PortfolioEncoder, export_portfolio_json
from assettracker.portfolio.holdings import recompute_all_holdings, recompute_holdings
from assettracker.portfolio.net_worth import diversification, portfolio_summary
from assettracker.portfolio.snapshots import record_daily_snapshot

if TYPE_CHECKING:
    from collections.abc import Callable

    import duckdb

logger = logging.getLogger(__name__)


def _delete_transaction_and_recompute(
    conn: duckdb.DuckDBPyConnection,
    tx_id: int,
) -> dict[str, Any]:
    """Remove a ledger row and rebuild the affected holding."""
    removed = delete_transaction(conn, tx_id)
    holding = recompute_holdings(conn, removed["asset_symbol"])
    return {"deleted": removed, "holding": holding}


def _record_transaction_and_recompute(
    conn: duckdb.DuckDBPyConnection,
    **params: Any,
) -> dict[str, Any]:
    """Record a ledger row, then rebuild that asset's holding."""
    tx_id = record_transaction(conn, **params)
    row = get_transaction(conn, tx_id)
    holding = recompute_holdings(conn, row["asset_symbol"])
    return {"transaction_id": tx_id, "holding": holding}


def _refresh_price_and_recompute(
    conn: duckdb.DuckDBPyConnection,
    **params: Any,
) -> dict[str, Any]:
    """Overwrite an asset price, then revalue its holding if one exists."""
    asset = refresh_price(conn, **params)
    holding = None
    if get_holding(conn, asset["symbol"]) is not None:
        holding = recompute_holdings(conn, asset["symbol"])
    return {"asset": asset, "holding": holding}


def _export_portfolio(
    conn: duckdb.DuckDBPyConnection,
    output_path: str | None = None,
) -> str:
    return export_portfolio_json(
        holdings=get_holdings(conn),
        transactions=get_transactions(conn),
        snapshots=get_snapshots(conn),
        watchlist=get_watchlist(conn),
        output_path=output_path,
    )


def _list_transactions(
    conn: duckdb.DuckDBPyConnection,
    **params: Any,
) -> dict[str, Any]:
    """Paginated ledger listing with the overall row count."""
    params.setdefault("limit", 50)
    params.setdefault("offset", 0)
    return {
        "transactions": get_transactions(conn, **params),
        "total": count_transactions(conn),
        "limit": params["limit"],
        "offset": params["offset"],
    }


HANDLERS: dict[str, Callable[..., Any]] = {
    # Assets
    "assets.upsert": upsert_asset,
    "assets.get": get_asset,
    "assets.list": list_assets,
    "assets.search": search_assets,
    "assets.update": update_asset_details,
    "assets.delete": delete_asset,
    "assets.refresh_price": _refresh_price_and_recompute,
    # Ledger
    "transactions.record": _record_transaction_and_recompute,
    "transactions.get": get_transaction,
    "transactions.list": _list_transactions,
    "transactions.recent": get_recent_transactions,
    "transactions.delete": _delete_transaction_and_recompute,
    # Holdings & snapshots
    "holdings.recompute": recompute_holdings,
    "holdings.recompute_all": recompute_all_holdings,
    "holdings.get": get_holding,
    "holdings.list": get_holdings,
    "snapshots.record": record_daily_snapshot,
    "snapshots.list": get_snapshots,
    "snapshots.history": get_portfolio_history,
    # Price history
    "prices.record": record_price_observation,
    "prices.history": query_price_history,
    "prices.chart": price_history_frame,
    "prices.latest": get_latest_price,
    # Watchlist & alerts
    "watchlist.add": add_to_watchlist,
    "watchlist.get": get_watchlist_item,
    "watchlist.list": get_watchlist,
    "watchlist.update": update_watchlist_item,
    "watchlist.set_active": set_alerts_active,
    "watchlist.remove": remove_from_watchlist,
    "alerts.evaluate": evaluate_alerts,
    # Config & auth
    "config.get": get_config,
    "config.set": set_config,
    "config.set_default": set_config_default,
    "config.list": list_config,
    "auth.verify": verify_password,
    # Portfolio reporting
    "portfolio.summary": portfolio_summary,
    "portfolio.diversification": diversification,
    # Export
    "export.portfolio_json": _export_portfolio,
    "export.holdings_csv": lambda conn, **p: export_holdings_csv(get_holdings(conn), **p),
    "export.transactions_csv": lambda conn, **p: export_transactions_csv(
        get_transactions(conn), **p
    ),
    "export.snapshots_csv": lambda conn, **p: export_snapshots_csv(get_snapshots(conn), **p),
    # Maintenance
    "seed.apply": seed_all,
    "seed.status": seed_summary,
    "seed.clear_prices": clear_seed_prices,
    "seed.backfill_enrichment": backfill_transaction_enrichment,
}


def dispatch(
    conn: duckdb.DuckDBPyConnection,
    method: str,
    params: dict[str, Any],
) -> Any:
    """Route a method call to the appropriate handler.

    Args:
        conn: Active DuckDB connection passed to every handler.
        method: The method name (e.g., "transactions.record").
        params: Keyword parameters for the method.

    Returns:
        The result of the method call.

    Raises:
        ValueError: If the method is not recognized.

    """
    if method not in HANDLERS:
        msg = f"Unknown method: {method}"
        raise ValueError(msg)
    return HANDLERS[method](conn, **params)


def _error_response(request: Any, exc: Exception) -> dict[str, Any]:
    request_id = request.get("id", "unknown") if isinstance(request, dict) else "unknown"
    return {
        "id": request_id,
        "error": {
            "message": str(exc),
            "type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        },
    }


def serve(conn: duckdb.DuckDBPyConnection) -> None:
    """Run the sidecar message loop.

    Reads newline-delimited JSON from stdin, dispatches to handlers,
    and writes JSON responses to stdout. Runs until stdin is closed.
    """
    for raw_line in sys.stdin:
        stripped = raw_line.strip()
        if not stripped:
            continue

        request: dict[str, Any] = {}
        try:
            request = json.loads(stripped)
            request_id = request.get("id", "unknown")
            method = request["method"]
            params = request.get("params") or {}
            result = dispatch(conn, method, params)
            response: dict[str, Any] = {"id": request_id, "result": result}
        except AssetTrackerError as exc:
            logger.info("Request rejected: %s", exc)
            response = _error_response(request, exc)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Request failed")
            response = _error_response(request, exc)
        sys.stdout.write(json.dumps(response, cls=PortfolioEncoder) + "\n")
        sys.stdout.flush()


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="assettracker",
        description="AssetTracker data sidecar (newline-delimited JSON on stdin/stdout).",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="DuckDB file path (default: $ASSETTRACKER_HOME/data/assettracker.duckdb)",
    )
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Use an in-memory database (nothing is persisted)",
    )
    parser.add_argument("--seed", action="store_true", help="Apply default seed data")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Open the database and serve requests until stdin closes."""
    args = _parse_args(argv)
    log_config.setup(verbose=args.verbose)

    conn = init_memory_db() if args.memory else init_db(args.db)
    try:
        if args.seed:
            seed_all(conn)
        serve(conn)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
