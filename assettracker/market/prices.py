"""Price refresh orchestration.

Providers are external: anything with a ``fetch_price(api_id)`` method
can be registered under an ``api_source`` key (e.g. "coingecko",
"alphavantage"). Each quote is fetched before any write, then stored as
a price history observation and as the asset's current price.

"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

from assettracker.db.asset_store import list_assets, refresh_price
from assettracker.db.market_store import record_price_observation
from assettracker.db.portfolio_store import get_holding
from assettracker.portfolio.holdings import recompute_holdings

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    import duckdb

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceQuote:
    """A single observed price."""

    price: float
    timestamp: datetime


class PriceProvider(Protocol):
    """Market-data provider keyed by the asset's api_id."""

    def fetch_price(self, api_id: str) -> PriceQuote | None:
        """Return the latest quote, or None if the provider has no price."""
        ...


def refresh_prices(
    conn: duckdb.DuckDBPyConnection,
    providers: Mapping[str, PriceProvider],
    symbols: Iterable[str] | None = None,
    recompute: bool = True,
) -> list[str]:
    """Fetch and store fresh prices for catalog assets.

    Args:
        conn: Active DuckDB connection.
        providers: Mapping of api_source to provider.
        symbols: Optional subset of symbols to refresh.
        recompute: Recompute the holding of every refreshed asset that
            has one.

    Returns:
        Symbols whose price was refreshed.

    """
    wanted = {s.strip().upper() for s in symbols} if symbols is not None else None
    refreshed: list[str] = []

    for asset in list_assets(conn):
        symbol = asset["symbol"]
        if wanted is not None and symbol not in wanted:
            continue
        provider = providers.get(asset["api_source"] or "")
        if provider is None:
            continue

        api_id = asset["api_id"] or symbol
        try:
            quote = provider.fetch_price(api_id)
        except Exception:  # noqa: BLE001
            logger.warning(
                "Price fetch failed for %s via %s", symbol, asset["api_source"], exc_info=True
            )
            continue
        if quote is None or not math.isfinite(quote.price) or quote.price <= 0:
            logger.warning("No price for %s from %s", symbol, asset["api_source"])
            continue

        record_price_observation(
            conn, symbol, quote.price, quote.timestamp, asset["api_source"]
        )
        refresh_price(conn, symbol, quote.price, quote.timestamp)
        if recompute and get_holding(conn, symbol) is not None:
            recompute_holdings(conn, symbol)
        refreshed.append(symbol)

    logger.info("Refreshed %d prices", len(refreshed))
    return refreshed
