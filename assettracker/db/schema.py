"""DuckDB schema definitions for AssetTracker.

Contains DDL statements for all tables:
- config: Key/value application settings (password, version, deployment)
- assets: Catalog of tradable/trackable instruments
- transactions: Buy/sell/trade ledger referencing the catalog
- holdings: Materialized per-asset position derived from the ledger
- daily_snapshots: Once-per-day valuation record per asset
- price_history: Observed prices, deduplicated per (asset, instant, source)
- watchlist: User-curated assets with alert thresholds

Surrogate ids come from sequences. No triggers: holdings and snapshots
are recomputed by explicit calls.

"""

from __future__ import annotations

ASSET_CATEGORIES: frozenset[str] = frozenset({"stocks", "etfs", "crypto", "fiat"})

TRANSACTION_TYPES: frozenset[str] = frozenset({"buy", "sell", "trade_in", "trade_out"})

# Types that increase the net position; the others decrease it
INFLOW_TYPES: frozenset[str] = frozenset({"buy", "trade_in"})


def _in_list(values: frozenset[str]) -> str:
    return ", ".join(f"'{v}'" for v in sorted(values))


# ── Sequences ──

CREATE_SEQUENCES = """
CREATE SEQUENCE IF NOT EXISTS transactions_id_seq START 1;
CREATE SEQUENCE IF NOT EXISTS daily_snapshots_id_seq START 1;
CREATE SEQUENCE IF NOT EXISTS price_history_id_seq START 1;
CREATE SEQUENCE IF NOT EXISTS watchlist_id_seq START 1;
"""

# ── Config ──

CREATE_CONFIG = """
CREATE TABLE IF NOT EXISTS config (
    key          VARCHAR PRIMARY KEY,
    value        VARCHAR NOT NULL,
    created_at   TIMESTAMP DEFAULT current_timestamp,
    updated_at   TIMESTAMP DEFAULT current_timestamp
);
"""

# ── Assets ──

CREATE_ASSETS = f"""
CREATE TABLE IF NOT EXISTS assets (
    symbol            VARCHAR PRIMARY KEY,
    name              VARCHAR NOT NULL,
    category          VARCHAR NOT NULL
                      CHECK (category IN ({_in_list(ASSET_CATEGORIES)})),
    subcategory       VARCHAR,
    exchange          VARCHAR,
    api_source        VARCHAR,
    api_id            VARCHAR,
    current_price     DOUBLE,
    price_updated_at  TIMESTAMP,
    created_at        TIMESTAMP DEFAULT current_timestamp,
    updated_at        TIMESTAMP DEFAULT current_timestamp
);
"""

# ── Transactions ──

CREATE_TRANSACTIONS = f"""
CREATE TABLE IF NOT EXISTS transactions (
    id                     BIGINT PRIMARY KEY DEFAULT nextval('transactions_id_seq'),
    type                   VARCHAR NOT NULL
                           CHECK (type IN ({_in_list(TRANSACTION_TYPES)})),
    asset_symbol           VARCHAR NOT NULL REFERENCES assets (symbol),
    exchange               VARCHAR NOT NULL,
    quantity               DOUBLE NOT NULL CHECK (quantity > 0),
    price_per_unit         DOUBLE NOT NULL CHECK (price_per_unit > 0),
    total_amount           DOUBLE NOT NULL,
    fees                   DOUBLE DEFAULT 0,
    notes                  VARCHAR DEFAULT '',
    transaction_date       TIMESTAMP NOT NULL,
    purchase_location      VARCHAR,
    purchase_time          VARCHAR,
    purchase_method        VARCHAR,
    transaction_reference  VARCHAR,
    currency               VARCHAR DEFAULT 'USD',
    created_at             TIMESTAMP DEFAULT current_timestamp,
    updated_at             TIMESTAMP DEFAULT current_timestamp
);
"""

# ── Holdings ──

CREATE_HOLDINGS = """
CREATE TABLE IF NOT EXISTS holdings (
    asset_symbol        VARCHAR PRIMARY KEY REFERENCES assets (symbol),
    quantity            DOUBLE NOT NULL,
    avg_purchase_price  DOUBLE NOT NULL,
    total_invested      DOUBLE NOT NULL,
    current_value       DOUBLE,
    unrealized_pnl      DOUBLE,
    last_updated        TIMESTAMP DEFAULT current_timestamp
);
"""

# ── Daily Snapshots ──

CREATE_DAILY_SNAPSHOTS = """
CREATE TABLE IF NOT EXISTS daily_snapshots (
    id              BIGINT PRIMARY KEY DEFAULT nextval('daily_snapshots_id_seq'),
    asset_symbol    VARCHAR NOT NULL REFERENCES assets (symbol),
    snapshot_date   DATE NOT NULL,
    quantity        DOUBLE NOT NULL,
    price_per_unit  DOUBLE NOT NULL,
    total_value     DOUBLE NOT NULL,
    unrealized_pnl  DOUBLE NOT NULL,
    created_at      TIMESTAMP DEFAULT current_timestamp,
    UNIQUE (asset_symbol, snapshot_date)
);
"""

# ── Price History ──

CREATE_PRICE_HISTORY = """
CREATE TABLE IF NOT EXISTS price_history (
    id            BIGINT PRIMARY KEY DEFAULT nextval('price_history_id_seq'),
    asset_symbol  VARCHAR NOT NULL REFERENCES assets (symbol),
    price         DOUBLE NOT NULL,
    "timestamp"   TIMESTAMP NOT NULL,
    source        VARCHAR NOT NULL,
    UNIQUE (asset_symbol, "timestamp", source)
);
"""

# ── Watchlist ──

CREATE_WATCHLIST = f"""
CREATE TABLE IF NOT EXISTS watchlist (
    id              BIGINT PRIMARY KEY DEFAULT nextval('watchlist_id_seq'),
    asset_symbol    VARCHAR NOT NULL REFERENCES assets (symbol),
    name            VARCHAR,
    category        VARCHAR NOT NULL
                    CHECK (category IN ({_in_list(ASSET_CATEGORIES)})),
    notes           VARCHAR,
    target_price    DOUBLE,
    alert_percent   DOUBLE,
    active_alerts   BOOLEAN DEFAULT FALSE,
    baseline_price  DOUBLE,
    added_at        TIMESTAMP DEFAULT current_timestamp,
    updated_at      TIMESTAMP DEFAULT current_timestamp
);
"""

# ── Indices ──

CREATE_INDICES = """
CREATE INDEX IF NOT EXISTS idx_assets_category ON assets (category);
CREATE INDEX IF NOT EXISTS idx_transactions_asset ON transactions (asset_symbol);
CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions (transaction_date);
CREATE INDEX IF NOT EXISTS idx_transactions_type ON transactions (type);
CREATE INDEX IF NOT EXISTS idx_transactions_purchase_location
    ON transactions (purchase_location);
CREATE INDEX IF NOT EXISTS idx_transactions_purchase_method
    ON transactions (purchase_method);
CREATE INDEX IF NOT EXISTS idx_transactions_currency ON transactions (currency);
CREATE INDEX IF NOT EXISTS idx_snapshots_date ON daily_snapshots (snapshot_date);
CREATE INDEX IF NOT EXISTS idx_snapshots_asset_date
    ON daily_snapshots (asset_symbol, snapshot_date);
CREATE INDEX IF NOT EXISTS idx_price_history_asset ON price_history (asset_symbol);
CREATE INDEX IF NOT EXISTS idx_price_history_timestamp ON price_history ("timestamp");
CREATE INDEX IF NOT EXISTS idx_watchlist_symbol ON watchlist (asset_symbol);
CREATE INDEX IF NOT EXISTS idx_watchlist_added_at ON watchlist (added_at);
CREATE INDEX IF NOT EXISTS idx_watchlist_active_alerts ON watchlist (active_alerts);
"""

# All DDL statements in creation order (assets before anything referencing it)
ALL_TABLES: list[str] = [
    CREATE_SEQUENCES,
    CREATE_CONFIG,
    CREATE_ASSETS,
    CREATE_TRANSACTIONS,
    CREATE_HOLDINGS,
    CREATE_DAILY_SNAPSHOTS,
    CREATE_PRICE_HISTORY,
    CREATE_WATCHLIST,
    CREATE_INDICES,
]

TABLE_NAMES: tuple[str, ...] = (
    "config",
    "assets",
    "transactions",
    "holdings",
    "daily_snapshots",
    "price_history",
    "watchlist",
)
