"""AssetTracker database layer.

Provides DuckDB-based storage for the asset catalog, transaction
ledger, derived holdings, daily snapshots, price history, watchlist
and key/value configuration. One module per store; every function
takes an open connection as its first argument.
"""
