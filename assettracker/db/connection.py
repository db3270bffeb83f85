"""DuckDB connection management for AssetTracker.

Handles database initialization, schema creation, and connection
lifecycle. The default database lives under the AssetTracker home
directory, which can be overridden with ``ASSETTRACKER_HOME``::

    ~/.assettracker/
      data/
        assettracker.duckdb

"""

from __future__ import annotations

import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import duckdb

from assettracker.db.schema import ALL_TABLES

logger = logging.getLogger(__name__)

_DB_FILENAME = "assettracker.duckdb"


def default_db_path() -> Path:
    """Resolve the default database file path.

    Returns:
        ``$ASSETTRACKER_HOME/data/assettracker.duckdb`` when the variable
        is set, otherwise ``~/.assettracker/data/assettracker.duckdb``.

    """
    home = os.environ.get("ASSETTRACKER_HOME", "").strip()
    base = Path(home) if home else Path.home() / ".assettracker"
    return base / "data" / _DB_FILENAME


def get_connection(
    db_path: str | Path | None = None,
    read_only: bool = False,
) -> duckdb.DuckDBPyConnection:
    """Open a DuckDB connection.

    Args:
        db_path: Path to the .duckdb file. If None, uses in-memory database.
        read_only: Open in read-only mode.

    Returns:
        Active DuckDB connection.

    """
    if db_path is None:
        return duckdb.connect(":memory:")

    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path), read_only=read_only)


def create_schema(conn: duckdb.DuckDBPyConnection) -> None:
    """Run every DDL statement. Safe to repeat (IF NOT EXISTS)."""
    for ddl in ALL_TABLES:
        conn.execute(ddl)


def init_db(
    db_path: str | Path | None = None,
) -> duckdb.DuckDBPyConnection:
    """Initialize the AssetTracker database with schema.

    Args:
        db_path: Path to the database file. Defaults to
            :func:`default_db_path`.

    Returns:
        Initialized DuckDB connection.

    """
    if db_path is None:
        db_path = default_db_path()

    conn = get_connection(db_path)
    create_schema(conn)
    logger.info("Database initialized at %s", db_path)
    return conn


def init_memory_db() -> duckdb.DuckDBPyConnection:
    """Create an in-memory database with full schema.

    Useful for testing and ephemeral operations.

    Returns:
        In-memory DuckDB connection with all tables created.

    """
    conn = get_connection(None)
    create_schema(conn)
    return conn


def fetch_dicts(
    conn: duckdb.DuckDBPyConnection,
    query: str,
    params: list[Any] | None = None,
) -> list[dict[str, Any]]:
    """Run a query and return every row as a column-name dict."""
    result = conn.execute(query, params or []).fetchall()
    columns = [desc[0] for desc in conn.description]
    return [dict(zip(columns, row, strict=True)) for row in result]


def fetch_dict(
    conn: duckdb.DuckDBPyConnection,
    query: str,
    params: list[Any] | None = None,
) -> dict[str, Any] | None:
    """Run a query and return the first row as a dict, or None."""
    row = conn.execute(query, params or []).fetchone()
    if row is None:
        return None
    columns = [desc[0] for desc in conn.description]
    return dict(zip(columns, row, strict=True))


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (TIMESTAMP columns are UTC)."""
    return datetime.now(tz=UTC).replace(tzinfo=None)
