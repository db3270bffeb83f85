"""Key/value configuration store.

Holds process-wide named settings: the shared application password,
version and deployment metadata, the last snapshot date. Values are
opaque text; interpretation is up to the reader.
"""

from __future__ import annotations

import hmac
import logging
from typing import TYPE_CHECKING, Any

from assettracker.db.connection import fetch_dict, fetch_dicts, utcnow
from assettracker.errors import ValidationError

if TYPE_CHECKING:
    import duckdb

logger = logging.getLogger(__name__)

APP_PASSWORD_KEY = "app_password"


def _require_key(key: str) -> str:
    if not key or not key.strip():
        msg = "config key must be a non-empty string"
        raise ValidationError(msg)
    return key.strip()


def get_config(
    conn: duckdb.DuckDBPyConnection,
    key: str,
    default: str | None = None,
) -> str | None:
    """Read a setting, returning ``default`` when it is absent."""
    row = conn.execute(
        "SELECT value FROM config WHERE key = ?", [_require_key(key)]
    ).fetchone()
    return default if row is None else row[0]


def get_config_entry(
    conn: duckdb.DuckDBPyConnection,
    key: str,
) -> dict[str, Any] | None:
    """Read a setting with its timestamps, or None."""
    return fetch_dict(conn, "SELECT * FROM config WHERE key = ?", [_require_key(key)])


def set_config(conn: duckdb.DuckDBPyConnection, key: str, value: str) -> None:
    """Create or overwrite a setting."""
    key = _require_key(key)
    now = utcnow()
    conn.execute(
        """
        INSERT INTO config (key, value, created_at, updated_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT (key) DO UPDATE SET
            value = excluded.value,
            updated_at = excluded.updated_at
        """,
        [key, str(value), now, now],
    )
    # Never log the password itself
    logger.info("Config %s updated", key)


def set_config_default(conn: duckdb.DuckDBPyConnection, key: str, value: str) -> bool:
    """Create a setting only if it is absent.

    Returns:
        True if the setting was created.

    """
    key = _require_key(key)
    if conn.execute("SELECT 1 FROM config WHERE key = ?", [key]).fetchone():
        return False
    now = utcnow()
    conn.execute(
        """
        INSERT INTO config (key, value, created_at, updated_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT (key) DO NOTHING
        """,
        [key, str(value), now, now],
    )
    return True


def list_config(conn: duckdb.DuckDBPyConnection) -> list[dict[str, Any]]:
    """All settings ordered by key, with the password value masked."""
    rows = fetch_dicts(conn, "SELECT * FROM config ORDER BY key")
    for row in rows:
        if row["key"] == APP_PASSWORD_KEY:
            row["value"] = "********"
    return rows


def verify_password(conn: duckdb.DuckDBPyConnection, candidate: str) -> bool:
    """Check a candidate against the stored application password.

    Uses a constant-time comparison. Returns False when no password has
    been configured.
    """
    stored = get_config(conn, APP_PASSWORD_KEY)
    if stored is None or candidate is None:
        return False
    return hmac.compare_digest(str(candidate).encode(), stored.encode())
