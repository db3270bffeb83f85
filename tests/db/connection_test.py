"""Tests for DuckDB connection management."""

from __future__ import annotations

import tempfile
from pathlib import Path

from assettracker.db.connection import (
    default_db_path,
    fetch_dict,
    fetch_dicts,
    get_connection,
    init_db,
    init_memory_db,
)
from assettracker.db.schema import ALL_TABLES, TABLE_NAMES


class TestGetConnection:
    """Tests for database connection factory."""

    def test_in_memory_connection(self):
        conn = get_connection(None)
        assert conn.execute("SELECT 1").fetchone() == (1,)
        conn.close()

    def test_creates_parent_directories(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = Path(tmpdir) / "nested" / "deep" / "test.duckdb"
            conn = get_connection(db_path)
            conn.execute("SELECT 1").fetchone()
            conn.close()
            assert db_path.parent.exists()


class TestDefaultDbPath:
    """Tests for default database location."""

    def test_uses_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ASSETTRACKER_HOME", str(tmp_path))
        assert default_db_path() == tmp_path / "data" / "assettracker.duckdb"

    def test_falls_back_to_home(self, monkeypatch):
        monkeypatch.delenv("ASSETTRACKER_HOME", raising=False)
        path = default_db_path()
        assert path.parts[-3:] == (".assettracker", "data", "assettracker.duckdb")


class TestInitDb:
    """Tests for schema initialization."""

    def test_creates_all_tables(self):
        conn = init_memory_db()
        tables = {t[0] for t in conn.execute("SHOW TABLES").fetchall()}
        assert set(TABLE_NAMES).issubset(tables)
        conn.close()

    def test_tables_are_empty(self):
        conn = init_memory_db()
        for table in TABLE_NAMES:
            count = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()  # noqa: S608
            assert count[0] == 0
        conn.close()

    def test_idempotent_init(self):
        conn = init_memory_db()
        for ddl in ALL_TABLES:
            conn.execute(ddl)
        conn.close()

    def test_file_database_persists(self, tmp_path):
        db_path = tmp_path / "at.duckdb"
        conn = init_db(db_path)
        conn.execute("INSERT INTO config (key, value) VALUES ('k', 'v')")
        conn.close()

        conn = init_db(db_path)
        assert conn.execute("SELECT value FROM config WHERE key = 'k'").fetchone() == ("v",)
        conn.close()


class TestFetchHelpers:
    """Tests for row-to-dict helpers."""

    def test_fetch_dicts(self, db):
        db.execute("INSERT INTO config (key, value) VALUES ('a', '1'), ('b', '2')")
        rows = fetch_dicts(db, "SELECT key, value FROM config ORDER BY key")
        assert rows == [{"key": "a", "value": "1"}, {"key": "b", "value": "2"}]

    def test_fetch_dict_none_when_empty(self, db):
        assert fetch_dict(db, "SELECT * FROM config WHERE key = ?", ["x"]) is None
