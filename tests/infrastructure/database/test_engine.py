"""Tests for database engine setup."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest
from sqlalchemy import inspect, select, text
from sqlalchemy.engine import Engine

from lockerctl.infrastructure.database.engine import init_database
from lockerctl.infrastructure.database.schema import COUNTER_KEYS, id_counters


class TestInitDatabase:
    def test_creates_all_tables(self, db_engine: Engine) -> None:
        tables = set(inspect(db_engine).get_table_names())
        assert {
            "locker_systems",
            "lockers",
            "custody_open",
            "custody_ledger",
            "id_counters",
        } <= tables

    def test_seeds_counters(self, db_engine: Engine) -> None:
        with db_engine.connect() as conn:
            rows = conn.execute(select(id_counters)).all()
        assert {row.type_prefix: row.next_value for row in rows} == dict.fromkeys(COUNTER_KEYS, 1)

    def test_pragmas(self, db_engine: Engine) -> None:
        with db_engine.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1

    def test_idempotent(self, tmp_path: Path) -> None:
        init_database(tmp_path).dispose()
        engine = init_database(tmp_path)
        try:
            with engine.connect() as conn:
                assert len(conn.execute(select(id_counters)).all()) == len(COUNTER_KEYS)
        finally:
            engine.dispose()

    def test_custom_location(self, tmp_path: Path) -> None:
        engine = init_database(tmp_path, db_dir="state", db_name="lockers.db")
        engine.dispose()
        assert (tmp_path / "state" / "lockers.db").is_file()
        assert (tmp_path / "state" / "plugins").is_dir()


class TestBeginMode:
    def _other_writer(self, tmp_path: Path) -> sqlite3.Connection:
        return sqlite3.connect(tmp_path / ".lockerctl" / "lockerctl.db", timeout=0)

    def test_immediate_takes_write_lock(self, db_engine: Engine, tmp_path: Path) -> None:
        other = self._other_writer(tmp_path)
        try:
            with db_engine.connect() as conn:
                conn = conn.execution_options(sqlite_begin="IMMEDIATE")
                with conn.begin():
                    with pytest.raises(sqlite3.OperationalError, match="locked"):
                        other.execute("BEGIN IMMEDIATE")
            other.execute("BEGIN IMMEDIATE")
            other.rollback()
        finally:
            other.close()

    def test_default_begin_is_deferred(self, db_engine: Engine, tmp_path: Path) -> None:
        other = self._other_writer(tmp_path)
        try:
            with db_engine.connect() as conn, conn.begin():
                conn.execute(select(id_counters)).all()
                other.execute("BEGIN IMMEDIATE")
                other.rollback()
        finally:
            other.close()
