# Rev 0.2.0

"""Pytest fixtures for wlog (Rev 0.2.0)"""
from __future__ import annotations
import pytest
from pathlib import Path

from wlog.record_store import RecordStore
from wlog.repositories.db import Database




@pytest.fixture()
def db(tmp_path: Path):
    database = Database(path=tmp_path / "test.db")
    try:
        database.run_migrations()
        yield database
    finally:
        database.close()


@pytest.fixture()
def db_conn(db: Database):
    return db.conn


@pytest.fixture()
def store(tmp_path: Path):
    s = RecordStore.open(tmp_path / "store.db", settings={"day_change_threshold": "04:00"})
    try:
        yield s
    finally:
        s.close()


def count(conn, table: str) -> int:
    return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
