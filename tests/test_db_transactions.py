# tests/test_db_transactions.py
# Transaction boundaries on the shared connection: nesting, commit failure, threads.
from __future__ import annotations

import sqlite3
import threading

import pytest

from wlog.models.errors import NotFound, StorageFailure
from wlog.repositories.sqlite_project_repository import SQLiteProjectRepository
from wlog.repositories.sqlite_task_repository import SQLiteTaskRepository

from conftest import count


class _FailingCommit:
    """Connection stand-in whose first COMMIT raises."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn
        self.failed = False

    @property
    def in_transaction(self) -> bool:
        return self._conn.in_transaction

    def execute(self, sql, params=()):
        if sql == "COMMIT;" and not self.failed:
            self.failed = True
            raise sqlite3.OperationalError("disk I/O error")
        return self._conn.execute(sql, params)


def test_nested_transaction_joins_outer(db, db_conn):
    with pytest.raises(RuntimeError):
        with db.transaction("outer") as con:
            con.execute("INSERT INTO projects(id, url) VALUES (1, 'http://a')")
            with db.transaction("inner") as inner:
                assert inner is con
                inner.execute("INSERT INTO projects(id, url) VALUES (2, 'http://b')")
            assert db_conn.in_transaction
            raise RuntimeError("abort outer")
    assert count(db_conn, "projects") == 0
    assert not db_conn.in_transaction


def test_inner_failure_rolls_back_outer_work(db, db_conn):
    projects = SQLiteProjectRepository(db)
    with pytest.raises(NotFound):
        with db.transaction("outer"):
            projects.create_project(url="http://a", name="A")
            projects.update_project(99, url="http://missing")
    assert projects.list_projects() == []

    # the connection is usable again
    projects.create_project(url="http://b", name="B")
    assert count(db_conn, "projects") == 1


def test_commit_failure_rolls_back(db):
    real = db.conn
    db.conn = _FailingCommit(real)
    try:
        with pytest.raises(StorageFailure):
            with db.transaction("create project") as con:
                con.execute("INSERT INTO projects(id, url) VALUES (1, 'http://a')")
        assert db.conn.failed
        assert not real.in_transaction
        assert count(real, "projects") == 0

        with db.transaction("create project") as con:
            con.execute("INSERT INTO projects(id, url) VALUES (2, 'http://b')")
    finally:
        db.conn = real
    assert [r[0] for r in real.execute("SELECT id FROM projects")] == [2]


def test_reader_waits_for_writer_on_shared_connection(db):
    projects = SQLiteProjectRepository(db)
    tasks = SQLiteTaskRepository(db)
    p = projects.create_project(url="http://a", name="A")
    tasks.create_task(project_id=p.id, name="Keep", task_id=10)

    deleted = threading.Event()
    release = threading.Event()
    seen = []

    def writer():
        try:
            with db.transaction("delete then fail") as con:
                con.execute("DELETE FROM tasks WHERE id = 10")
                deleted.set()
                release.wait(5)
                raise RuntimeError("abort")
        except RuntimeError:
            pass

    def reader():
        seen.append(tasks.get_task(10))

    w = threading.Thread(target=writer)
    w.start()
    assert deleted.wait(5)
    r = threading.Thread(target=reader)
    r.start()
    r.join(0.2)
    # the uncommitted delete must not be visible; the reader is held back instead
    assert r.is_alive()
    release.set()
    w.join(5)
    r.join(5)
    assert not r.is_alive()
    assert [t.id for t in seen] == [10]


def test_concurrent_writers_share_connection(db, db_conn):
    projects = SQLiteProjectRepository(db)
    errors = []

    def create(prefix: str):
        try:
            for n in range(25):
                projects.create_project(url=f"http://{prefix}/{n}", name=f"{prefix}-{n}")
        except Exception as exc:  # surfaced through the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=create, args=(prefix,)) for prefix in ("a", "b")]
    for t in threads:
        t.start()
    for t in threads:
        t.join(10)

    assert errors == []
    assert count(db_conn, "projects") == 50
    assert not db_conn.in_transaction
