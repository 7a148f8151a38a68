# tests/test_record_store.py
# Store-level behaviour: cascades, atomicity, default project, time logging.
from __future__ import annotations

from datetime import date, datetime

import pytest

from wlog.models.errors import ConstraintViolation, NotFound, StorageFailure
from wlog.record_store import RecordStore
from wlog.services.schedule_service import WeekBasedSchedule

from conftest import count


def _seed_full_project(store: RecordStore, project_id: int, name: str) -> None:
    store.projects.create_project(url=f"http://{name}", name=name, project_id=project_id)
    for n in range(2):
        t = store.tasks.create_task(project_id=project_id, name=f"{name}-{n}")
        store.log_entries.create_log_entry(date(2024, 1, 5), t.id, 30)
        store.log_entries.create_log_entry(date(2024, 1, 6), t.id, 15)
    store.schedule.set_schedule(project_id, WeekBasedSchedule(0b11111))
    store.schedule.log_schedule_month(project_id, date(2024, 1, 1))
    store.schedule.log_schedule_month(project_id, date(2024, 2, 1))


def test_delete_project_scenario(store):
    store.projects.create_project(url="http://x", name="Acme", project_id=1)
    store.tasks.create_task(project_id=1, name="Write report", task_id=10)
    store.log_entries.create_log_entry(date(2024, 1, 5), 10, 90)

    store.projects.delete_project(1)

    with pytest.raises(NotFound):
        store.tasks.get_task(10)
    with pytest.raises(NotFound):
        store.log_entries.get_log_entry(date(2024, 1, 5), 10)


def test_delete_project_cascades_everything_it_owns(store):
    _seed_full_project(store, 1, "acme")
    _seed_full_project(store, 2, "other")
    store.set_default_project(1)
    conn = store.db.conn

    store.projects.delete_project(1)

    assert store.get_default_project() is None
    assert count(conn, "tasks") == 2
    assert count(conn, "log_entries") == 4
    assert count(conn, "schedule_settings") == 1
    assert count(conn, "schedule_logs") == 2
    assert conn.execute("SELECT COUNT(*) FROM tasks WHERE project_id = 1").fetchone()[0] == 0
    with pytest.raises(NotFound):
        store.schedule.get_settings(1)


def test_default_pointing_elsewhere_survives_delete(store):
    _seed_full_project(store, 1, "acme")
    _seed_full_project(store, 2, "other")
    store.set_default_project(2)
    store.projects.delete_project(1)
    assert store.get_default_project().id == 2


def test_failed_cascade_leaves_no_partial_state(store):
    _seed_full_project(store, 1, "acme")
    conn = store.db.conn
    conn.execute(
        """
        CREATE TRIGGER block_project_delete BEFORE DELETE ON projects
        BEGIN SELECT RAISE(ABORT, 'blocked'); END
        """
    )

    with pytest.raises((ConstraintViolation, StorageFailure)):
        store.projects.delete_project(1)

    assert count(conn, "tasks") == 2
    assert count(conn, "log_entries") == 4
    assert count(conn, "schedule_settings") == 1
    assert count(conn, "schedule_logs") == 2
    assert not conn.in_transaction


def test_set_default_project_twice(store):
    a = store.projects.create_project(url="http://a", name="A")
    b = store.projects.create_project(url="http://b", name="B")
    store.set_default_project(a.id)
    store.set_default_project(b.id)
    assert count(store.db.conn, "default_project") == 1
    assert store.require_default_project() == b


def test_require_default_project_when_unset(store):
    with pytest.raises(NotFound):
        store.require_default_project()


def test_log_time_uses_default_project_and_threshold(store):
    p = store.projects.create_project(url="http://a", name="A")
    store.set_default_project(p.id)

    # fixture threshold is 04:00
    entry = store.log_time(60, name="Standup", now=datetime(2024, 1, 6, 2, 30))
    assert entry.date == date(2024, 1, 5)

    again = store.log_time(30, name="Standup", day=date(2024, 1, 5))
    assert again.duration_minutes == 90
    assert len(store.tasks.list_tasks(p.id)) == 1


def test_log_time_explicit_project(store):
    p = store.projects.create_project(url="http://a")
    entry = store.log_time(15, name="Fix", issue=3, project_id=p.id, day=date(2024, 5, 1))
    task = store.tasks.get_task(entry.task_id)
    assert (task.project_id, task.issue) == (p.id, 3)


def test_open_twice_reuses_schema(tmp_path):
    path = tmp_path / "w.db"
    with RecordStore.open(path, settings={}) as s:
        s.projects.create_project(url="http://a", name="A")
    with RecordStore.open(path, settings={}) as s:
        assert [p.name for p in s.projects.list_projects()] == ["A"]


def test_open_resolves_path_from_settings(tmp_path, monkeypatch):
    monkeypatch.delenv("WLOG_DB", raising=False)
    path = tmp_path / "nested" / "from_settings.db"
    with RecordStore.open(settings={"data_path": str(path)}):
        pass
    assert path.exists()


def test_log_time_bad_duration_creates_no_task(store):
    p = store.projects.create_project(url="http://a", name="A")
    with pytest.raises(ConstraintViolation):
        store.log_time(1.5, name="Brand new", project_id=p.id, day=date(2024, 1, 5))
    assert store.tasks.list_tasks(p.id) == []


def test_log_time_bad_day_creates_no_task(store):
    p = store.projects.create_project(url="http://a", name="A")
    with pytest.raises(ConstraintViolation):
        store.log_time(30, name="Brand new", project_id=p.id, day="2024-01-05")
    assert store.tasks.list_tasks(p.id) == []


def test_log_time_failed_insert_rolls_back_new_task(store):
    p = store.projects.create_project(url="http://a", name="A")
    conn = store.db.conn
    conn.execute(
        """
        CREATE TRIGGER block_log_insert BEFORE INSERT ON log_entries
        BEGIN SELECT RAISE(ABORT, 'blocked'); END
        """
    )

    with pytest.raises((ConstraintViolation, StorageFailure)):
        store.log_time(30, name="Brand new", project_id=p.id, day=date(2024, 1, 5))

    assert store.tasks.list_tasks(p.id) == []
    assert count(conn, "log_entries") == 0
    assert not conn.in_transaction


def test_log_time_with_datetime_day(store):
    p = store.projects.create_project(url="http://a", name="A")
    store.log_time(30, name="Fix", project_id=p.id, day=datetime(2024, 1, 5, 9, 0))
    entry = store.log_time(15, name="Fix", project_id=p.id, day=datetime(2024, 1, 5, 18, 0))
    assert entry.date == date(2024, 1, 5)
    assert entry.duration_minutes == 45


def test_clear_default_project_through_store(store):
    p = store.projects.create_project(url="http://a", name="A")
    store.set_default_project(p.id)
    store.clear_default_project()
    assert store.get_default_project() is None
    with pytest.raises(NotFound):
        store.clear_default_project()
