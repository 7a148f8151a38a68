# Rev 0.2.0
# wlog – SQLiteLogEntryRepository (Rev 0.2.0)
from __future__ import annotations

import sqlite3
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Union

from wlog.models.entities import LogEntry, LogEntryExpanded, TaskTotal
from wlog.models.errors import ConstraintViolation, NotFound
from wlog.models.types import Period
from wlog.repositories.db import Database
from wlog.repositories.sqlite_task_repository import SQLiteTaskRepository
from wlog.utils.logging_setup import get_logger


_log = get_logger(__name__)

Duration = Union[int, timedelta]


def whole_minutes(duration: Duration) -> int:
    """Durations are stored as whole minutes; timedeltas are truncated."""
    if duration is None:
        raise ConstraintViolation("duration_minutes is required")
    if isinstance(duration, timedelta):
        # toward zero, so -90s is -1 minute
        return int(duration.total_seconds() / 60)
    if isinstance(duration, bool) or not isinstance(duration, int):
        raise ConstraintViolation(f"duration_minutes must be a whole number of minutes, got {duration!r}")
    return duration


def log_day(day) -> date:
    """Entries are keyed by calendar day; a datetime contributes only its date."""
    if isinstance(day, datetime):
        return day.date()
    if not isinstance(day, date):
        raise ConstraintViolation(f"log entry date must be a date, got {day!r}")
    return day


class SQLiteLogEntryRepository:
    """
    Per-day time log: one row per (date, task_id).
    create_log_entry() refuses duplicates; add_log() accumulates into them.
    """

    def __init__(self, db: Database):
        self._db = db

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> LogEntry:
        return LogEntry(
            date=date.fromisoformat(row["date"]),
            task_id=row["task_id"],
            duration_minutes=row["duration_minutes"],
        )

    @staticmethod
    def _exists(con: sqlite3.Connection, day: date, task_id: int) -> bool:
        row = con.execute(
            "SELECT 1 FROM log_entries WHERE date = ? AND task_id = ?", (day.isoformat(), task_id)
        ).fetchone()
        return row is not None

    # ---------- CRUD ----------

    def create_log_entry(self, day: date, task_id: int, duration: Duration) -> LogEntry:
        day = log_day(day)
        minutes = whole_minutes(duration)
        with self._db.transaction("create log entry") as con:
            if not SQLiteTaskRepository.exists(con, task_id):
                raise ConstraintViolation(f"Task {task_id} doesn't exist")
            if self._exists(con, day, task_id):
                raise ConstraintViolation(f"Log entry for task {task_id} on {day} already exists")
            con.execute(
                "INSERT INTO log_entries(date, task_id, duration_minutes) VALUES (?, ?, ?)",
                (day.isoformat(), task_id, minutes),
            )
        _log.info("Logged %d min on task %s for %s", minutes, task_id, day)
        return LogEntry(date=day, task_id=task_id, duration_minutes=minutes)

    def get_log_entry(self, day: date, task_id: int) -> LogEntry:
        day = log_day(day)
        row = self._db.fetchone(
            "SELECT date, task_id, duration_minutes FROM log_entries WHERE date = ? AND task_id = ?",
            (day.isoformat(), task_id),
        )
        if row is None:
            raise NotFound("log_entry", (day, task_id))
        return self._row_to_entry(row)

    def update_log_entry(self, day: date, task_id: int, duration: Duration) -> LogEntry:
        day = log_day(day)
        minutes = whole_minutes(duration)
        with self._db.transaction("update log entry") as con:
            if not self._exists(con, day, task_id):
                raise NotFound("log_entry", (day, task_id))
            con.execute(
                "UPDATE log_entries SET duration_minutes = ? WHERE date = ? AND task_id = ?",
                (minutes, day.isoformat(), task_id),
            )
        _log.info("Updated log entry %s/%s to %d min", day, task_id, minutes)
        return LogEntry(date=day, task_id=task_id, duration_minutes=minutes)

    def delete_log_entry(self, day: date, task_id: int) -> None:
        day = log_day(day)
        with self._db.transaction("delete log entry") as con:
            if not self._exists(con, day, task_id):
                raise NotFound("log_entry", (day, task_id))
            con.execute("DELETE FROM log_entries WHERE date = ? AND task_id = ?", (day.isoformat(), task_id))
        _log.info("Deleted log entry %s/%s", day, task_id)

    def add_log(self, day: date, task_id: int, duration: Duration) -> LogEntry:
        """Insert, or add the duration onto the existing entry for that day."""
        day = log_day(day)
        minutes = whole_minutes(duration)
        with self._db.transaction("add log") as con:
            if not SQLiteTaskRepository.exists(con, task_id):
                raise ConstraintViolation(f"Task {task_id} doesn't exist")
            con.execute(
                """
                INSERT INTO log_entries(date, task_id, duration_minutes) VALUES (?, ?, ?)
                ON CONFLICT(date, task_id)
                DO UPDATE SET duration_minutes = duration_minutes + excluded.duration_minutes
                """,
                (day.isoformat(), task_id, minutes),
            )
            row = con.execute(
                "SELECT date, task_id, duration_minutes FROM log_entries WHERE date = ? AND task_id = ?",
                (day.isoformat(), task_id),
            ).fetchone()
        _log.info("Added %d min on task %s for %s", minutes, task_id, day)
        return self._row_to_entry(row)

    # ---------- listings ----------

    def list_log_entries(self, task_id: int) -> List[LogEntry]:
        rows = self._db.fetchall(
            "SELECT date, task_id, duration_minutes FROM log_entries WHERE task_id = ? ORDER BY date",
            (task_id,),
        )
        return [self._row_to_entry(r) for r in rows]

    def list_by_day(self, project_id: int, period: Optional[Period] = None) -> List[LogEntryExpanded]:
        where, params = ["t.project_id = ?"], [project_id]
        if period is not None:
            where.append("l.date BETWEEN ? AND ?")
            params.extend([log_day(period.start).isoformat(), log_day(period.end).isoformat()])
        rows = self._db.fetchall(
            f"""
            SELECT l.date, l.task_id, t.name AS task_name, t.issue, l.duration_minutes
            FROM log_entries l
            JOIN tasks t ON t.id = l.task_id
            WHERE {' AND '.join(where)}
            ORDER BY l.date, l.task_id
            """,
            tuple(params),
        )
        return [
            LogEntryExpanded(
                date=date.fromisoformat(r["date"]),
                task_id=r["task_id"],
                task_name=r["task_name"],
                issue=r["issue"],
                duration_minutes=r["duration_minutes"],
            )
            for r in rows
        ]

    def totals_by_task(self, project_id: int, period: Optional[Period] = None) -> List[TaskTotal]:
        """Summed minutes per task, in the order each task first appears by date."""
        totals: Dict[int, TaskTotal] = {}
        for e in self.list_by_day(project_id, period):
            if e.task_id in totals:
                totals[e.task_id].duration_minutes += e.duration_minutes
            else:
                totals[e.task_id] = TaskTotal(e.task_id, e.task_name, e.issue, e.duration_minutes)
        return list(totals.values())
