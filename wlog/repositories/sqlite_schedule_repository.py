# Rev 0.2.0
# wlog – SQLiteScheduleRepository (Rev 0.2.0, schedule_settings + schedule_logs)
from __future__ import annotations
import sqlite3
from datetime import date
from typing import List, Optional

from wlog.models.entities import ScheduleLog, ScheduleSettings
from wlog.models.errors import ConstraintViolation, NotFound
from wlog.repositories.db import Database
from wlog.repositories.sqlite_project_repository import SQLiteProjectRepository
from wlog.services.schedule_service import (
    DEFAULT_WORKDAY_MINUTES,
    WeekBasedSchedule,
    month_bitmap,
    month_index,
)
from wlog.utils.logging_setup import get_logger


_log = get_logger(__name__)


class SQLiteScheduleRepository:
    """
    Per-project schedule settings (one row per project) and monthly schedule logs.
    Bitmask columns are stored as given; see services.schedule_service for decoding.
    """

    def __init__(self, db: Database):
        self._db = db

    # --- internals ----------------------------------------------------------

    @staticmethod
    def _require_project(con: sqlite3.Connection, project_id: int) -> None:
        if not SQLiteProjectRepository.exists(con, project_id):
            raise ConstraintViolation(f"Project {project_id} doesn't exist")

    @staticmethod
    def _settings_exist(con: sqlite3.Connection, project_id: int) -> bool:
        return con.execute(
            "SELECT 1 FROM schedule_settings WHERE project_id = ?", (project_id,)
        ).fetchone() is not None

    @staticmethod
    def _log_exists(con: sqlite3.Connection, project_id: int, month: int) -> bool:
        return con.execute(
            "SELECT 1 FROM schedule_logs WHERE project_id = ? AND month = ?", (project_id, month)
        ).fetchone() is not None

    # --- settings -----------------------------------------------------------

    def create_settings(
        self, project_id: int, *, weekdays: Optional[int] = None, workday_minutes: Optional[int] = None
    ) -> ScheduleSettings:
        with self._db.transaction("create schedule settings") as con:
            self._require_project(con, project_id)
            if self._settings_exist(con, project_id):
                raise ConstraintViolation(f"Schedule settings for project {project_id} already exist")
            con.execute(
                "INSERT INTO schedule_settings(project_id, weekdays, workday_minutes) VALUES (?, ?, ?)",
                (project_id, weekdays, workday_minutes),
            )
        _log.info("Created schedule settings for project %s", project_id)
        return ScheduleSettings(project_id, weekdays, workday_minutes)

    def get_settings(self, project_id: int) -> ScheduleSettings:
        row = self._db.fetchone(
            "SELECT project_id, weekdays, workday_minutes FROM schedule_settings WHERE project_id = ?",
            (project_id,),
        )
        if row is None:
            raise NotFound("schedule_settings", project_id)
        return ScheduleSettings(row["project_id"], row["weekdays"], row["workday_minutes"])

    def update_settings(
        self, project_id: int, *, weekdays: Optional[int] = None, workday_minutes: Optional[int] = None
    ) -> ScheduleSettings:
        with self._db.transaction("update schedule settings") as con:
            if not self._settings_exist(con, project_id):
                raise NotFound("schedule_settings", project_id)
            con.execute(
                "UPDATE schedule_settings SET weekdays = ?, workday_minutes = ? WHERE project_id = ?",
                (weekdays, workday_minutes, project_id),
            )
        _log.info("Updated schedule settings for project %s", project_id)
        return ScheduleSettings(project_id, weekdays, workday_minutes)

    def delete_settings(self, project_id: int) -> None:
        with self._db.transaction("delete schedule settings") as con:
            if not self._settings_exist(con, project_id):
                raise NotFound("schedule_settings", project_id)
            con.execute("DELETE FROM schedule_settings WHERE project_id = ?", (project_id,))
        _log.info("Deleted schedule settings for project %s", project_id)

    def set_schedule(
        self,
        project_id: int,
        schedule: WeekBasedSchedule,
        workday_minutes: Optional[int] = DEFAULT_WORKDAY_MINUTES,
    ) -> ScheduleSettings:
        """Upsert the project's weekly schedule."""
        with self._db.transaction("set schedule") as con:
            self._require_project(con, project_id)
            con.execute(
                """
                INSERT INTO schedule_settings(project_id, weekdays, workday_minutes) VALUES (?, ?, ?)
                ON CONFLICT(project_id) DO UPDATE
                SET weekdays = excluded.weekdays, workday_minutes = excluded.workday_minutes
                """,
                (project_id, schedule.bits, workday_minutes),
            )
        _log.info("Schedule for project %s set to weekdays=%s", project_id, schedule.weekdays())
        return ScheduleSettings(project_id, schedule.bits, workday_minutes)

    def get_schedule(self, project_id: int) -> Optional[WeekBasedSchedule]:
        row = self._db.fetchone(
            "SELECT weekdays FROM schedule_settings WHERE project_id = ?", (project_id,)
        )
        if row is None or row["weekdays"] is None:
            return None
        return WeekBasedSchedule.from_column(row["weekdays"])

    # --- logs ---------------------------------------------------------------

    def create_log(self, project_id: int, month: int, bitmap: int) -> ScheduleLog:
        if bitmap is None:
            raise ConstraintViolation("Schedule log bitmap is required")
        with self._db.transaction("create schedule log") as con:
            self._require_project(con, project_id)
            if self._log_exists(con, project_id, month):
                raise ConstraintViolation(f"Schedule log for project {project_id}, month {month} already exists")
            con.execute(
                "INSERT INTO schedule_logs(project_id, month, bitmap) VALUES (?, ?, ?)",
                (project_id, month, bitmap),
            )
        _log.info("Created schedule log for project %s, month %s", project_id, month)
        return ScheduleLog(project_id, month, bitmap)

    def get_log(self, project_id: int, month: int) -> ScheduleLog:
        row = self._db.fetchone(
            "SELECT project_id, month, bitmap FROM schedule_logs WHERE project_id = ? AND month = ?",
            (project_id, month),
        )
        if row is None:
            raise NotFound("schedule_log", (project_id, month))
        return ScheduleLog(row["project_id"], row["month"], row["bitmap"])

    def list_logs(self, project_id: int) -> List[ScheduleLog]:
        rows = self._db.fetchall(
            "SELECT project_id, month, bitmap FROM schedule_logs WHERE project_id = ? ORDER BY month",
            (project_id,),
        )
        return [ScheduleLog(r["project_id"], r["month"], r["bitmap"]) for r in rows]

    def update_log(self, project_id: int, month: int, bitmap: int) -> ScheduleLog:
        if bitmap is None:
            raise ConstraintViolation("Schedule log bitmap is required")
        with self._db.transaction("update schedule log") as con:
            if not self._log_exists(con, project_id, month):
                raise NotFound("schedule_log", (project_id, month))
            con.execute(
                "UPDATE schedule_logs SET bitmap = ? WHERE project_id = ? AND month = ?",
                (bitmap, project_id, month),
            )
        _log.info("Updated schedule log for project %s, month %s", project_id, month)
        return ScheduleLog(project_id, month, bitmap)

    def delete_log(self, project_id: int, month: int) -> None:
        with self._db.transaction("delete schedule log") as con:
            if not self._log_exists(con, project_id, month):
                raise NotFound("schedule_log", (project_id, month))
            con.execute("DELETE FROM schedule_logs WHERE project_id = ? AND month = ?", (project_id, month))
        _log.info("Deleted schedule log for project %s, month %s", project_id, month)

    def log_schedule_month(self, project_id: int, day: date) -> ScheduleLog:
        """Snapshot the weekly schedule into the log for the month containing `day`."""
        month = month_index(day)
        with self._db.transaction("log schedule month") as con:
            self._require_project(con, project_id)
            row = con.execute(
                "SELECT weekdays FROM schedule_settings WHERE project_id = ?", (project_id,)
            ).fetchone()
            if row is None or row["weekdays"] is None:
                bitmap = 0
            else:
                bitmap = month_bitmap(WeekBasedSchedule.from_column(row["weekdays"]), day)
            con.execute(
                """
                INSERT INTO schedule_logs(project_id, month, bitmap) VALUES (?, ?, ?)
                ON CONFLICT(project_id, month) DO UPDATE SET bitmap = excluded.bitmap
                """,
                (project_id, month, bitmap),
            )
        _log.info("Logged schedule for project %s, month %s", project_id, month)
        return ScheduleLog(project_id, month, bitmap)
