# wlog record store
# Rev 0.2.0

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Optional

from .models.entities import DEFAULT_PROJECT_SENTINEL, LogEntry, Project, Task
from .models.errors import NotFound
from .repositories.db import Database
from .repositories.sqlite_log_entry_repository import (
    Duration,
    SQLiteLogEntryRepository,
    log_day,
    whole_minutes,
)
from .repositories.sqlite_project_repository import SQLiteProjectRepository
from .repositories.sqlite_schedule_repository import SQLiteScheduleRepository
from .repositories.sqlite_task_repository import SQLiteTaskRepository
from .services.log_dates import effective_today
from .utils import config
from .utils.logging_setup import get_logger


@dataclass
class RecordStore:
    """Central container for the database and the per-entity repositories."""
    db: Database
    projects: SQLiteProjectRepository
    tasks: SQLiteTaskRepository
    log_entries: SQLiteLogEntryRepository
    schedule: SQLiteScheduleRepository
    settings: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def open(cls, db_path: Path | str | None = None, settings: Optional[Dict[str, Any]] = None) -> "RecordStore":
        """Open (creating if needed) and migrate the database, then wire repositories."""
        log = get_logger("RecordStore")
        if settings is None:
            settings = config.load_settings()
        if db_path is None:
            db_path = config.resolve_db_path(settings)
        db = Database(db_path)
        applied = db.run_migrations()
        if applied:
            log.info("Applied migrations: %s", ", ".join(applied))
        log.info("RecordStore initialized with DB=%s", db_path)
        return cls(
            db=db,
            projects=SQLiteProjectRepository(db),
            tasks=SQLiteTaskRepository(db),
            log_entries=SQLiteLogEntryRepository(db),
            schedule=SQLiteScheduleRepository(db),
            settings=settings,
        )

    def close(self) -> None:
        self.db.close()

    def __enter__(self) -> "RecordStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Default project

    def set_default_project(self, project_id: int) -> None:
        self.projects.set_default_project(project_id)

    def get_default_project(self) -> Optional[Project]:
        return self.projects.get_default_project()

    def require_default_project(self) -> Project:
        project = self.projects.get_default_project()
        if project is None:
            raise NotFound("default_project", DEFAULT_PROJECT_SENTINEL)
        return project

    def clear_default_project(self) -> None:
        self.projects.clear_default_project()

    # Logging time

    def log_time(
        self,
        duration: Duration,
        *,
        day: Optional[date] = None,
        issue: Optional[int] = None,
        name: Optional[str] = None,
        project_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> LogEntry:
        """
        Add time to a task of the given (or default) project, creating the task by name if needed.
        Without an explicit day the effective today is used, honouring the day-change threshold.
        """
        if project_id is None:
            project_id = self.require_default_project().id
        if day is None:
            day = effective_today(now or datetime.now(), config.day_change_threshold(self.settings))
        # reject bad input before a task gets created for it
        minutes = whole_minutes(duration)
        day = log_day(day)
        with self.db.transaction("log time"):
            task: Task = self.tasks.get_or_create_task(project_id, issue=issue, name=name)
            return self.log_entries.add_log(day, task.id, minutes)
