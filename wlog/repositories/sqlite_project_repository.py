# Rev 0.2.0
# wlog – SQLiteProjectRepository (Rev 0.2.0, aligned with schema Rev 0.2.0)
from __future__ import annotations
import sqlite3
from typing import List, Optional

from wlog.models.entities import DEFAULT_PROJECT_SENTINEL, DefaultProject, Project
from wlog.models.errors import ConstraintViolation, NotFound
from wlog.repositories.db import Database
from wlog.utils.logging_setup import get_logger


_log = get_logger(__name__)


class SQLiteProjectRepository:
    """
    Project CRUD + the default_project singleton.
    Deleting a project cascades explicitly, in one transaction:
    log_entries → tasks → default_project / schedule_settings / schedule_logs → project.
    """

    def __init__(self, db: Database):
        self._db = db

    # ---------- rows ----------

    @staticmethod
    def _row_to_project(row: sqlite3.Row) -> Project:
        return Project(id=row["id"], url=row["url"], name=row["name"])

    @staticmethod
    def _name_taken(con: sqlite3.Connection, name: Optional[str], exclude_id: Optional[int] = None) -> bool:
        # NULL names never collide
        if name is None:
            return False
        row = con.execute(
            "SELECT 1 FROM projects WHERE name = ? AND id IS NOT ?", (name, exclude_id)
        ).fetchone()
        return row is not None

    @staticmethod
    def exists(con: sqlite3.Connection, project_id: int) -> bool:
        return con.execute("SELECT 1 FROM projects WHERE id = ?", (project_id,)).fetchone() is not None

    # ---------- CRUD ----------

    def create_project(self, *, url: str, name: Optional[str] = None, project_id: Optional[int] = None) -> Project:
        if url is None:
            raise ConstraintViolation("Project url is required")
        with self._db.transaction("create project") as con:
            if project_id is not None and self.exists(con, project_id):
                raise ConstraintViolation(f"Project id {project_id} already exists")
            if self._name_taken(con, name):
                raise ConstraintViolation(f"Project name {name!r} already exists")
            cur = con.execute(
                "INSERT INTO projects(id, url, name) VALUES (?, ?, ?)",
                (project_id, url, name),
            )
            new_id = cur.lastrowid if project_id is None else project_id
        _log.info("Created project %s (%s)", new_id, name or url)
        return Project(id=new_id, url=url, name=name)

    def get_project(self, project_id: int) -> Project:
        row = self._db.fetchone("SELECT id, url, name FROM projects WHERE id = ?", (project_id,))
        if row is None:
            raise NotFound("project", project_id)
        return self._row_to_project(row)

    def find_project_by_name(self, name: str) -> Optional[Project]:
        row = self._db.fetchone("SELECT id, url, name FROM projects WHERE name = ?", (name,))
        return self._row_to_project(row) if row else None

    def list_projects(self) -> List[Project]:
        rows = self._db.fetchall("SELECT id, url, name FROM projects ORDER BY id")
        return [self._row_to_project(r) for r in rows]

    def update_project(self, project_id: int, *, url: str, name: Optional[str] = None) -> Project:
        """Full-row update: every mutable column is replaced."""
        if url is None:
            raise ConstraintViolation("Project url is required")
        with self._db.transaction("update project") as con:
            if not self.exists(con, project_id):
                raise NotFound("project", project_id)
            if self._name_taken(con, name, exclude_id=project_id):
                raise ConstraintViolation(f"Project name {name!r} already exists")
            con.execute("UPDATE projects SET url = ?, name = ? WHERE id = ?", (url, name, project_id))
        _log.info("Updated project %s", project_id)
        return Project(id=project_id, url=url, name=name)

    def delete_project(self, project_id: int) -> None:
        with self._db.transaction("delete project") as con:
            if not self.exists(con, project_id):
                raise NotFound("project", project_id)
            cur = con.execute(
                "DELETE FROM log_entries WHERE task_id IN (SELECT id FROM tasks WHERE project_id = ?)",
                (project_id,),
            )
            entries = cur.rowcount
            tasks = con.execute("DELETE FROM tasks WHERE project_id = ?", (project_id,)).rowcount
            con.execute("DELETE FROM default_project WHERE project_id = ?", (project_id,))
            con.execute("DELETE FROM schedule_settings WHERE project_id = ?", (project_id,))
            con.execute("DELETE FROM schedule_logs WHERE project_id = ?", (project_id,))
            con.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        _log.info("Deleted project %s with %d tasks and %d log entries", project_id, tasks, entries)

    # ---------- default project ----------

    def set_default_project(self, project_id: int) -> None:
        with self._db.transaction("set default project") as con:
            if not self.exists(con, project_id):
                raise ConstraintViolation(f"Project {project_id} doesn't exist")
            con.execute(
                """
                INSERT INTO default_project(id, project_id) VALUES (?, ?)
                ON CONFLICT(id) DO UPDATE SET project_id = excluded.project_id
                """,
                (DEFAULT_PROJECT_SENTINEL, project_id),
            )
        _log.info("Default project set to %s", project_id)

    def get_default_project(self) -> Optional[Project]:
        row = self._db.fetchone(
            """
            SELECT p.id, p.url, p.name
            FROM default_project d JOIN projects p ON p.id = d.project_id
            WHERE d.id = ?
            """,
            (DEFAULT_PROJECT_SENTINEL,),
        )
        return self._row_to_project(row) if row else None

    def get_default_project_row(self) -> DefaultProject:
        row = self._db.fetchone(
            "SELECT id, project_id FROM default_project WHERE id = ?", (DEFAULT_PROJECT_SENTINEL,)
        )
        if row is None:
            raise NotFound("default_project", DEFAULT_PROJECT_SENTINEL)
        return DefaultProject(project_id=row["project_id"], id=row["id"])

    def clear_default_project(self) -> None:
        with self._db.transaction("clear default project") as con:
            cur = con.execute("DELETE FROM default_project WHERE id = ?", (DEFAULT_PROJECT_SENTINEL,))
            if cur.rowcount == 0:
                raise NotFound("default_project", DEFAULT_PROJECT_SENTINEL)
        _log.info("Default project cleared")
