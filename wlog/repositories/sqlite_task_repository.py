# Rev 0.2.0
from __future__ import annotations

import sqlite3
from typing import List, Optional

from wlog.models.entities import Task
from wlog.models.errors import ConstraintViolation, NotFound
from wlog.repositories.db import Database
from wlog.repositories.sqlite_project_repository import SQLiteProjectRepository
from wlog.utils.logging_setup import get_logger


_log = get_logger(__name__)


class SQLiteTaskRepository:
    """
    Task CRUD + lookup by issue/name.
    Deleting a task removes its log entries in the same transaction.
    """

    def __init__(self, db: Database):
        self._db = db

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            project_id=row["project_id"],
            name=row["name"],
            issue=row["issue"],
            description=row["description"],
        )

    @staticmethod
    def exists(con: sqlite3.Connection, task_id: int) -> bool:
        return con.execute("SELECT 1 FROM tasks WHERE id = ?", (task_id,)).fetchone() is not None

    # -------------------------
    # CRUD
    # -------------------------
    def create_task(
        self,
        *,
        project_id: int,
        name: str,
        issue: Optional[int] = None,
        description: Optional[str] = None,
        task_id: Optional[int] = None,
    ) -> Task:
        if name is None:
            raise ConstraintViolation("Task name is required")
        with self._db.transaction("create task") as con:
            if not SQLiteProjectRepository.exists(con, project_id):
                raise ConstraintViolation(f"Project {project_id} doesn't exist")
            if task_id is not None and self.exists(con, task_id):
                raise ConstraintViolation(f"Task id {task_id} already exists")
            cur = con.execute(
                "INSERT INTO tasks(id, project_id, name, issue, description) VALUES (?, ?, ?, ?, ?)",
                (task_id, project_id, name, issue, description),
            )
            new_id = cur.lastrowid if task_id is None else task_id
        _log.info("Created task %s in project %s: %s", new_id, project_id, name)
        return Task(id=new_id, project_id=project_id, name=name, issue=issue, description=description)

    def get_task(self, task_id: int) -> Task:
        row = self._db.fetchone(
            "SELECT id, project_id, name, issue, description FROM tasks WHERE id = ?",
            (task_id,),
        )
        if row is None:
            raise NotFound("task", task_id)
        return self._row_to_task(row)

    def update_task(
        self,
        task_id: int,
        *,
        project_id: int,
        name: str,
        issue: Optional[int] = None,
        description: Optional[str] = None,
    ) -> Task:
        """Full-row update; moving a task to another project is allowed."""
        if name is None:
            raise ConstraintViolation("Task name is required")
        with self._db.transaction("update task") as con:
            if not self.exists(con, task_id):
                raise NotFound("task", task_id)
            if not SQLiteProjectRepository.exists(con, project_id):
                raise ConstraintViolation(f"Project {project_id} doesn't exist")
            con.execute(
                "UPDATE tasks SET project_id = ?, name = ?, issue = ?, description = ? WHERE id = ?",
                (project_id, name, issue, description, task_id),
            )
        _log.info("Updated task %s", task_id)
        return Task(id=task_id, project_id=project_id, name=name, issue=issue, description=description)

    def delete_task(self, task_id: int) -> None:
        with self._db.transaction("delete task") as con:
            if not self.exists(con, task_id):
                raise NotFound("task", task_id)
            entries = con.execute("DELETE FROM log_entries WHERE task_id = ?", (task_id,)).rowcount
            con.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        _log.info("Deleted task %s with %d log entries", task_id, entries)

    # -------------------------
    # Listings / lookup
    # -------------------------
    def list_tasks(self, project_id: int) -> List[Task]:
        rows = self._db.fetchall(
            "SELECT id, project_id, name, issue, description FROM tasks WHERE project_id = ? ORDER BY id",
            (project_id,),
        )
        return [self._row_to_task(r) for r in rows]

    def find_task(self, project_id: int, *, issue: Optional[int] = None, name: Optional[str] = None) -> Optional[Task]:
        """
        Match on whichever of issue/name is given.
        A name-only lookup prefers tasks without an issue number.
        """
        if issue is None and name is None:
            raise ValueError("find_task needs an issue, a name, or both")
        where, params = ["project_id = ?"], [project_id]
        if issue is not None:
            where.append("issue = ?")
            params.append(issue)
        if name is not None:
            where.append("name = ?")
            params.append(name)
        order = "issue IS NULL DESC, id" if issue is None else "id"
        row = self._db.fetchone(
            f"""
            SELECT id, project_id, name, issue, description
            FROM tasks
            WHERE {' AND '.join(where)}
            ORDER BY {order}
            LIMIT 1
            """,
            tuple(params),
        )
        return self._row_to_task(row) if row else None

    def get_or_create_task(self, project_id: int, *, issue: Optional[int] = None, name: Optional[str] = None) -> Task:
        task = self.find_task(project_id, issue=issue, name=name)
        if task is not None:
            return task
        if name is None:
            # an issue number alone carries no task name to create with
            raise NotFound("task", {"project_id": project_id, "issue": issue})
        return self.create_task(project_id=project_id, name=name, issue=issue)
