# Rev 0.2.0
"""Lightweight entities aligned with schema Rev 0.2.0 (schedule tables)"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Optional


# Fixed primary key of the single default_project row
DEFAULT_PROJECT_SENTINEL = 0


@dataclass
class Project:
    id: int | None
    url: str
    name: Optional[str] = None     # UNIQUE when present


@dataclass
class Task:
    id: int | None
    project_id: int
    name: str
    issue: Optional[int] = None
    description: Optional[str] = None


@dataclass
class LogEntry:
    date: date
    task_id: int
    duration_minutes: int


@dataclass
class DefaultProject:
    project_id: int
    id: int = DEFAULT_PROJECT_SENTINEL


@dataclass
class ScheduleSettings:
    project_id: int
    weekdays: Optional[int] = None          # bitmask, see services.schedule_service
    workday_minutes: Optional[int] = None


@dataclass
class ScheduleLog:
    project_id: int
    month: int                              # year * 12 + month
    bitmap: int


@dataclass
class LogEntryExpanded:
    """A log entry joined with its task, as used by the reporting queries."""
    date: date
    task_id: int
    task_name: str
    issue: Optional[int]
    duration_minutes: int


@dataclass
class TaskTotal:
    task_id: int
    task_name: str
    issue: Optional[int]
    duration_minutes: int
