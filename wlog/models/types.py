# wlog type definitions
# Rev 0.1.0

from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Literal

# Ownership hierarchy: project → task → log entry; project → schedule rows
EntityType = Literal["project", "task", "log_entry", "default_project", "schedule_settings", "schedule_log"]


@dataclass(frozen=True)
class Period:
    """Inclusive date range used to filter log entry listings."""
    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Period end {self.end} is before start {self.start}")

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end
