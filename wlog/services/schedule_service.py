# Rev 0.2.0

"""Schedule bitmask helpers (Rev 0.2.0)
weekdays column: bit 0..6 = Monday..Sunday, bit 7 = flexible schedule.
schedule_logs.bitmap: bit (day - 1) = workday, bit 31 = flexible; stored as signed 32-bit.
"""
from __future__ import annotations
import calendar
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Tuple


FLEXIBLE_WEEKDAYS_BIT = 1 << 7
FLEXIBLE_MONTH_BIT = 1 << 31
DEFAULT_WORKDAY_MINUTES = 8 * 60


def month_index(day: date) -> int:
    """Months since year 0: year * 12 + month."""
    return day.year * 12 + day.month


def month_from_index(index: int) -> Tuple[int, int]:
    year, month0 = divmod(index - 1, 12)
    return year, month0 + 1


def to_signed32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & FLEXIBLE_MONTH_BIT else value


def to_unsigned32(value: int) -> int:
    return value & 0xFFFFFFFF


@dataclass(frozen=True)
class WeekBasedSchedule:
    bits: int

    @classmethod
    def from_weekdays(cls, weekdays: Iterable[int], flexible: bool = False) -> "WeekBasedSchedule":
        """`weekdays` uses date.weekday() numbering (Monday == 0)."""
        bits = 0
        for wd in weekdays:
            if not 0 <= wd <= 6:
                raise ValueError(f"Invalid weekday {wd}")
            bits |= 1 << wd
        if flexible:
            bits |= FLEXIBLE_WEEKDAYS_BIT
        return cls(bits)

    @classmethod
    def from_column(cls, value: int) -> "WeekBasedSchedule":
        # only the low byte is meaningful
        return cls(value & 0xFF)

    @property
    def is_flexible(self) -> bool:
        return bool(self.bits & FLEXIBLE_WEEKDAYS_BIT)

    def weekdays(self) -> List[int]:
        return [wd for wd in range(7) if self.bits & (1 << wd)]

    def is_workday(self, day: date) -> bool:
        return bool(self.bits & (1 << day.weekday()))


def month_bitmap(schedule: WeekBasedSchedule, day: date) -> int:
    """Workday flags for every day of the month containing `day`, as a signed 32-bit int."""
    first_weekday, days_in_month = calendar.monthrange(day.year, day.month)
    bitmap = 0
    for i in range(days_in_month):
        if schedule.bits & (1 << ((i + first_weekday) % 7)):
            bitmap |= 1 << i
    if schedule.is_flexible:
        bitmap |= FLEXIBLE_MONTH_BIT
    return to_signed32(bitmap)


def is_workday_in_month(bitmap: int, day_of_month: int) -> bool:
    if not 1 <= day_of_month <= 31:
        raise ValueError(f"Invalid day of month {day_of_month}")
    return bool(to_unsigned32(bitmap) & (1 << (day_of_month - 1)))


def is_flexible_month(bitmap: int) -> bool:
    return bool(to_unsigned32(bitmap) & FLEXIBLE_MONTH_BIT)
