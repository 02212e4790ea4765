from __future__ import annotations

from enum import Enum


class Shift(str, Enum):
    """Daily work period an attendance record is scoped to."""

    MORNING = "morning"
    EVENING = "evening"
    NIGHT = "night"


class AttendanceStatus(str, Enum):
    """Presence status stored per labourer/project/day/shift."""

    PRESENT = "present"
    ABSENT = "absent"
    HALF_DAY = "half-day"


class SalaryStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class LabourerStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


def choices(enum_cls: type[Enum]) -> str:
    """Comma separated allowed values, used in validation messages."""
    return ", ".join(str(member.value) for member in enum_cls)
