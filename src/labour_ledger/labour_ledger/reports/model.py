from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Mapping, Optional

from ..core.enums import AttendanceStatus
from ..payroll.model import SalaryTotals, money


@dataclass(frozen=True)
class StatusSummary:
    present: int = 0
    absent: int = 0
    half_day: int = 0

    @classmethod
    def from_counts(cls, counts: Mapping[AttendanceStatus, int]) -> "StatusSummary":
        return cls(
            present=int(counts.get(AttendanceStatus.PRESENT, 0)),
            absent=int(counts.get(AttendanceStatus.ABSENT, 0)),
            half_day=int(counts.get(AttendanceStatus.HALF_DAY, 0)),
        )

    @property
    def total_records(self) -> int:
        return self.present + self.absent + self.half_day

    def to_dict(self) -> dict:
        return {
            "present": self.present,
            "absent": self.absent,
            "halfDay": self.half_day,
            "totalRecords": self.total_records,
        }


@dataclass(frozen=True)
class DailyPresence:
    day: date
    present_count: int

    def to_dict(self) -> dict:
        return {"date": self.day.isoformat(), "presentCount": self.present_count}


@dataclass(frozen=True)
class DashboardStats:
    total_labourers: int
    today: StatusSummary
    attendance_percent: Decimal
    last_7_days: list[DailyPresence] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "totalLabourers": self.total_labourers,
            "present": self.today.present,
            "absent": self.today.absent,
            "halfDay": self.today.half_day,
            "attendancePercent": money(self.attendance_percent),
            "last7Days": [d.to_dict() for d in self.last_7_days],
        }


@dataclass(frozen=True)
class SalarySummary:
    totals: SalaryTotals
    labourer_id: Optional[int] = None
    start_period: Optional[date] = None
    end_period: Optional[date] = None

    def to_dict(self) -> dict:
        out = {
            "summary": self.totals.to_dict(),
            "startPeriod": self.start_period.isoformat() if self.start_period else None,
            "endPeriod": self.end_period.isoformat() if self.end_period else None,
        }
        if self.labourer_id is not None:
            out["labourerId"] = self.labourer_id
        return out
