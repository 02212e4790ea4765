from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from ..core.enums import AttendanceStatus, Shift
from ..directory.model import LabourerSummary, MarkerSummary, ProjectSummary


@dataclass(frozen=True)
class AttendanceSlot:
    """Uniqueness key: at most one record per labourer, project, day and shift."""

    labourer_id: int
    project_id: int
    work_date: date
    shift: Shift

    def describe(self) -> str:
        return (
            f"labourer {self.labourer_id}, project {self.project_id}, "
            f"date {self.work_date.isoformat()}, shift {self.shift.value}"
        )


@dataclass(frozen=True)
class NewAttendance:
    """A validated candidate, ready to insert."""

    labourer_id: int
    project_id: int
    work_date: date
    shift: Shift
    status: AttendanceStatus
    marked_by: Optional[int] = None

    @property
    def slot(self) -> AttendanceSlot:
        return AttendanceSlot(self.labourer_id, self.project_id, self.work_date, self.shift)


@dataclass(frozen=True)
class AttendanceRecord:
    attendance_id: int
    labourer_id: int
    project_id: int
    work_date: date
    shift: Shift
    status: AttendanceStatus
    marked_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def slot(self) -> AttendanceSlot:
        return AttendanceSlot(self.labourer_id, self.project_id, self.work_date, self.shift)


@dataclass(frozen=True)
class AttendanceDetail:
    """Record with its labourer, project and marking user resolved."""

    record: AttendanceRecord
    labourer: Optional[LabourerSummary] = None
    project: Optional[ProjectSummary] = None
    marker: Optional[MarkerSummary] = None


class AttendanceField(str, Enum):
    """Fields a caller may change on an existing record."""

    LABOURER_ID = "labourerId"
    PROJECT_ID = "projectId"
    DATE = "date"
    SHIFT = "shift"
    STATUS = "status"
    MARKED_BY = "markedBy"


SLOT_FIELDS = frozenset(
    {AttendanceField.LABOURER_ID, AttendanceField.PROJECT_ID, AttendanceField.DATE, AttendanceField.SHIFT}
)

AttendanceChanges = Dict[AttendanceField, Any]


def apply_changes(record: AttendanceRecord, changes: AttendanceChanges) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=record.attendance_id,
        labourer_id=changes.get(AttendanceField.LABOURER_ID, record.labourer_id),
        project_id=changes.get(AttendanceField.PROJECT_ID, record.project_id),
        work_date=changes.get(AttendanceField.DATE, record.work_date),
        shift=changes.get(AttendanceField.SHIFT, record.shift),
        status=changes.get(AttendanceField.STATUS, record.status),
        marked_by=changes.get(AttendanceField.MARKED_BY, record.marked_by),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


@dataclass(frozen=True)
class AttendanceCriteria:
    """Conjunctive filter over attendance; the date window is inclusive."""

    labourer_id: Optional[int] = None
    project_id: Optional[int] = None
    status: Optional[AttendanceStatus] = None
    shift: Optional[Shift] = None
    marked_by: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def matches(self, record: AttendanceRecord) -> bool:
        if self.labourer_id is not None and record.labourer_id != self.labourer_id:
            return False
        if self.project_id is not None and record.project_id != self.project_id:
            return False
        if self.status is not None and record.status != self.status:
            return False
        if self.shift is not None and record.shift != self.shift:
            return False
        if self.marked_by is not None and record.marked_by != self.marked_by:
            return False
        if self.start_date is not None and record.work_date < self.start_date:
            return False
        if self.end_date is not None and record.work_date > self.end_date:
            return False
        return True


@dataclass(frozen=True)
class RejectedRow:
    """A batch row the store refused; ``position`` indexes the submitted batch."""

    position: int
    reason: str


@dataclass(frozen=True)
class InsertOutcome:
    inserted: list[AttendanceRecord]
    rejected: list[RejectedRow]


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def record_to_dict(r: AttendanceRecord) -> dict:
    return {
        "id": r.attendance_id,
        "labourerId": r.labourer_id,
        "projectId": r.project_id,
        "date": r.work_date.isoformat(),
        "shift": r.shift.value,
        "status": r.status.value,
        "markedBy": r.marked_by,
        "createdAt": _iso(r.created_at),
        "updatedAt": _iso(r.updated_at),
    }


def detail_to_dict(d: AttendanceDetail) -> dict:
    out = record_to_dict(d.record)
    out["labourer"] = d.labourer.to_dict() if d.labourer else None
    out["project"] = d.project.to_dict() if d.project else None
    out["marker"] = d.marker.to_dict() if d.marker else None
    return out
