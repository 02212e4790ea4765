from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..common.validators import require_reference_id
from ..core.exceptions import ConflictError, NotFoundError
from .model import SLOT_FIELDS, AttendanceDetail, AttendanceRecord, apply_changes
from .repository import AttendanceRepository
from .validation import parse_changes, parse_new_attendance

logger = logging.getLogger(__name__)


class AttendanceService:
    """Single-record operations on the attendance ledger.

    Every call is a self-contained read-validate-write cycle; the store's
    unique slot key is the final arbiter between concurrent writers.
    """

    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def mark(
        self,
        *,
        labourer_id: Any,
        project_id: Any,
        work_date: Any,
        shift: Any,
        status: Any,
        marked_by: Optional[Any] = None,
    ) -> AttendanceRecord:
        new = parse_new_attendance(
            {
                "labourerId": labourer_id,
                "projectId": project_id,
                "date": work_date,
                "shift": shift,
                "status": status,
                "markedBy": marked_by,
            }
        )
        record = self._attendance.create(new)
        logger.debug("[attendance] marked id=%s (%s)", record.attendance_id, new.slot.describe())
        return record

    def update(self, attendance_id: Any, fields: Mapping[str, Any]) -> AttendanceRecord:
        attendance_id = require_reference_id(attendance_id, "attendance ID")
        changes = parse_changes(fields)

        current = self._attendance.get_by_id(attendance_id)
        if not current:
            raise NotFoundError("Attendance record not found")

        if SLOT_FIELDS.intersection(changes):
            target = apply_changes(current, changes).slot
            if self._attendance.find_by_slot(target, exclude_id=attendance_id):
                raise ConflictError(
                    f"Another attendance record exists for this labourer, project, date, and shift ({target.describe()})",
                    details={"slot": target.describe()},
                )

        if not changes:
            return current

        updated = self._attendance.update(attendance_id, changes)
        if not updated:
            raise NotFoundError("Attendance record not found")
        return updated

    def delete(self, attendance_id: Any) -> None:
        attendance_id = require_reference_id(attendance_id, "attendance ID")
        if not self._attendance.delete(attendance_id):
            raise NotFoundError("Attendance record not found")
        logger.debug("[attendance] deleted id=%s", attendance_id)

    def get(self, attendance_id: Any) -> AttendanceDetail:
        attendance_id = require_reference_id(attendance_id, "attendance ID")
        detail = self._attendance.get_detail(attendance_id)
        if not detail:
            raise NotFoundError("Attendance record not found")
        return detail
