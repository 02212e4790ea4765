from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import (
    AttendanceChanges,
    AttendanceCriteria,
    AttendanceDetail,
    AttendanceRecord,
    AttendanceSlot,
    InsertOutcome,
    NewAttendance,
)


class AttendanceRepository(Protocol):
    """Storage contract for attendance.

    The store owns the slot uniqueness rule: ``create`` and ``update`` raise
    ``ConflictError`` when a write would duplicate an existing slot.
    """

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_detail(self, attendance_id: int) -> Optional[AttendanceDetail]:
        raise NotImplementedError

    def find_by_slot(self, slot: AttendanceSlot, *, exclude_id: Optional[int] = None) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(self, new: NewAttendance) -> AttendanceRecord:
        raise NotImplementedError

    def update(self, attendance_id: int, changes: AttendanceChanges) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def insert_unordered(self, batch: Sequence[NewAttendance]) -> InsertOutcome:
        """Insert each row independently; one rejected row never blocks the rest."""

        raise NotImplementedError

    def count_by_status(self, criteria: AttendanceCriteria) -> dict[AttendanceStatus, int]:
        """Grouped count; statuses with no rows may be absent from the result."""

        raise NotImplementedError

    def count_by_labourer(
        self,
        *,
        start_date: date,
        end_date: date,
        statuses: Iterable[AttendanceStatus],
    ) -> dict[int, int]:
        raise NotImplementedError

    def list_details(
        self,
        criteria: AttendanceCriteria,
        *,
        offset: int,
        limit: int,
    ) -> tuple[int, Sequence[AttendanceDetail]]:
        """Return (total matches, one page) sorted by date descending."""

        raise NotImplementedError

    def export_details(self, criteria: AttendanceCriteria, *, limit: int) -> Sequence[AttendanceDetail]:
        raise NotImplementedError
