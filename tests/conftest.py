from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

import pytest

from src.labour_ledger.labour_ledger.attendance.model import (
    AttendanceChanges,
    AttendanceCriteria,
    AttendanceDetail,
    AttendanceRecord,
    AttendanceSlot,
    InsertOutcome,
    NewAttendance,
    RejectedRow,
    apply_changes,
)
from src.labour_ledger.labour_ledger.container import wire
from src.labour_ledger.labour_ledger.core.enums import AttendanceStatus, SalaryStatus
from src.labour_ledger.labour_ledger.core.exceptions import ConflictError
from src.labour_ledger.labour_ledger.directory.model import LabourerSummary, MarkerSummary, ProjectSummary
from src.labour_ledger.labour_ledger.payroll.model import (
    NewSalary,
    SalaryChanges,
    SalaryCriteria,
    SalaryDetail,
    SalaryField,
    SalaryRecord,
    SalaryTotals,
)


class InMemoryDirectory:
    def __init__(self):
        self.labourers = {
            1: LabourerSummary(1, "Ravi Kumar", "9000000001"),
            2: LabourerSummary(2, "Sita Devi", "9000000002"),
            3: LabourerSummary(3, "Arjun Singh", None),
        }
        self.projects = {
            1: ProjectSummary(1, "Riverside Tower", "Pune"),
            2: ProjectSummary(2, "Metro Depot", None),
        }
        self.users = {1: MarkerSummary(1, "manager", "manager@example.com")}
        self.active_labourers = 3

    def count_active_labourers(self) -> int:
        return self.active_labourers


class InMemoryAttendance:
    """Attendance store that enforces the slot key like the MySQL unique index."""

    def __init__(self, directory: InMemoryDirectory):
        self._directory = directory
        self._records: dict[int, AttendanceRecord] = {}
        self._id = 0
        # Batch positions the next insert_unordered call rejects, simulating a lost race.
        self.reject_positions: set[int] = set()

    def _slot_taken(self, slot: AttendanceSlot, exclude_id: Optional[int] = None) -> Optional[AttendanceRecord]:
        for record in self._records.values():
            if record.slot == slot and record.attendance_id != exclude_id:
                return record
        return None

    def _insert(self, new: NewAttendance) -> AttendanceRecord:
        self._id += 1
        record = AttendanceRecord(
            attendance_id=self._id,
            labourer_id=new.labourer_id,
            project_id=new.project_id,
            work_date=new.work_date,
            shift=new.shift,
            status=new.status,
            marked_by=new.marked_by,
        )
        self._records[record.attendance_id] = record
        return record

    def _detail(self, record: AttendanceRecord) -> AttendanceDetail:
        return AttendanceDetail(
            record=record,
            labourer=self._directory.labourers.get(record.labourer_id),
            project=self._directory.projects.get(record.project_id),
            marker=self._directory.users.get(record.marked_by) if record.marked_by else None,
        )

    def _sorted(self, criteria: AttendanceCriteria) -> list[AttendanceRecord]:
        items = [r for r in self._records.values() if criteria.matches(r)]
        items.sort(key=lambda r: (r.work_date, r.attendance_id), reverse=True)
        return items

    def all(self) -> list[AttendanceRecord]:
        return list(self._records.values())

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self._records.get(attendance_id)

    def get_detail(self, attendance_id: int) -> Optional[AttendanceDetail]:
        record = self._records.get(attendance_id)
        return self._detail(record) if record else None

    def find_by_slot(self, slot: AttendanceSlot, *, exclude_id: Optional[int] = None) -> Optional[AttendanceRecord]:
        return self._slot_taken(slot, exclude_id)

    def create(self, new: NewAttendance) -> AttendanceRecord:
        if self._slot_taken(new.slot):
            raise ConflictError(f"Attendance already marked ({new.slot.describe()})")
        return self._insert(new)

    def update(self, attendance_id: int, changes: AttendanceChanges) -> Optional[AttendanceRecord]:
        current = self._records.get(attendance_id)
        if not current:
            return None
        updated = apply_changes(current, changes)
        if self._slot_taken(updated.slot, exclude_id=attendance_id):
            raise ConflictError("Another attendance record exists for this labourer, project, date, and shift")
        self._records[attendance_id] = updated
        return updated

    def delete(self, attendance_id: int) -> bool:
        return self._records.pop(attendance_id, None) is not None

    def insert_unordered(self, batch: Sequence[NewAttendance]) -> InsertOutcome:
        inserted: list[AttendanceRecord] = []
        rejected: list[RejectedRow] = []
        for position, new in enumerate(batch):
            if position in self.reject_positions or self._slot_taken(new.slot):
                rejected.append(RejectedRow(position=position, reason=f"Duplicate attendance for {new.slot.describe()}"))
                continue
            inserted.append(self._insert(new))
        self.reject_positions = set()
        return InsertOutcome(inserted=inserted, rejected=rejected)

    def count_by_status(self, criteria: AttendanceCriteria) -> dict[AttendanceStatus, int]:
        counts: dict[AttendanceStatus, int] = {}
        for record in self._records.values():
            if criteria.matches(record):
                counts[record.status] = counts.get(record.status, 0) + 1
        return counts

    def count_by_labourer(
        self,
        *,
        start_date: date,
        end_date: date,
        statuses: Iterable[AttendanceStatus],
    ) -> dict[int, int]:
        wanted = set(statuses)
        counts: dict[int, int] = {}
        for record in self._records.values():
            if start_date <= record.work_date <= end_date and record.status in wanted:
                counts[record.labourer_id] = counts.get(record.labourer_id, 0) + 1
        return counts

    def list_details(self, criteria: AttendanceCriteria, *, offset: int, limit: int):
        items = self._sorted(criteria)
        return len(items), [self._detail(r) for r in items[offset : offset + limit]]

    def export_details(self, criteria: AttendanceCriteria, *, limit: int):
        return [self._detail(r) for r in self._sorted(criteria)[:limit]]


_SALARY_ATTRS = {
    SalaryField.LABOURER_ID: "labourer_id",
    SalaryField.START_PERIOD: "start_period",
    SalaryField.END_PERIOD: "end_period",
    SalaryField.TOTAL_DAYS_PRESENT: "total_days_present",
    SalaryField.DAILY_WAGE: "daily_wage",
    SalaryField.TOTAL_SALARY: "total_salary",
    SalaryField.STATUS: "status",
    SalaryField.PAYSLIP_URL: "payslip_url",
    SalaryField.PAYMENT_DATE: "payment_date",
}


class InMemorySalaries:
    """Salary store with the (labourer, start, end) unique key."""

    def __init__(self, directory: InMemoryDirectory):
        self._directory = directory
        self._records: dict[int, SalaryRecord] = {}
        self._id = 0
        self.fail_next_insert: Optional[Exception] = None

    def _period_taken(self, labourer_id: int, start: date, end: date, exclude_id: Optional[int] = None) -> bool:
        return any(
            r.labourer_id == labourer_id and r.start_period == start and r.end_period == end and r.salary_id != exclude_id
            for r in self._records.values()
        )

    def _to_record(self, new: NewSalary) -> SalaryRecord:
        self._id += 1
        return SalaryRecord(
            salary_id=self._id,
            labourer_id=new.labourer_id,
            start_period=new.start_period,
            end_period=new.end_period,
            total_days_present=new.total_days_present,
            daily_wage=new.daily_wage,
            total_salary=new.total_salary,
            status=new.status,
            payment_date=new.payment_date,
            payslip_url=new.payslip_url,
        )

    def all(self) -> list[SalaryRecord]:
        return list(self._records.values())

    def create(self, new: NewSalary) -> SalaryRecord:
        if self._period_taken(new.labourer_id, new.start_period, new.end_period):
            raise ConflictError("A salary record for this labourer already exists for this exact period")
        record = self._to_record(new)
        self._records[record.salary_id] = record
        return record

    def insert_all(self, batch: Sequence[NewSalary]) -> list[SalaryRecord]:
        if self.fail_next_insert is not None:
            err, self.fail_next_insert = self.fail_next_insert, None
            raise err
        for new in batch:
            if self._period_taken(new.labourer_id, new.start_period, new.end_period):
                raise ConflictError("Salary records for this period were generated concurrently; nothing was saved")
        created = [self._to_record(new) for new in batch]
        for record in created:
            self._records[record.salary_id] = record
        return created

    def get_by_id(self, salary_id: int) -> Optional[SalaryRecord]:
        return self._records.get(salary_id)

    def get_detail(self, salary_id: int) -> Optional[SalaryDetail]:
        record = self._records.get(salary_id)
        if not record:
            return None
        return SalaryDetail(record=record, labourer=self._directory.labourers.get(record.labourer_id))

    def update(self, salary_id: int, changes: SalaryChanges) -> Optional[SalaryRecord]:
        current = self._records.get(salary_id)
        if not current:
            return None
        updated = replace(current, **{_SALARY_ATTRS[field]: value for field, value in changes.items()})
        if self._period_taken(updated.labourer_id, updated.start_period, updated.end_period, exclude_id=salary_id):
            raise ConflictError("A salary record for this labourer already exists for this exact period")
        self._records[salary_id] = updated
        return updated

    def delete(self, salary_id: int) -> bool:
        return self._records.pop(salary_id, None) is not None

    def labourers_with_period(self, labourer_ids: Iterable[int], *, start_period: date, end_period: date) -> set[int]:
        ids = set(labourer_ids)
        return {
            r.labourer_id
            for r in self._records.values()
            if r.labourer_id in ids and r.start_period == start_period and r.end_period == end_period
        }

    def list_details(self, criteria: SalaryCriteria, *, offset: int, limit: int):
        items = [r for r in self._records.values() if criteria.matches(r)]
        items.sort(key=lambda r: (r.start_period, r.end_period, r.salary_id), reverse=True)
        page = items[offset : offset + limit]
        return len(items), [SalaryDetail(record=r, labourer=self._directory.labourers.get(r.labourer_id)) for r in page]

    def totals(self, criteria: SalaryCriteria) -> SalaryTotals:
        items = [r for r in self._records.values() if criteria.matches(r)]
        return SalaryTotals(
            total_paid=sum((r.total_salary for r in items if r.status == SalaryStatus.PAID), SalaryTotals().total_paid),
            total_pending=sum(
                (r.total_salary for r in items if r.status == SalaryStatus.PENDING), SalaryTotals().total_pending
            ),
            records_count=len(items),
            total_days_present=sum(r.total_days_present for r in items),
        )


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 1, 10, 9, 30)


@pytest.fixture
def directory() -> InMemoryDirectory:
    return InMemoryDirectory()


@pytest.fixture
def attendance_repo(directory) -> InMemoryAttendance:
    return InMemoryAttendance(directory)


@pytest.fixture
def salary_repo(directory) -> InMemorySalaries:
    return InMemorySalaries(directory)


@pytest.fixture
def container(attendance_repo, salary_repo, directory):
    return wire(attendance_repo=attendance_repo, salaries_repo=salary_repo, directory_repo=directory)


@pytest.fixture
def client(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    from src.labour_ledger.labour_ledger.main import create_app

    app = create_app(container)
    return app.test_client()
