from __future__ import annotations

from datetime import date
from decimal import Decimal

import mysql.connector
import pytest

from src.labour_ledger.labour_ledger.attendance.bulk import BulkIngestionService
from src.labour_ledger.labour_ledger.attendance.model import AttendanceCriteria, NewAttendance
from src.labour_ledger.labour_ledger.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from src.labour_ledger.labour_ledger.core.enums import AttendanceStatus, SalaryStatus, Shift
from src.labour_ledger.labour_ledger.core.exceptions import ConflictError, InternalError
from src.labour_ledger.labour_ledger.payroll.model import NewSalary, SalaryCriteria
from src.labour_ledger.labour_ledger.payroll.mysql_salary_repository import MySQLSalaryRepository


def _duplicate() -> mysql.connector.IntegrityError:
    return mysql.connector.IntegrityError(msg="Duplicate entry", errno=1062)


class FakeCursor:
    def __init__(self, conn: "FakeConnection"):
        self._conn = conn
        self.lastrowid = None
        self.rowcount = 0
        self._rows: list[dict] = []

    def execute(self, sql, params=None):
        self._conn.executed.append((" ".join(sql.split()), params))
        outcome = self._conn.outcomes.pop(0) if self._conn.outcomes else None
        if isinstance(outcome, Exception):
            raise outcome
        self._conn.next_id += 1
        self.lastrowid = self._conn.next_id
        self.rowcount = 1
        self._rows = list(outcome or [])

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)

    def close(self):
        pass


class FakeConnection:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.executed: list[tuple] = []
        self.next_id = 0
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def cursor(self, dictionary=False):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = True


class FakeConnFactory:
    def __init__(self, *outcomes):
        self.conn = FakeConnection(outcomes)
        self.connects = 0

    def connect(self):
        self.connects += 1
        return self.conn


def _new_attendance(labourer_id: int = 1) -> NewAttendance:
    return NewAttendance(
        labourer_id=labourer_id,
        project_id=1,
        work_date=date(2024, 1, 1),
        shift=Shift.MORNING,
        status=AttendanceStatus.PRESENT,
    )


def _new_salary(labourer_id: int = 1) -> NewSalary:
    return NewSalary(
        labourer_id=labourer_id,
        start_period=date(2024, 1, 1),
        end_period=date(2024, 1, 31),
        total_days_present=2,
        daily_wage=Decimal("500"),
        total_salary=Decimal("1000"),
        status=SalaryStatus.PENDING,
        payslip_url="",
    )


def test_attendance_duplicate_key_maps_to_conflict():
    factory = FakeConnFactory(_duplicate())
    repo = MySQLAttendanceRepository(factory)

    with pytest.raises(ConflictError) as exc:
        repo.create(_new_attendance())

    assert "shift morning" in exc.value.message
    assert factory.conn.rollbacks == 1
    assert factory.conn.closed


def test_unordered_insert_commits_each_row_and_reports_rejections():
    factory = FakeConnFactory(None, _duplicate(), None)
    repo = MySQLAttendanceRepository(factory)

    outcome = repo.insert_unordered([_new_attendance(1), _new_attendance(2), _new_attendance(3)])

    assert [r.labourer_id for r in outcome.inserted] == [1, 3]
    assert [r.position for r in outcome.rejected] == [1]
    assert "Duplicate attendance" in outcome.rejected[0].reason
    assert factory.conn.commits == 2
    assert factory.conn.rollbacks == 1


def test_unordered_insert_skips_out_of_range_row_and_keeps_going():
    out_of_range = mysql.connector.DataError(msg="Out of range value for column 'labourer_id'", errno=1264)
    factory = FakeConnFactory(None, out_of_range, None)
    service = BulkIngestionService(MySQLAttendanceRepository(factory))
    rows = [
        {"labourerId": labourer_id, "projectId": 1, "date": "2024-01-01", "shift": "morning", "status": "present"}
        for labourer_id in (1, 2, 3)
    ]

    result = service.bulk_add(rows)

    assert result.inserted_count == 2
    assert result.failed_count == 1
    assert result.failed[0].index == 1
    assert "Out of range" in result.failed[0].reason
    assert [r.labourer_id for r in result.inserted] == [1, 3]
    assert len(factory.conn.executed) == 3
    assert factory.conn.commits == 2
    assert factory.conn.rollbacks == 1


def test_unordered_insert_storage_failure_is_internal():
    factory = FakeConnFactory(None, mysql.connector.OperationalError(msg="gone away", errno=2006))
    repo = MySQLAttendanceRepository(factory)

    with pytest.raises(InternalError):
        repo.insert_unordered([_new_attendance(1), _new_attendance(2)])


def test_count_by_status_groups_in_one_query():
    factory = FakeConnFactory([{"status": "present", "total": 4}, {"status": "half-day", "total": 1}])
    repo = MySQLAttendanceRepository(factory)

    counts = repo.count_by_status(AttendanceCriteria(labourer_id=7, start_date=date(2024, 1, 1)))

    assert counts == {AttendanceStatus.PRESENT: 4, AttendanceStatus.HALF_DAY: 1}
    sql, params = factory.conn.executed[0]
    assert "GROUP BY ar.status" in sql
    assert params == (7, date(2024, 1, 1))


def test_salary_batch_duplicate_is_conflict_and_rolled_back():
    factory = FakeConnFactory(None, _duplicate())
    repo = MySQLSalaryRepository(factory)

    with pytest.raises(ConflictError):
        repo.insert_all([_new_salary(1), _new_salary(2)])

    assert factory.conn.commits == 0
    assert factory.conn.rollbacks == 1


def test_salary_batch_storage_failure_is_internal():
    factory = FakeConnFactory(mysql.connector.OperationalError(msg="lost connection", errno=2013))
    repo = MySQLSalaryRepository(factory)

    with pytest.raises(InternalError):
        repo.insert_all([_new_salary(1)])


def test_salary_batch_commits_once():
    factory = FakeConnFactory(None, None)
    repo = MySQLSalaryRepository(factory)

    created = repo.insert_all([_new_salary(1), _new_salary(2)])

    assert [r.salary_id for r in created] == [1, 2]
    assert factory.conn.commits == 1


def test_labourers_with_period_skips_query_for_no_ids():
    factory = FakeConnFactory()
    repo = MySQLSalaryRepository(factory)

    assert repo.labourers_with_period([], start_period=date(2024, 1, 1), end_period=date(2024, 1, 31)) == set()
    assert factory.connects == 0


def test_salary_totals_use_overlap_window():
    factory = FakeConnFactory(
        [{"total_paid": Decimal("1500.00"), "total_pending": 0, "records_count": 2, "total_days_present": 3}]
    )
    repo = MySQLSalaryRepository(factory)

    totals = repo.totals(SalaryCriteria(period_start=date(2024, 1, 1), period_end=date(2024, 1, 31)))

    assert totals.to_dict() == {"totalPaid": 1500, "totalPending": 0, "recordsCount": 2, "totalDaysPresent": 3}
    sql, params = factory.conn.executed[0]
    assert "s.end_period >= %s AND s.start_period <= %s" in sql
    assert params == (date(2024, 1, 1), date(2024, 1, 31))
