from __future__ import annotations

from datetime import date, timedelta

import pytest

from src.labour_ledger.labour_ledger.attendance.query import AttendanceQueryService
from src.labour_ledger.labour_ledger.attendance.service import AttendanceService
from src.labour_ledger.labour_ledger.core.exceptions import ValidationError


@pytest.fixture
def seeded(attendance_repo):
    service = AttendanceService(attendance_repo)
    start = date(2024, 1, 1)
    for offset in range(5):
        day = (start + timedelta(days=offset)).isoformat()
        service.mark(labourer_id=1, project_id=1, work_date=day, shift="morning", status="present")
        service.mark(labourer_id=2, project_id=2, work_date=day, shift="night", status="absent", marked_by=1)
    return attendance_repo


def test_by_labourer_sorted_newest_first_with_meta(seeded):
    query = AttendanceQueryService(seeded)

    page = query.list_by_labourer("1", {"limit": "2", "page": "2"})

    assert [d.record.work_date for d in page.records] == [date(2024, 1, 3), date(2024, 1, 2)]
    assert page.meta() == {"total": 5, "totalPages": 3, "currentPage": 2, "pageSize": 2}


def test_page_size_reports_records_on_last_page(seeded):
    query = AttendanceQueryService(seeded)

    page = query.list_by_labourer(1, {"limit": "2", "page": "3"})

    assert page.meta()["pageSize"] == 1


@pytest.mark.parametrize("page_value, limit_value", [("0", "-5"), ("abc", "x"), (None, None)])
def test_pagination_falls_back_to_defaults(seeded, page_value, limit_value):
    query = AttendanceQueryService(seeded)

    page = query.list_by_project(2, {"page": page_value, "limit": limit_value})

    assert page.request.page == 1
    assert page.request.limit == 20
    assert page.total == 5


def test_by_labourer_ignores_invalid_filters(seeded):
    query = AttendanceQueryService(seeded)

    page = query.list_by_labourer(1, {"status": "late", "shift": "x", "projectId": "abc", "startDate": "nope"})

    assert page.total == 5


def test_by_project_applies_date_window(seeded):
    query = AttendanceQueryService(seeded)

    page = query.list_by_project(2, {"startDate": "2024-01-02", "endDate": "2024-01-03", "markedBy": "1"})

    assert page.total == 2
    assert all(d.record.project_id == 2 for d in page.records)


def test_by_labourer_rejects_malformed_id(seeded):
    with pytest.raises(ValidationError):
        AttendanceQueryService(seeded).list_by_labourer("abc", {})


def test_by_date_requires_date(seeded):
    query = AttendanceQueryService(seeded)

    with pytest.raises(ValidationError) as exc:
        query.list_by_date({})

    assert exc.value.message == "Date query parameter is required"


def test_by_date_returns_that_day_only(seeded):
    query = AttendanceQueryService(seeded)

    page = query.list_by_date({"date": "2024-01-04", "status": "present"})

    assert page.total == 1
    assert page.records[0].record.labourer_id == 1


@pytest.mark.parametrize(
    "params",
    [
        {"date": "2024-13-01"},
        {"date": "2024-01-04", "status": "late"},
        {"date": "2024-01-04", "shift": "dawn"},
        {"date": "2024-01-04", "labourerId": "x"},
    ],
)
def test_by_date_rejects_invalid_filters(seeded, params):
    with pytest.raises(ValidationError):
        AttendanceQueryService(seeded).list_by_date(params)
