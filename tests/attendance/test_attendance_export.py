from __future__ import annotations

import csv
import io

from src.labour_ledger.labour_ledger.attendance.export import EXPORT_FIELDS, AttendanceExporter
from src.labour_ledger.labour_ledger.attendance.service import AttendanceService


def test_export_rows_flatten_summaries(attendance_repo):
    service = AttendanceService(attendance_repo)
    service.mark(labourer_id=1, project_id=1, work_date="2024-01-01", shift="morning", status="present", marked_by=1)
    service.mark(labourer_id=3, project_id=2, work_date="2024-01-02", shift="night", status="half-day")
    service.mark(labourer_id=9, project_id=9, work_date="2024-01-03", shift="evening", status="absent")

    rows = AttendanceExporter(attendance_repo).export_rows({})

    assert [r["Date"] for r in rows] == ["2024-01-03", "2024-01-02", "2024-01-01"]
    assert rows[0]["LabourerName"] == "" and rows[0]["ProjectName"] == ""
    assert rows[1]["LabourerContact"] == "" and rows[1]["ProjectLocation"] == ""
    assert rows[2]["MarkedBy"] == "manager"
    assert rows[2]["MarkedByEmail"] == "manager@example.com"
    assert rows[2]["LabourerName"] == "Ravi Kumar"


def test_export_csv_header_and_filters(attendance_repo):
    service = AttendanceService(attendance_repo)
    service.mark(labourer_id=1, project_id=1, work_date="2024-01-01", shift="morning", status="present")
    service.mark(labourer_id=2, project_id=1, work_date="2024-01-01", shift="morning", status="absent")

    text = AttendanceExporter(attendance_repo).export_csv({"status": "absent", "shift": "bogus"})

    lines = list(csv.reader(io.StringIO(text)))
    assert lines[0] == EXPORT_FIELDS
    assert len(lines) == 2
    assert lines[1][2] == "absent"


def test_export_is_capped(attendance_repo):
    service = AttendanceService(attendance_repo)
    for labourer_id in range(1, 6):
        service.mark(labourer_id=labourer_id, project_id=1, work_date="2024-01-01", shift="morning", status="present")

    rows = AttendanceExporter(attendance_repo, row_limit=3).export_rows({})

    assert len(rows) == 3
