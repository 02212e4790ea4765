from __future__ import annotations

import csv
import io
from typing import Any, Mapping, Sequence

from ..core.constants import EXPORT_ROW_LIMIT
from .model import AttendanceDetail
from .query import lenient_criteria
from .repository import AttendanceRepository

EXPORT_FIELDS = [
    "Date",
    "Shift",
    "Status",
    "LabourerName",
    "LabourerContact",
    "ProjectName",
    "ProjectLocation",
    "MarkedBy",
    "MarkedByEmail",
    "RecordId",
]


def flatten(detail: AttendanceDetail) -> dict:
    r = detail.record
    return {
        "Date": r.work_date.strftime("%Y-%m-%d"),
        "Shift": r.shift.value,
        "Status": r.status.value,
        "LabourerName": detail.labourer.full_name if detail.labourer else "",
        "LabourerContact": (detail.labourer.contact_number or "") if detail.labourer else "",
        "ProjectName": detail.project.name if detail.project else "",
        "ProjectLocation": (detail.project.location or "") if detail.project else "",
        "MarkedBy": detail.marker.username if detail.marker else "",
        "MarkedByEmail": (detail.marker.email or "") if detail.marker else "",
        "RecordId": str(r.attendance_id),
    }


def write_csv(rows: Sequence[dict]) -> str:
    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=EXPORT_FIELDS)
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return out.getvalue()


class AttendanceExporter:
    """Flattened attendance rows for the bulk download, capped at ``row_limit``."""

    def __init__(self, attendance: AttendanceRepository, *, row_limit: int = EXPORT_ROW_LIMIT):
        self._attendance = attendance
        self._row_limit = int(row_limit)

    def export_rows(self, params: Mapping[str, Any]) -> list[dict]:
        details = self._attendance.export_details(lenient_criteria(params), limit=self._row_limit)
        return [flatten(d) for d in details[: self._row_limit]]

    def export_csv(self, params: Mapping[str, Any]) -> str:
        return write_csv(self.export_rows(params))
