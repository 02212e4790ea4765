from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping

from ..common.datetime_utils import coerce_date, optional_date
from ..common.pagination import Page, PageRequest
from ..common.validators import is_reference_id, require_choice, require_reference_id
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import AttendanceStatus, Shift
from ..core.exceptions import ValidationError
from .model import AttendanceCriteria
from .repository import AttendanceRepository


def _lenient_enum(value: Any, enum_cls):
    try:
        return enum_cls(value) if value else None
    except ValueError:
        return None


def _lenient_date(value: Any):
    try:
        return optional_date(value, "date")
    except ValidationError:
        return None


def lenient_criteria(params: Mapping[str, Any]) -> AttendanceCriteria:
    """Build filters from query params, silently dropping values that do not parse."""

    def ref(name: str):
        value = params.get(name)
        return int(value) if is_reference_id(value) else None

    return AttendanceCriteria(
        labourer_id=ref("labourerId"),
        project_id=ref("projectId"),
        status=_lenient_enum(params.get("status"), AttendanceStatus),
        shift=_lenient_enum(params.get("shift"), Shift),
        marked_by=ref("markedBy"),
        start_date=_lenient_date(params.get("startDate")),
        end_date=_lenient_date(params.get("endDate")),
    )


def strict_day_criteria(params: Mapping[str, Any]) -> AttendanceCriteria:
    """Filters for one calendar day; every supplied filter must be valid."""
    if not params.get("date"):
        raise ValidationError("Date query parameter is required")
    day = coerce_date(params["date"], "date format")

    def ref(name: str, label: str):
        value = params.get(name)
        return require_reference_id(value, label) if value else None

    status = params.get("status")
    shift = params.get("shift")
    return AttendanceCriteria(
        labourer_id=ref("labourerId", "labourerId"),
        project_id=ref("projectId", "projectId"),
        status=require_choice(status, AttendanceStatus, "Status") if status else None,
        shift=require_choice(shift, Shift, "Shift") if shift else None,
        marked_by=ref("markedBy", "markedBy user ID"),
        start_date=day,
        end_date=day,
    )


class AttendanceQueryService:
    """Paginated attendance listings, newest date first."""

    def __init__(self, attendance: AttendanceRepository, *, page_size: int = DEFAULT_PAGE_SIZE):
        self._attendance = attendance
        self._page_size = int(page_size)

    def _page(self, criteria: AttendanceCriteria, params: Mapping[str, Any]) -> Page:
        request = PageRequest.from_params(params, default_limit=self._page_size)
        total, records = self._attendance.list_details(criteria, offset=request.offset, limit=request.limit)
        return Page(records=list(records), total=total, request=request)

    def list_by_labourer(self, labourer_id: Any, params: Mapping[str, Any]) -> Page:
        labourer_id = require_reference_id(labourer_id, "labourer ID")
        criteria = replace(lenient_criteria(params), labourer_id=labourer_id)
        return self._page(criteria, params)

    def list_by_project(self, project_id: Any, params: Mapping[str, Any]) -> Page:
        project_id = require_reference_id(project_id, "project ID")
        criteria = replace(lenient_criteria(params), project_id=project_id)
        return self._page(criteria, params)

    def list_by_date(self, params: Mapping[str, Any]) -> Page:
        return self._page(strict_day_criteria(params), params)
