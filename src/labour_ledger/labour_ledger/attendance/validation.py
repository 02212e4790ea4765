from __future__ import annotations

from typing import Any, Mapping, Optional

from ..common.datetime_utils import coerce_date
from ..common.validators import is_reference_id, require_choice, require_reference_id
from ..core.enums import AttendanceStatus, Shift, choices
from ..core.exceptions import ValidationError
from .model import AttendanceChanges, AttendanceField, NewAttendance

REQUIRED_FIELDS = ("labourerId", "projectId", "date", "shift", "status")


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def candidate_errors(raw: Any) -> tuple[Optional[NewAttendance], list[str]]:
    """Validate one attendance tuple; return the candidate or every failing field.

    Both outcomes are data so bulk ingestion can report them per index.
    """
    if not isinstance(raw, Mapping):
        return None, ["Record must be an object"]

    errors: list[str] = []
    for field in ("labourerId", "projectId"):
        if not is_reference_id(raw.get(field)):
            errors.append(f"Missing/invalid {field}")

    work_date = None
    if _is_missing(raw.get("date")):
        errors.append("Missing/invalid date")
    else:
        try:
            work_date = coerce_date(raw.get("date"), "date")
        except ValidationError:
            errors.append("Missing/invalid date")

    shift = status = None
    try:
        shift = Shift(raw.get("shift"))
    except ValueError:
        errors.append(f"Missing/invalid shift (expected one of: {choices(Shift)})")
    try:
        status = AttendanceStatus(raw.get("status"))
    except ValueError:
        errors.append(f"Missing/invalid status (expected one of: {choices(AttendanceStatus)})")

    marked_by = raw.get("markedBy")
    if not _is_missing(marked_by) and not is_reference_id(marked_by):
        errors.append("Invalid markedBy")

    if errors:
        return None, errors

    return (
        NewAttendance(
            labourer_id=int(raw["labourerId"]),
            project_id=int(raw["projectId"]),
            work_date=work_date,
            shift=shift,
            status=status,
            marked_by=None if _is_missing(marked_by) else int(marked_by),
        ),
        [],
    )


def parse_new_attendance(raw: Mapping[str, Any]) -> NewAttendance:
    missing = [field for field in REQUIRED_FIELDS if _is_missing(raw.get(field))]
    if missing:
        raise ValidationError(
            f"All fields ({', '.join(REQUIRED_FIELDS)}) are required",
            details={"missing": missing},
        )

    candidate, errors = candidate_errors(raw)
    if errors:
        raise ValidationError("; ".join(errors))
    return candidate


def parse_changes(fields: Mapping[str, Any]) -> AttendanceChanges:
    """Pick the updatable fields out of a partial payload and validate each one.

    Unknown keys are ignored; ``markedBy: null`` clears the marker.
    """
    changes: AttendanceChanges = {}
    for field in AttendanceField:
        if field.value not in fields:
            continue
        value = fields[field.value]

        if field in (AttendanceField.LABOURER_ID, AttendanceField.PROJECT_ID):
            changes[field] = require_reference_id(value, field.value)
        elif field is AttendanceField.MARKED_BY:
            changes[field] = None if value is None else require_reference_id(value, "markedBy user ID")
        elif field is AttendanceField.DATE:
            changes[field] = coerce_date(value, "date format")
        elif field is AttendanceField.SHIFT:
            changes[field] = require_choice(value, Shift, "Shift")
        elif field is AttendanceField.STATUS:
            changes[field] = require_choice(value, AttendanceStatus, "Status")
    return changes
