from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from ..core.exceptions import ValidationError
from .model import AttendanceRecord, AttendanceSlot, NewAttendance
from .repository import AttendanceRepository
from .validation import candidate_errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FailedRecord:
    """``index`` is the record's 0-based position in the caller's input."""

    index: int
    reason: str
    record: Any

    def to_dict(self) -> dict:
        return {"index": self.index, "reason": self.reason, "record": self.record}


@dataclass(frozen=True)
class BulkAddResult:
    inserted: list[AttendanceRecord] = field(default_factory=list)
    failed: list[FailedRecord] = field(default_factory=list)

    @property
    def inserted_count(self) -> int:
        return len(self.inserted)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    def to_dict(self) -> dict:
        return {
            "message": "Bulk attendance insert complete",
            "insertedCount": self.inserted_count,
            "failedCount": self.failed_count,
            "failedRecords": [f.to_dict() for f in self.failed],
        }


class BulkIngestionService:
    """Validates attendance tuples one by one and inserts the survivors unordered.

    Pre-validation failures and store-level rejections both come back as
    ``FailedRecord`` entries; only a batch with no valid candidate at all is
    an error.
    """

    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def bulk_add(self, records: Any) -> BulkAddResult:
        if not isinstance(records, (list, tuple)) or not records:
            raise ValidationError("attendanceRecords must be a non-empty array")

        failed: list[FailedRecord] = []
        valid: list[NewAttendance] = []
        positions: list[int] = []
        seen: dict[AttendanceSlot, int] = {}

        for index, raw in enumerate(records):
            candidate, errors = candidate_errors(raw)
            if errors:
                failed.append(FailedRecord(index=index, reason="; ".join(errors), record=raw))
                continue

            first = seen.get(candidate.slot)
            if first is not None:
                failed.append(
                    FailedRecord(
                        index=index,
                        reason=f"Duplicate within batch of record {first} ({candidate.slot.describe()})",
                        record=raw,
                    )
                )
                continue

            seen[candidate.slot] = index
            valid.append(candidate)
            positions.append(index)

        if not valid:
            raise ValidationError(
                f"No valid attendance records to add. {len(failed)} failed validation.",
                details=[f.to_dict() for f in failed],
            )

        outcome = self._attendance.insert_unordered(valid)
        for rejected in outcome.rejected:
            index = positions[rejected.position]
            failed.append(FailedRecord(index=index, reason=rejected.reason, record=records[index]))
            logger.warning("[attendance] bulk row %s rejected by store: %s", index, rejected.reason)

        failed.sort(key=lambda f: f.index)
        logger.info(
            "[attendance] bulk add: received=%s inserted=%s failed=%s",
            len(records),
            len(outcome.inserted),
            len(failed),
        )
        return BulkAddResult(inserted=list(outcome.inserted), failed=failed)
