from __future__ import annotations

import pytest

from src.labour_ledger.labour_ledger.attendance.bulk import BulkIngestionService
from src.labour_ledger.labour_ledger.core.exceptions import ValidationError


def _row(**overrides):
    row = {"labourerId": 1, "projectId": 1, "date": "2024-01-01", "shift": "morning", "status": "present"}
    row.update(overrides)
    return row


def test_bad_shift_in_middle_fails_only_that_index(attendance_repo):
    service = BulkIngestionService(attendance_repo)
    records = [_row(), _row(shift="nightshift"), _row(labourerId=2)]

    result = service.bulk_add(records)

    assert result.inserted_count == 2
    assert result.failed_count == 1
    failure = result.failed[0]
    assert failure.index == 1
    assert "shift" in failure.reason
    assert failure.record == records[1]


def test_counts_and_indices_follow_input_positions(attendance_repo):
    service = BulkIngestionService(attendance_repo)
    records = [
        _row(),
        _row(status="late"),
        _row(labourerId=2),
        _row(date="31/01/2024", labourerId=3),
        _row(),
        _row(labourerId=3),
    ]

    result = service.bulk_add(records)

    assert result.inserted_count == 3
    assert result.failed_count == 3
    assert [f.index for f in result.failed] == [1, 3, 4]
    assert "Duplicate within batch of record 0" in result.failed[2].reason
    assert len(attendance_repo.all()) == 3


def test_reason_names_every_offending_field(attendance_repo):
    service = BulkIngestionService(attendance_repo)

    result = service.bulk_add([_row(), _row(shift="x", status="y", projectId="abc")])

    reason = result.failed[0].reason
    assert "shift" in reason and "status" in reason and "projectId" in reason


def test_store_rejections_are_reported_with_input_index(attendance_repo):
    service = BulkIngestionService(attendance_repo)
    service.bulk_add([_row(labourerId=2)])

    records = [_row(status="bogus"), _row(), _row(labourerId=2), _row(labourerId=3)]
    result = service.bulk_add(records)

    assert result.inserted_count == 2
    assert [f.index for f in result.failed] == [0, 2]
    assert "Duplicate attendance" in result.failed[1].reason


def test_lost_race_appears_as_failure_not_success(attendance_repo):
    service = BulkIngestionService(attendance_repo)
    attendance_repo.reject_positions = {1}

    result = service.bulk_add([_row(), _row(labourerId=2), _row(labourerId=3)])

    assert result.inserted_count == 2
    assert result.failed_count == 1
    assert result.failed[0].index == 1


def test_all_invalid_raises_with_diagnostics(attendance_repo):
    service = BulkIngestionService(attendance_repo)

    with pytest.raises(ValidationError) as exc:
        service.bulk_add([_row(shift="nope"), "not-an-object"])

    assert "2 failed validation" in exc.value.message
    assert [d["index"] for d in exc.value.details] == [0, 1]
    assert attendance_repo.all() == []


@pytest.mark.parametrize("records", [None, [], {"labourerId": 1}, "rows"])
def test_input_must_be_non_empty_array(attendance_repo, records):
    service = BulkIngestionService(attendance_repo)

    with pytest.raises(ValidationError):
        service.bulk_add(records)


def test_result_payload_shape(attendance_repo):
    service = BulkIngestionService(attendance_repo)

    payload = service.bulk_add([_row(), _row(shift="nightshift")]).to_dict()

    assert payload["insertedCount"] == 1
    assert payload["failedCount"] == 1
    assert payload["failedRecords"][0]["index"] == 1
