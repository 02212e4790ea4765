from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus, Shift
from ..core.exceptions import ConflictError, InternalError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_connection, db_cursor, fetchall, fetchone, is_duplicate_key, placeholders
from ..directory.model import LabourerSummary, MarkerSummary, ProjectSummary
from .model import (
    AttendanceChanges,
    AttendanceCriteria,
    AttendanceDetail,
    AttendanceField,
    AttendanceRecord,
    AttendanceSlot,
    InsertOutcome,
    NewAttendance,
    RejectedRow,
)
from .repository import AttendanceRepository

_RECORD_COLUMNS = "ar.attendance_id, ar.labourer_id, ar.project_id, ar.work_date, ar.shift, ar.status, ar.marked_by, ar.created_at, ar.updated_at"

_DETAIL_SELECT = f"""
    SELECT
        {_RECORD_COLUMNS},
        l.full_name, l.contact_number,
        p.name AS project_name, p.location AS project_location,
        u.username AS marker_username, u.email AS marker_email
    FROM attendance_records ar
    LEFT JOIN labourers l ON l.labourer_id = ar.labourer_id
    LEFT JOIN projects p ON p.project_id = ar.project_id
    LEFT JOIN users u ON u.user_id = ar.marked_by
"""

_INSERT = """
    INSERT INTO attendance_records(labourer_id, project_id, work_date, shift, status, marked_by)
    VALUES(%s,%s,%s,%s,%s,%s)
"""

_UPDATE_COLUMNS = {
    AttendanceField.LABOURER_ID: "labourer_id",
    AttendanceField.PROJECT_ID: "project_id",
    AttendanceField.DATE: "work_date",
    AttendanceField.SHIFT: "shift",
    AttendanceField.STATUS: "status",
    AttendanceField.MARKED_BY: "marked_by",
}


def _db_value(value: Any) -> Any:
    if isinstance(value, (Shift, AttendanceStatus)):
        return value.value
    return value


def _insert_params(new: NewAttendance) -> tuple:
    return (new.labourer_id, new.project_id, new.work_date, new.shift.value, new.status.value, new.marked_by)


def _where(criteria: AttendanceCriteria) -> tuple[str, list[object]]:
    clauses: list[str] = []
    params: list[object] = []

    if criteria.labourer_id is not None:
        clauses.append("ar.labourer_id=%s")
        params.append(int(criteria.labourer_id))
    if criteria.project_id is not None:
        clauses.append("ar.project_id=%s")
        params.append(int(criteria.project_id))
    if criteria.status is not None:
        clauses.append("ar.status=%s")
        params.append(criteria.status.value)
    if criteria.shift is not None:
        clauses.append("ar.shift=%s")
        params.append(criteria.shift.value)
    if criteria.marked_by is not None:
        clauses.append("ar.marked_by=%s")
        params.append(int(criteria.marked_by))
    if criteria.start_date is not None:
        clauses.append("ar.work_date >= %s")
        params.append(criteria.start_date)
    if criteria.end_date is not None:
        clauses.append("ar.work_date <= %s")
        params.append(criteria.end_date)

    where = " AND ".join(clauses) if clauses else "1=1"
    return where, params


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        labourer_id=int(r["labourer_id"]),
        project_id=int(r["project_id"]),
        work_date=r["work_date"],
        shift=Shift(r["shift"]),
        status=AttendanceStatus(r["status"]),
        marked_by=int(r["marked_by"]) if r.get("marked_by") is not None else None,
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _to_detail(r: dict) -> AttendanceDetail:
    record = _to_record(r)
    labourer = project = marker = None
    if r.get("full_name") is not None:
        contact = r.get("contact_number")
        labourer = LabourerSummary(record.labourer_id, r["full_name"], str(contact) if contact is not None else None)
    if r.get("project_name") is not None:
        project = ProjectSummary(record.project_id, r["project_name"], r.get("project_location"))
    if record.marked_by is not None and r.get("marker_username") is not None:
        marker = MarkerSummary(record.marked_by, r["marker_username"], r.get("marker_email"))
    return AttendanceDetail(record=record, labourer=labourer, project=project, marker=marker)


def _slot_conflict(slot: AttendanceSlot) -> ConflictError:
    return ConflictError(
        f"Attendance already marked for this labourer, project, date, and shift ({slot.describe()})",
        details={"slot": slot.describe()},
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records ar WHERE ar.attendance_id=%s",
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_detail(self, attendance_id: int) -> Optional[AttendanceDetail]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_DETAIL_SELECT} WHERE ar.attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_detail(r) if r else None

    def find_by_slot(self, slot: AttendanceSlot, *, exclude_id: Optional[int] = None) -> Optional[AttendanceRecord]:
        sql = f"""
            SELECT {_RECORD_COLUMNS}
            FROM attendance_records ar
            WHERE ar.labourer_id=%s AND ar.project_id=%s AND ar.work_date=%s AND ar.shift=%s
        """
        params: list[object] = [slot.labourer_id, slot.project_id, slot.work_date, slot.shift.value]
        if exclude_id is not None:
            sql += " AND ar.attendance_id<>%s"
            params.append(int(exclude_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def create(self, new: NewAttendance) -> AttendanceRecord:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(_INSERT, _insert_params(new))
                attendance_id = int(cur.lastrowid)
        except mysql.connector.IntegrityError as err:
            if is_duplicate_key(err):
                raise _slot_conflict(new.slot) from err
            raise

        created = self.get_by_id(attendance_id)
        if created is None:
            raise InternalError("Attendance record vanished after insert")
        return created

    def update(self, attendance_id: int, changes: AttendanceChanges) -> Optional[AttendanceRecord]:
        if changes:
            assignments = ", ".join(f"{_UPDATE_COLUMNS[field]}=%s" for field in changes)
            params = [_db_value(value) for value in changes.values()]
            params.append(int(attendance_id))
            try:
                with db_cursor(self._conn_factory) as (_, cur):
                    cur.execute(
                        f"UPDATE attendance_records SET {assignments} WHERE attendance_id=%s",
                        tuple(params),
                    )
            except mysql.connector.IntegrityError as err:
                if is_duplicate_key(err):
                    raise ConflictError(
                        "Another attendance record exists for this labourer, project, date, and shift"
                    ) from err
                raise
        return self.get_by_id(attendance_id)

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def insert_unordered(self, batch: Sequence[NewAttendance]) -> InsertOutcome:
        inserted: list[AttendanceRecord] = []
        rejected: list[RejectedRow] = []

        try:
            with db_connection(self._conn_factory) as conn:
                cur = conn.cursor(dictionary=True)
                try:
                    for position, new in enumerate(batch):
                        try:
                            cur.execute(_INSERT, _insert_params(new))
                            conn.commit()
                        except mysql.connector.OperationalError:
                            raise
                        except mysql.connector.DatabaseError as err:
                            # Statement-level refusal (duplicate key, out-of-range value): skip the row.
                            conn.rollback()
                            reason = (
                                f"Duplicate attendance for {new.slot.describe()}"
                                if is_duplicate_key(err)
                                else f"Rejected by store: {err.msg}"
                            )
                            rejected.append(RejectedRow(position=position, reason=reason))
                            continue
                        inserted.append(
                            AttendanceRecord(
                                attendance_id=int(cur.lastrowid),
                                labourer_id=new.labourer_id,
                                project_id=new.project_id,
                                work_date=new.work_date,
                                shift=new.shift,
                                status=new.status,
                                marked_by=new.marked_by,
                            )
                        )
                finally:
                    cur.close()
        except mysql.connector.Error as err:
            # Rows committed before the failure stay committed.
            raise InternalError(f"Bulk insert failed after {len(inserted)} rows") from err

        return InsertOutcome(inserted=inserted, rejected=rejected)

    def count_by_status(self, criteria: AttendanceCriteria) -> dict[AttendanceStatus, int]:
        where, params = _where(criteria)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT ar.status, COUNT(*) AS total
                FROM attendance_records ar
                WHERE {where}
                GROUP BY ar.status
                """,
                tuple(params),
            )
            return {AttendanceStatus(r["status"]): int(r["total"]) for r in fetchall(cur)}

    def count_by_labourer(
        self,
        *,
        start_date: date,
        end_date: date,
        statuses: Iterable[AttendanceStatus],
    ) -> dict[int, int]:
        status_values = [s.value for s in statuses]
        if not status_values:
            return {}
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT labourer_id, COUNT(*) AS total
                FROM attendance_records
                WHERE work_date BETWEEN %s AND %s AND status IN ({placeholders(status_values)})
                GROUP BY labourer_id
                """,
                (start_date, end_date, *status_values),
            )
            return {int(r["labourer_id"]): int(r["total"]) for r in fetchall(cur)}

    def list_details(
        self,
        criteria: AttendanceCriteria,
        *,
        offset: int,
        limit: int,
    ) -> tuple[int, Sequence[AttendanceDetail]]:
        where, params = _where(criteria)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance_records ar WHERE {where}", tuple(params))
            total = int(fetchone(cur)["total"])

            cur.execute(
                f"""
                {_DETAIL_SELECT}
                WHERE {where}
                ORDER BY ar.work_date DESC, ar.attendance_id DESC
                LIMIT %s OFFSET %s
                """,
                (*params, int(limit), int(offset)),
            )
            return total, [_to_detail(r) for r in fetchall(cur)]

    def export_details(self, criteria: AttendanceCriteria, *, limit: int) -> Sequence[AttendanceDetail]:
        where, params = _where(criteria)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_DETAIL_SELECT}
                WHERE {where}
                ORDER BY ar.work_date DESC, ar.attendance_id DESC
                LIMIT %s
                """,
                (*params, int(limit)),
            )
            return [_to_detail(r) for r in fetchall(cur)]
