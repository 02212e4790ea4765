from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Optional, Sequence

import mysql.connector

from ..common.validators import parse_decimal
from ..core.enums import SalaryStatus
from ..core.exceptions import ConflictError, InternalError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key, placeholders
from ..directory.model import LabourerSummary
from .model import (
    NewSalary,
    SalaryChanges,
    SalaryCriteria,
    SalaryDetail,
    SalaryField,
    SalaryRecord,
    SalaryTotals,
)
from .repository import SalaryRepository

_COLUMNS = (
    "s.salary_id, s.labourer_id, s.start_period, s.end_period, s.total_days_present, "
    "s.daily_wage, s.total_salary, s.status, s.payment_date, s.payslip_url, s.created_at, s.updated_at"
)

_INSERT = """
    INSERT INTO salary_records(
        labourer_id, start_period, end_period, total_days_present,
        daily_wage, total_salary, status, payment_date, payslip_url
    )
    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
"""

_UPDATE_COLUMNS = {
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


def _insert_params(new: NewSalary) -> tuple:
    return (
        new.labourer_id,
        new.start_period,
        new.end_period,
        new.total_days_present,
        new.daily_wage,
        new.total_salary,
        new.status.value,
        new.payment_date,
        new.payslip_url,
    )


def _db_value(value: Any) -> Any:
    return value.value if isinstance(value, SalaryStatus) else value


def _where(criteria: SalaryCriteria) -> tuple[str, list[object]]:
    clauses: list[str] = []
    params: list[object] = []

    if criteria.labourer_id is not None:
        clauses.append("s.labourer_id=%s")
        params.append(int(criteria.labourer_id))
    if criteria.status is not None:
        clauses.append("s.status=%s")
        params.append(criteria.status.value)
    # Period overlap: the record ends on/after the window start and starts on/before its end.
    if criteria.period_start is not None:
        clauses.append("s.end_period >= %s")
        params.append(criteria.period_start)
    if criteria.period_end is not None:
        clauses.append("s.start_period <= %s")
        params.append(criteria.period_end)
    if criteria.payment_date is not None:
        clauses.append("s.payment_date=%s")
        params.append(criteria.payment_date)

    return (" AND ".join(clauses) if clauses else "1=1"), params


def _to_record(r: dict) -> SalaryRecord:
    return SalaryRecord(
        salary_id=int(r["salary_id"]),
        labourer_id=int(r["labourer_id"]),
        start_period=r["start_period"],
        end_period=r["end_period"],
        total_days_present=int(r["total_days_present"]),
        daily_wage=parse_decimal(r["daily_wage"]),
        total_salary=parse_decimal(r["total_salary"]),
        status=SalaryStatus(r["status"]),
        payment_date=r.get("payment_date"),
        payslip_url=r.get("payslip_url"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _to_detail(r: dict) -> SalaryDetail:
    record = _to_record(r)
    labourer = None
    if r.get("full_name") is not None:
        contact = r.get("contact_number")
        labourer = LabourerSummary(record.labourer_id, r["full_name"], str(contact) if contact is not None else None)
    return SalaryDetail(record=record, labourer=labourer)


def _from_new(salary_id: int, new: NewSalary) -> SalaryRecord:
    return SalaryRecord(
        salary_id=salary_id,
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


def _period_conflict(labourer_id: Optional[int] = None) -> ConflictError:
    who = f"labourer {labourer_id}" if labourer_id is not None else "this labourer"
    return ConflictError(f"A salary record for {who} already exists for this exact period")


class MySQLSalaryRepository(SalaryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, new: NewSalary) -> SalaryRecord:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(_INSERT, _insert_params(new))
                salary_id = int(cur.lastrowid)
        except mysql.connector.IntegrityError as err:
            if is_duplicate_key(err):
                raise _period_conflict(new.labourer_id) from err
            raise
        return self.get_by_id(salary_id) or _from_new(salary_id, new)

    def insert_all(self, batch: Sequence[NewSalary]) -> list[SalaryRecord]:
        created: list[SalaryRecord] = []
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                for new in batch:
                    cur.execute(_INSERT, _insert_params(new))
                    created.append(_from_new(int(cur.lastrowid), new))
        except mysql.connector.IntegrityError as err:
            if is_duplicate_key(err):
                raise ConflictError(
                    "Salary records for this period were generated concurrently; nothing was saved"
                ) from err
            raise InternalError("Failed to save generated salary records") from err
        except mysql.connector.Error as err:
            raise InternalError("Failed to save generated salary records") from err
        return created

    def get_by_id(self, salary_id: int) -> Optional[SalaryRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM salary_records s WHERE s.salary_id=%s", (int(salary_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_detail(self, salary_id: int) -> Optional[SalaryDetail]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}, l.full_name, l.contact_number
                FROM salary_records s
                LEFT JOIN labourers l ON l.labourer_id = s.labourer_id
                WHERE s.salary_id=%s
                """,
                (int(salary_id),),
            )
            r = fetchone(cur)
            return _to_detail(r) if r else None

    def update(self, salary_id: int, changes: SalaryChanges) -> Optional[SalaryRecord]:
        if changes:
            assignments = ", ".join(f"{_UPDATE_COLUMNS[field]}=%s" for field in changes)
            params = [_db_value(value) for value in changes.values()]
            params.append(int(salary_id))
            try:
                with db_cursor(self._conn_factory) as (_, cur):
                    cur.execute(f"UPDATE salary_records SET {assignments} WHERE salary_id=%s", tuple(params))
            except mysql.connector.IntegrityError as err:
                if is_duplicate_key(err):
                    raise _period_conflict(changes.get(SalaryField.LABOURER_ID)) from err
                raise
        return self.get_by_id(salary_id)

    def delete(self, salary_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM salary_records WHERE salary_id=%s", (int(salary_id),))
            return cur.rowcount > 0

    def labourers_with_period(self, labourer_ids: Iterable[int], *, start_period: date, end_period: date) -> set[int]:
        ids = [int(i) for i in labourer_ids]
        if not ids:
            return set()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT DISTINCT labourer_id
                FROM salary_records
                WHERE labourer_id IN ({placeholders(ids)}) AND start_period=%s AND end_period=%s
                """,
                (*ids, start_period, end_period),
            )
            return {int(r["labourer_id"]) for r in fetchall(cur)}

    def list_details(
        self,
        criteria: SalaryCriteria,
        *,
        offset: int,
        limit: int,
    ) -> tuple[int, Sequence[SalaryDetail]]:
        where, params = _where(criteria)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM salary_records s WHERE {where}", tuple(params))
            total = int(fetchone(cur)["total"])

            cur.execute(
                f"""
                SELECT {_COLUMNS}, l.full_name, l.contact_number
                FROM salary_records s
                LEFT JOIN labourers l ON l.labourer_id = s.labourer_id
                WHERE {where}
                ORDER BY s.start_period DESC, s.end_period DESC, s.salary_id DESC
                LIMIT %s OFFSET %s
                """,
                (*params, int(limit), int(offset)),
            )
            return total, [_to_detail(r) for r in fetchall(cur)]

    def totals(self, criteria: SalaryCriteria) -> SalaryTotals:
        where, params = _where(criteria)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    COALESCE(SUM(CASE WHEN s.status='paid' THEN s.total_salary ELSE 0 END), 0) AS total_paid,
                    COALESCE(SUM(CASE WHEN s.status='pending' THEN s.total_salary ELSE 0 END), 0) AS total_pending,
                    COUNT(*) AS records_count,
                    COALESCE(SUM(s.total_days_present), 0) AS total_days_present
                FROM salary_records s
                WHERE {where}
                """,
                tuple(params),
            )
            r = fetchone(cur)
            if not r:
                return SalaryTotals()
            return SalaryTotals(
                total_paid=parse_decimal(r["total_paid"]),
                total_pending=parse_decimal(r["total_pending"]),
                records_count=int(r["records_count"]),
                total_days_present=int(r["total_days_present"]),
            )
