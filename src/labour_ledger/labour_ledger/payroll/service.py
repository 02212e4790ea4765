from __future__ import annotations

import logging
from datetime import date
from typing import Any, Mapping, Optional

from ..common.datetime_utils import coerce_date, now_local, optional_date
from ..common.pagination import Page, PageRequest
from ..common.validators import (
    is_reference_id,
    require_non_empty,
    require_non_negative,
    require_non_negative_int,
    require_reference_id,
)
from ..core.constants import DEFAULT_PAGE_SIZE, MAX_DAILY_WAGE
from ..core.enums import SalaryStatus
from ..core.exceptions import NotFoundError, ValidationError
from .model import NewSalary, SalaryChanges, SalaryCriteria, SalaryDetail, SalaryField, SalaryRecord
from .repository import SalaryRepository

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "labourerId",
    "startPeriod",
    "endPeriod",
    "totalDaysPresent",
    "dailyWage",
    "totalSalary",
    "status",
)

STATUS_MESSAGE = "Status must be 'pending' or 'paid'"


def _status(value: Any) -> SalaryStatus:
    try:
        return SalaryStatus(value)
    except ValueError:
        raise ValidationError(STATUS_MESSAGE) from None


def _lenient_date(value: Any) -> Optional[date]:
    try:
        return optional_date(value, "date")
    except ValidationError:
        return None


def parse_salary_changes(fields: Mapping[str, Any]) -> SalaryChanges:
    """Validate the updatable salary fields present in a partial payload."""
    changes: SalaryChanges = {}
    for field in SalaryField:
        if field.value not in fields:
            continue
        value = fields[field.value]

        if field is SalaryField.LABOURER_ID:
            changes[field] = require_reference_id(value, "labourerId")
        elif field in (SalaryField.START_PERIOD, SalaryField.END_PERIOD):
            changes[field] = coerce_date(value, field.value)
        elif field is SalaryField.PAYMENT_DATE:
            changes[field] = optional_date(value, "paymentDate")
        elif field is SalaryField.TOTAL_DAYS_PRESENT:
            changes[field] = require_non_negative_int(value, field.value)
        elif field is SalaryField.DAILY_WAGE:
            changes[field] = require_non_negative(value, field.value, maximum=MAX_DAILY_WAGE)
        elif field is SalaryField.TOTAL_SALARY:
            changes[field] = require_non_negative(value, field.value)
        elif field is SalaryField.STATUS:
            changes[field] = _status(value)
        elif field is SalaryField.PAYSLIP_URL:
            if value is not None and not isinstance(value, str):
                raise ValidationError("payslipUrl must be a string")
            changes[field] = value
    return changes


class SalaryService:
    """Salary ledger: manual records, payment state and payslip links."""

    def __init__(self, salaries: SalaryRepository, *, page_size: int = DEFAULT_PAGE_SIZE):
        self._salaries = salaries
        self._page_size = int(page_size)

    def create(self, fields: Mapping[str, Any]) -> SalaryRecord:
        missing = [name for name in REQUIRED_FIELDS if fields.get(name) is None or fields.get(name) == ""]
        if missing:
            raise ValidationError("All required salary fields must be provided", details={"missing": missing})

        labourer_id = require_reference_id(fields["labourerId"], "labourerId")
        try:
            start = coerce_date(fields["startPeriod"], "startPeriod")
            end = coerce_date(fields["endPeriod"], "endPeriod")
        except ValidationError:
            raise ValidationError("Invalid startPeriod or endPeriod") from None
        if start > end:
            raise ValidationError("startPeriod cannot be after endPeriod")

        payment_date = optional_date(fields.get("paymentDate"), "paymentDate")
        status = _status(fields["status"])

        new = NewSalary(
            labourer_id=labourer_id,
            start_period=start,
            end_period=end,
            total_days_present=require_non_negative_int(fields["totalDaysPresent"], "totalDaysPresent"),
            daily_wage=require_non_negative(fields["dailyWage"], "dailyWage", maximum=MAX_DAILY_WAGE),
            total_salary=require_non_negative(fields["totalSalary"], "totalSalary"),
            status=status,
            payment_date=payment_date,
        )
        record = self._salaries.create(new)
        logger.debug("[payroll] created salary id=%s labourer=%s %s..%s", record.salary_id, labourer_id, start, end)
        return record

    def update(self, salary_id: Any, fields: Mapping[str, Any]) -> SalaryDetail:
        salary_id = require_reference_id(salary_id, "salary record ID")
        changes = parse_salary_changes(fields)

        current = self._salaries.get_by_id(salary_id)
        if not current:
            raise NotFoundError("Salary record not found")

        start = changes.get(SalaryField.START_PERIOD, current.start_period)
        end = changes.get(SalaryField.END_PERIOD, current.end_period)
        if start > end:
            raise ValidationError("startPeriod cannot be after endPeriod")

        if changes and not self._salaries.update(salary_id, changes):
            raise NotFoundError("Salary record not found")
        return self.get(salary_id)

    def get(self, salary_id: Any) -> SalaryDetail:
        salary_id = require_reference_id(salary_id, "salary record ID")
        detail = self._salaries.get_detail(salary_id)
        if not detail:
            raise NotFoundError("Salary record not found")
        return detail

    def delete(self, salary_id: Any) -> None:
        salary_id = require_reference_id(salary_id, "salary record ID")
        if not self._salaries.delete(salary_id):
            raise NotFoundError("Salary record not found")
        logger.debug("[payroll] deleted salary id=%s", salary_id)

    def mark_paid(self, salary_id: Any, payment_date: Any = None, *, today: Optional[date] = None) -> SalaryRecord:
        salary_id = require_reference_id(salary_id, "salary record ID")
        paid_on = optional_date(payment_date, "paymentDate") or today or now_local().date()

        if not self._salaries.get_by_id(salary_id):
            raise NotFoundError("Salary record not found")

        updated = self._salaries.update(
            salary_id,
            {SalaryField.STATUS: SalaryStatus.PAID, SalaryField.PAYMENT_DATE: paid_on},
        )
        if not updated:
            raise NotFoundError("Salary record not found")
        logger.info("[payroll] salary id=%s marked paid on %s", salary_id, paid_on)
        return updated

    def set_payslip_url(self, salary_id: Any, payslip_url: Any) -> SalaryRecord:
        salary_id = require_reference_id(salary_id, "salary record ID")
        payslip_url = require_non_empty(payslip_url, "payslipUrl")

        if not self._salaries.get_by_id(salary_id):
            raise NotFoundError("Salary record not found")

        updated = self._salaries.update(salary_id, {SalaryField.PAYSLIP_URL: payslip_url})
        if not updated:
            raise NotFoundError("Salary record not found")
        return updated

    def payslip_url(self, salary_id: Any) -> str:
        salary_id = require_reference_id(salary_id, "salary record ID")
        record = self._salaries.get_by_id(salary_id)
        if not record:
            raise NotFoundError("Salary record not found")
        if not record.payslip_url:
            raise NotFoundError("Payslip URL not set for this salary record")
        return record.payslip_url

    def _page(self, criteria: SalaryCriteria, params: Mapping[str, Any]) -> Page:
        request = PageRequest.from_params(params, default_limit=self._page_size)
        total, records = self._salaries.list_details(criteria, offset=request.offset, limit=request.limit)
        return Page(records=list(records), total=total, request=request)

    def list_salaries(self, params: Mapping[str, Any]) -> Page:
        labourer_id = params.get("labourerId")
        status = params.get("status")
        criteria = SalaryCriteria(
            labourer_id=int(labourer_id) if is_reference_id(labourer_id) else None,
            status=_status(status) if status else None,
            period_start=_lenient_date(params.get("startPeriod")),
            period_end=_lenient_date(params.get("endPeriod")),
            payment_date=_lenient_date(params.get("paymentDate")),
        )
        return self._page(criteria, params)

    def list_payslips(self, labourer_id: Any, params: Mapping[str, Any]) -> Page:
        labourer_id = require_reference_id(labourer_id, "labourer ID")
        status = params.get("status")
        criteria = SalaryCriteria(
            labourer_id=labourer_id,
            status=_status(status) if status else None,
            period_start=_lenient_date(params.get("startPeriod")),
            period_end=_lenient_date(params.get("endPeriod")),
        )
        return self._page(criteria, params)
