from __future__ import annotations

import logging
from typing import Any, Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import coerce_date
from ..common.validators import require_non_negative
from ..core.constants import MAX_DAILY_WAGE, MAX_SALARY_TOTAL
from ..core.enums import SalaryStatus
from ..core.exceptions import ValidationError
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import GenerationResult, NewSalary
from .repository import SalaryRepository

logger = logging.getLogger(__name__)

NO_ATTENDANCE_MESSAGE = "No attendance records found for the given period to generate salary."
ALREADY_GENERATED_MESSAGE = "Salary records for this period already generated for all labourers."


class PayrollGenerator:
    """Derives pending salary records from presence counts over a period.

    Generation is idempotent per (labourer, start period, end period): labourers
    who already hold a record for the exact period are skipped, never
    regenerated. The remaining records are inserted all-or-nothing.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        salaries: SalaryRepository,
        *,
        calculator: Optional[PayrollCalculator] = None,
    ):
        self._attendance = attendance
        self._salaries = salaries
        self._calculator = calculator or StandardPayrollCalculator()

    def generate_for_period(self, *, start_period: Any, end_period: Any, daily_wage: Any) -> GenerationResult:
        if not start_period or not end_period or daily_wage is None:
            raise ValidationError("startPeriod, endPeriod, and dailyWage are required")

        try:
            start = coerce_date(start_period, "startPeriod")
            end = coerce_date(end_period, "endPeriod")
        except ValidationError:
            raise ValidationError("Invalid startPeriod or endPeriod date format") from None
        if start > end:
            raise ValidationError("startPeriod cannot be after endPeriod")

        try:
            wage = require_non_negative(daily_wage, "dailyWage", maximum=MAX_DAILY_WAGE)
        except ValidationError as err:
            raise ValidationError("dailyWage must be a non-negative number", details={"reason": err.message}) from None

        days_by_labourer = self._attendance.count_by_labourer(
            start_date=start,
            end_date=end,
            statuses=self._calculator.counted_statuses,
        )
        if not days_by_labourer:
            logger.info("[payroll] %s..%s: no attendance to generate from", start, end)
            return GenerationResult(message=NO_ATTENDANCE_MESSAGE)

        covered = self._salaries.labourers_with_period(days_by_labourer.keys(), start_period=start, end_period=end)
        batch = [
            NewSalary(
                labourer_id=labourer_id,
                start_period=start,
                end_period=end,
                total_days_present=days,
                daily_wage=wage,
                total_salary=self._calculator.total_salary(days_present=days, daily_wage=wage),
                status=SalaryStatus.PENDING,
                payslip_url="",
            )
            for labourer_id, days in sorted(days_by_labourer.items())
            if labourer_id not in covered
        ]
        skipped = sorted(covered)

        oversized = [new.labourer_id for new in batch if new.total_salary > MAX_SALARY_TOTAL]
        if oversized:
            raise ValidationError(
                f"totalSalary would exceed {MAX_SALARY_TOTAL} for this dailyWage",
                details={"labourerIds": oversized},
            )

        if not batch:
            logger.info("[payroll] %s..%s: already generated for all %s labourers", start, end, len(skipped))
            return GenerationResult(skipped_labourer_ids=skipped, message=ALREADY_GENERATED_MESSAGE)

        created = self._salaries.insert_all(batch)
        logger.info(
            "[payroll] %s..%s: generated=%s skipped=%s wage=%s",
            start,
            end,
            len(created),
            len(skipped),
            wage,
        )
        return GenerationResult(
            generated=list(created),
            skipped_labourer_ids=skipped,
            message=f"Generated salary records for {len(created)} labourers",
        )
