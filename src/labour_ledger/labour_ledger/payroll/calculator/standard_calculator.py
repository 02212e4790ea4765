from __future__ import annotations

from decimal import Decimal

from .base import PayrollCalculator
from ...core.enums import AttendanceStatus


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: flat daily wage per present day; half-day and absent pay nothing."""

    @property
    def counted_statuses(self) -> tuple[AttendanceStatus, ...]:
        return (AttendanceStatus.PRESENT,)

    def total_salary(self, *, days_present: int, daily_wage: Decimal) -> Decimal:
        return Decimal(max(int(days_present), 0)) * daily_wage
