from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from ...core.enums import AttendanceStatus


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @property
    @abstractmethod
    def counted_statuses(self) -> tuple[AttendanceStatus, ...]:
        """Attendance statuses that count as a paid day."""
        raise NotImplementedError

    @abstractmethod
    def total_salary(self, *, days_present: int, daily_wage: Decimal) -> Decimal:
        raise NotImplementedError
