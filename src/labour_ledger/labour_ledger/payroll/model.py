from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..core.enums import SalaryStatus
from ..directory.model import LabourerSummary


@dataclass(frozen=True)
class NewSalary:
    labourer_id: int
    start_period: date
    end_period: date
    total_days_present: int
    daily_wage: Decimal
    total_salary: Decimal
    status: SalaryStatus = SalaryStatus.PENDING
    payment_date: Optional[date] = None
    payslip_url: Optional[str] = None


@dataclass(frozen=True)
class SalaryRecord:
    salary_id: int
    labourer_id: int
    start_period: date
    end_period: date
    total_days_present: int
    daily_wage: Decimal
    total_salary: Decimal
    status: SalaryStatus
    payment_date: Optional[date] = None
    payslip_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class SalaryDetail:
    record: SalaryRecord
    labourer: Optional[LabourerSummary] = None


class SalaryField(str, Enum):
    """Fields a caller may change on an existing salary record."""

    LABOURER_ID = "labourerId"
    START_PERIOD = "startPeriod"
    END_PERIOD = "endPeriod"
    TOTAL_DAYS_PRESENT = "totalDaysPresent"
    DAILY_WAGE = "dailyWage"
    TOTAL_SALARY = "totalSalary"
    STATUS = "status"
    PAYSLIP_URL = "payslipUrl"
    PAYMENT_DATE = "paymentDate"


SalaryChanges = Dict[SalaryField, Any]


@dataclass(frozen=True)
class SalaryCriteria:
    """Conjunctive salary filter.

    ``period_start``/``period_end`` select records whose own period overlaps
    the window; ``payment_date`` matches one calendar day.
    """

    labourer_id: Optional[int] = None
    status: Optional[SalaryStatus] = None
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    payment_date: Optional[date] = None

    def matches(self, record: SalaryRecord) -> bool:
        if self.labourer_id is not None and record.labourer_id != self.labourer_id:
            return False
        if self.status is not None and record.status != self.status:
            return False
        if self.period_start is not None and record.end_period < self.period_start:
            return False
        if self.period_end is not None and record.start_period > self.period_end:
            return False
        if self.payment_date is not None and record.payment_date != self.payment_date:
            return False
        return True


@dataclass(frozen=True)
class SalaryTotals:
    total_paid: Decimal = Decimal("0")
    total_pending: Decimal = Decimal("0")
    records_count: int = 0
    total_days_present: int = 0

    def to_dict(self) -> dict:
        return {
            "totalPaid": money(self.total_paid),
            "totalPending": money(self.total_pending),
            "recordsCount": self.records_count,
            "totalDaysPresent": self.total_days_present,
        }


@dataclass(frozen=True)
class GenerationResult:
    generated: list[SalaryRecord] = field(default_factory=list)
    skipped_labourer_ids: list[int] = field(default_factory=list)
    message: str = ""

    @property
    def generated_count(self) -> int:
        return len(self.generated)

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "generatedCount": self.generated_count,
            "generatedSalaries": [salary_to_dict(s) for s in self.generated],
            "skippedLabourerIds": list(self.skipped_labourer_ids),
        }


def money(value: Decimal) -> Union[int, float]:
    """JSON number for a Decimal amount, integral when there is no fraction."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def salary_to_dict(s: SalaryRecord) -> dict:
    return {
        "id": s.salary_id,
        "labourerId": s.labourer_id,
        "startPeriod": s.start_period.isoformat(),
        "endPeriod": s.end_period.isoformat(),
        "totalDaysPresent": s.total_days_present,
        "dailyWage": money(s.daily_wage),
        "totalSalary": money(s.total_salary),
        "status": s.status.value,
        "paymentDate": s.payment_date.isoformat() if s.payment_date else None,
        "payslipUrl": s.payslip_url or "",
        "createdAt": s.created_at.isoformat() if s.created_at else None,
        "updatedAt": s.updated_at.isoformat() if s.updated_at else None,
    }


def salary_detail_to_dict(d: SalaryDetail) -> dict:
    out = salary_to_dict(d.record)
    out["labourer"] = d.labourer.to_dict() if d.labourer else None
    return out
