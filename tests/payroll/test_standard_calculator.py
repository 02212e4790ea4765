from decimal import Decimal

from src.labour_ledger.labour_ledger.core.enums import AttendanceStatus
from src.labour_ledger.labour_ledger.payroll.calculator.standard_calculator import StandardPayrollCalculator


def test_standard_calculator_counts_present_only():
    calc = StandardPayrollCalculator()
    assert calc.counted_statuses == (AttendanceStatus.PRESENT,)


def test_standard_calculator_multiplies_exactly():
    calc = StandardPayrollCalculator()
    assert calc.total_salary(days_present=3, daily_wage=Decimal("333.33")) == Decimal("999.99")
    assert calc.total_salary(days_present=0, daily_wage=Decimal("500")) == Decimal("0")
