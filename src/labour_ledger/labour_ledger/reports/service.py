from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from ..attendance.model import AttendanceCriteria
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local, optional_date, trailing_days
from ..common.validators import require_reference_id
from ..core.constants import DASHBOARD_TREND_DAYS, DASHBOARD_WORKERS
from ..core.enums import AttendanceStatus
from ..directory.repository import DirectoryRepository
from ..payroll.model import SalaryCriteria
from ..payroll.repository import SalaryRepository
from .model import DailyPresence, DashboardStats, SalarySummary, StatusSummary

_PERCENT = Decimal("0.01")


def attendance_percent(present: int, active_labourers: int) -> Decimal:
    """present / active * 100, rounded half-up to two places; 0 with no active labourers."""
    if active_labourers <= 0:
        return Decimal("0")
    ratio = Decimal(present) * 100 / Decimal(active_labourers)
    return ratio.quantize(_PERCENT, rounding=ROUND_HALF_UP)


class AggregationService:
    """Grouped-count summaries over attendance and salary records.

    Each summary is one grouped query against the store; the dashboard's
    trailing series runs its per-day counts on a small thread pool.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        salaries: SalaryRepository,
        directory: DirectoryRepository,
        *,
        trend_days: int = DASHBOARD_TREND_DAYS,
        max_workers: int = DASHBOARD_WORKERS,
    ):
        self._attendance = attendance
        self._salaries = salaries
        self._directory = directory
        self._trend_days = int(trend_days)
        self._max_workers = max(int(max_workers), 1)

    def _status_summary(self, criteria: AttendanceCriteria) -> StatusSummary:
        return StatusSummary.from_counts(self._attendance.count_by_status(criteria))

    def labourer_summary(self, labourer_id: Any, *, start_date: Any = None, end_date: Any = None) -> StatusSummary:
        labourer_id = require_reference_id(labourer_id, "labourer ID")
        criteria = AttendanceCriteria(
            labourer_id=labourer_id,
            start_date=optional_date(start_date, "startDate"),
            end_date=optional_date(end_date, "endDate"),
        )
        return self._status_summary(criteria)

    def project_summary(self, project_id: Any, *, start_date: Any = None, end_date: Any = None) -> StatusSummary:
        project_id = require_reference_id(project_id, "project ID")
        criteria = AttendanceCriteria(
            project_id=project_id,
            start_date=optional_date(start_date, "startDate"),
            end_date=optional_date(end_date, "endDate"),
        )
        return self._status_summary(criteria)

    def _present_on(self, day: date) -> DailyPresence:
        counts = self._attendance.count_by_status(
            AttendanceCriteria(status=AttendanceStatus.PRESENT, start_date=day, end_date=day)
        )
        return DailyPresence(day=day, present_count=int(counts.get(AttendanceStatus.PRESENT, 0)))

    def dashboard(self, now: Optional[datetime] = None) -> DashboardStats:
        today = (now or now_local()).date()

        active = self._directory.count_active_labourers()
        today_summary = self._status_summary(AttendanceCriteria(start_date=today, end_date=today))

        days = trailing_days(today, self._trend_days)
        # map() yields in submission order, so the series stays oldest first.
        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(days) or 1)) as pool:
            series = list(pool.map(self._present_on, days))

        return DashboardStats(
            total_labourers=active,
            today=today_summary,
            attendance_percent=attendance_percent(today_summary.present, active),
            last_7_days=series,
        )

    def salary_summary(
        self,
        labourer_id: Any = None,
        *,
        start_period: Any = None,
        end_period: Any = None,
    ) -> SalarySummary:
        if labourer_id is not None:
            labourer_id = require_reference_id(labourer_id, "labourer ID")
        start = optional_date(start_period, "startPeriod")
        end = optional_date(end_period, "endPeriod")

        totals = self._salaries.totals(
            SalaryCriteria(labourer_id=labourer_id, period_start=start, period_end=end)
        )
        return SalarySummary(totals=totals, labourer_id=labourer_id, start_period=start, end_period=end)
