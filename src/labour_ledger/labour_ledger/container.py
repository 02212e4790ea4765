from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .attendance.bulk import BulkIngestionService
from .attendance.export import AttendanceExporter
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.query import AttendanceQueryService
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DASHBOARD_WORKERS, DEFAULT_PAGE_SIZE, EXPORT_ROW_LIMIT
from .database.connection import DBConfig, DatabaseConnection
from .directory.mysql_directory_repository import MySQLDirectoryRepository
from .directory.repository import DirectoryRepository
from .payroll.generator import PayrollGenerator
from .payroll.mysql_salary_repository import MySQLSalaryRepository
from .payroll.repository import SalaryRepository
from .payroll.service import SalaryService
from .reports.service import AggregationService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    attendance_repo: AttendanceRepository
    salaries_repo: SalaryRepository
    directory_repo: DirectoryRepository

    attendance_service: AttendanceService
    bulk_service: BulkIngestionService
    query_service: AttendanceQueryService
    exporter: AttendanceExporter
    salary_service: SalaryService
    payroll_generator: PayrollGenerator
    aggregation_service: AggregationService


def wire(
    *,
    attendance_repo: AttendanceRepository,
    salaries_repo: SalaryRepository,
    directory_repo: DirectoryRepository,
    conn: Optional[DatabaseConnection] = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    export_row_limit: int = EXPORT_ROW_LIMIT,
    dashboard_workers: int = DASHBOARD_WORKERS,
) -> Container:
    """Build the services on top of any repository implementation."""
    return Container(
        conn=conn,
        attendance_repo=attendance_repo,
        salaries_repo=salaries_repo,
        directory_repo=directory_repo,
        attendance_service=AttendanceService(attendance_repo),
        bulk_service=BulkIngestionService(attendance_repo),
        query_service=AttendanceQueryService(attendance_repo, page_size=page_size),
        exporter=AttendanceExporter(attendance_repo, row_limit=export_row_limit),
        salary_service=SalaryService(salaries_repo, page_size=page_size),
        payroll_generator=PayrollGenerator(attendance_repo, salaries_repo),
        aggregation_service=AggregationService(
            attendance_repo,
            salaries_repo,
            directory_repo,
            max_workers=dashboard_workers,
        ),
    )


def build_container(
    *,
    db_config: Mapping[str, Any],
    page_size: int = DEFAULT_PAGE_SIZE,
    export_row_limit: int = EXPORT_ROW_LIMIT,
    dashboard_workers: int = DASHBOARD_WORKERS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return wire(
        conn=conn,
        attendance_repo=MySQLAttendanceRepository(conn),
        salaries_repo=MySQLSalaryRepository(conn),
        directory_repo=MySQLDirectoryRepository(conn),
        page_size=page_size,
        export_row_limit=export_row_limit,
        dashboard_workers=dashboard_workers,
    )
