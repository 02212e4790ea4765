from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from .model import NewSalary, SalaryChanges, SalaryCriteria, SalaryDetail, SalaryRecord, SalaryTotals


class SalaryRepository(Protocol):
    """Storage contract for salary records.

    The store keeps one record per (labourer, start period, end period);
    writes that would duplicate it raise ``ConflictError``.
    """

    def create(self, new: NewSalary) -> SalaryRecord:
        raise NotImplementedError

    def insert_all(self, batch: Sequence[NewSalary]) -> list[SalaryRecord]:
        """Insert the whole batch in one transaction or nothing at all."""

        raise NotImplementedError

    def get_by_id(self, salary_id: int) -> Optional[SalaryRecord]:
        raise NotImplementedError

    def get_detail(self, salary_id: int) -> Optional[SalaryDetail]:
        raise NotImplementedError

    def update(self, salary_id: int, changes: SalaryChanges) -> Optional[SalaryRecord]:
        raise NotImplementedError

    def delete(self, salary_id: int) -> bool:
        raise NotImplementedError

    def labourers_with_period(self, labourer_ids: Iterable[int], *, start_period: date, end_period: date) -> set[int]:
        """Labourers that already hold a record for exactly this period."""

        raise NotImplementedError

    def list_details(
        self,
        criteria: SalaryCriteria,
        *,
        offset: int,
        limit: int,
    ) -> tuple[int, Sequence[SalaryDetail]]:
        """Return (total matches, one page) with the latest periods first."""

        raise NotImplementedError

    def totals(self, criteria: SalaryCriteria) -> SalaryTotals:
        raise NotImplementedError
