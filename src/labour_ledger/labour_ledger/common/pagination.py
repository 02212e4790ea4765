from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from ..core.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, EXPORT_ROW_LIMIT, MAX_PAGE


def positive_int(value: Any, default: int, maximum: int | None = None) -> int:
    """Parse a query value as a positive int, falling back to ``default``.

    Values above ``maximum`` are clamped to it.
    """
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number <= 0:
        return default
    return min(number, maximum) if maximum is not None else number


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any],
        *,
        default_limit: int = DEFAULT_PAGE_SIZE,
        max_limit: int = EXPORT_ROW_LIMIT,
    ) -> "PageRequest":
        return cls(
            page=positive_int(params.get("page"), DEFAULT_PAGE, MAX_PAGE),
            limit=positive_int(params.get("limit"), default_limit, max_limit),
        )


@dataclass(frozen=True)
class Page:
    records: Sequence[Any]
    total: int
    request: PageRequest

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.request.limit)

    def meta(self) -> dict:
        return {
            "total": self.total,
            "totalPages": self.total_pages,
            "currentPage": self.request.page,
            "pageSize": len(self.records),
        }
