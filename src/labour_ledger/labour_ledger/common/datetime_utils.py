from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse an ISO-8601 date (YYYY-MM-DD) or datetime string into its calendar day.

    Time-of-day and UTC offsets are dropped; attendance is matched per day.
    """
    text = value.strip()
    if len(text) <= 10:
        return datetime.strptime(text, "%Y-%m-%d").date()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text).date()


def coerce_date(value: Any, field_name: str) -> date:
    """Accept a date, datetime or ISO string and return the calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return parse_iso_date(value)
        except ValueError:
            pass
    raise ValidationError(f"Invalid {field_name}")


def optional_date(value: Any, field_name: str) -> date | None:
    if value is None or value == "":
        return None
    return coerce_date(value, field_name)


def trailing_days(today: date, count: int) -> list[date]:
    """``count`` consecutive days ending with ``today``, oldest first."""
    return [today - timedelta(days=offset) for offset in range(count - 1, -1, -1)]


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
