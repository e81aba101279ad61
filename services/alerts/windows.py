"""Calendar-day offsets between "today" and a record's due date."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Optional


@dataclass(frozen=True)
class DayWindow:
    """Signed distance to a due date split into its upcoming and overdue halves."""

    days_to_due: Optional[int] = None
    days_past_due: Optional[int] = None

    @property
    def is_overdue(self) -> bool:
        return self.days_past_due is not None


def evaluate(today: date, due: Optional[date]) -> DayWindow:
    """Return how many days remain until ``due`` or have elapsed since it."""

    if due is None:
        return DayWindow()
    delta = day_delta(today, due)
    if delta >= 0:
        return DayWindow(days_to_due=delta)
    return DayWindow(days_past_due=-delta)


def day_delta(start: date, end: date) -> int:
    """Whole calendar days from ``start`` to ``end``; negative when ``end`` is earlier."""

    return (_as_date(end) - _as_date(start)).days


def parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return _utc_date(value)
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # Attempt ISO 8601 parsing; fall back to date-only format.
    try:
        return _utc_date(datetime.fromisoformat(text))
    except ValueError:
        try:
            return datetime.strptime(text[:10], "%Y-%m-%d").date()
        except ValueError:
            return None


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _utc_date(value: datetime) -> date:
    # Offset-aware timestamps land on the UTC calendar day; naive ones are taken as UTC.
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()


def _as_date(value: date) -> date:
    if isinstance(value, datetime):
        return _utc_date(value)
    return value


__all__ = ["DayWindow", "day_delta", "evaluate", "parse_date", "utc_today"]
