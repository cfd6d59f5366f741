"""Calendar date ranges for timeline columns and calendar weeks."""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Iterable, Literal

ViewMode = Literal["day", "week", "month"]
RangePreset = Literal["last7", "next30", "last30", "next60"]

# Python weekday(): Monday=0 ... Sunday=6
_SUNDAY = 6


def date_range(start: date, end: date) -> list[date]:
    """Every date from start to end inclusive, one calendar day apart."""
    days = (end - start).days
    if days < 0:
        return []
    return [start + timedelta(days=offset) for offset in range(days + 1)]


def _add_months(value: date, months: int) -> date:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def default_range(view_mode: ViewMode, today: date) -> tuple[date, date]:
    """Range shown when the user has not picked one explicitly."""
    if view_mode == "day":
        return today, today
    if view_mode == "week":
        return today - timedelta(days=7), today + timedelta(days=28)
    return today - timedelta(days=7), _add_months(today, 2)


def resolve_range(
    view_mode: ViewMode,
    start: date | None,
    end: date | None,
    today: date,
) -> list[date]:
    if start is not None and end is not None:
        return date_range(start, end)
    return date_range(*default_range(view_mode, today))


def preset_range(option: RangePreset, today: date) -> tuple[date, date]:
    if option == "last7":
        return today - timedelta(days=7), today
    if option == "next30":
        return today - timedelta(days=7), today + timedelta(days=30)
    if option == "last30":
        return today - timedelta(days=30), today
    if option == "next60":
        return today - timedelta(days=7), today + timedelta(days=60)
    raise ValueError(f"Unknown range preset: {option}")


def week_start(value: date) -> date:
    """The Sunday on or before ``value``."""
    return value - timedelta(days=(value.weekday() - _SUNDAY) % 7)


def calendar_weeks(dates: Iterable[date]) -> list[list[date]]:
    """Sunday-start weeks covering the earliest to the latest date."""
    dates = list(dates)
    if not dates:
        return []
    first = week_start(min(dates))
    last = week_start(max(dates)) + timedelta(days=6)
    days = date_range(first, last)
    return [days[i:i + 7] for i in range(0, len(days), 7)]
