from datetime import date

import pytest

from app.services.date_ranges import (
    calendar_weeks,
    date_range,
    default_range,
    preset_range,
    resolve_range,
    week_start,
)


def test_date_range_is_inclusive_and_crosses_months():
    days = date_range(date(2024, 1, 30), date(2024, 2, 2))
    assert days == [date(2024, 1, 30), date(2024, 1, 31), date(2024, 2, 1), date(2024, 2, 2)]


def test_date_range_handles_leap_day_and_empty_ranges():
    assert date(2024, 2, 29) in date_range(date(2024, 2, 28), date(2024, 3, 1))
    assert date_range(date(2024, 3, 2), date(2024, 3, 1)) == []
    assert date_range(date(2024, 3, 1), date(2024, 3, 1)) == [date(2024, 3, 1)]


def test_default_ranges_per_view_mode():
    today = date(2024, 6, 15)
    assert default_range("day", today) == (today, today)
    assert default_range("week", today) == (date(2024, 6, 8), date(2024, 7, 13))
    assert default_range("month", today) == (date(2024, 6, 8), date(2024, 8, 15))


def test_month_view_clamps_to_month_end():
    assert default_range("month", date(2023, 12, 31))[1] == date(2024, 2, 29)


def test_explicit_range_wins_over_default():
    today = date(2024, 6, 15)
    assert resolve_range("month", date(2024, 1, 1), date(2024, 1, 3), today) == [
        date(2024, 1, 1),
        date(2024, 1, 2),
        date(2024, 1, 3),
    ]
    assert resolve_range("day", None, None, today) == [today]


def test_presets():
    today = date(2024, 6, 15)
    assert preset_range("last7", today) == (date(2024, 6, 8), today)
    assert preset_range("next30", today) == (date(2024, 6, 8), date(2024, 7, 15))
    assert preset_range("last30", today) == (date(2024, 5, 16), today)
    assert preset_range("next60", today) == (date(2024, 6, 8), date(2024, 8, 14))
    with pytest.raises(ValueError):
        preset_range("next90", today)


def test_calendar_weeks_round_out_to_sunday_start():
    # 2024-03-15 is a Friday
    assert week_start(date(2024, 3, 15)) == date(2024, 3, 10)
    assert week_start(date(2024, 3, 10)) == date(2024, 3, 10)

    weeks = calendar_weeks([date(2024, 3, 15), date(2024, 3, 18)])
    assert len(weeks) == 2
    assert weeks[0][0] == date(2024, 3, 10)
    assert weeks[-1][-1] == date(2024, 3, 23)
    assert all(len(week) == 7 for week in weeks)
    assert calendar_weeks([]) == []
