"""Week arithmetic for the planner.

Provides current_week_year, week_for_date, quick_week, week_key,
date_range_for_week, format_week_range, week_start_date, rolling_weeks,
week_options and year_options.

Weeks run Monday..Sunday and every year is treated as having exactly 52
weeks. date_range_for_week is an approximation: week N starts on the Monday
on or before day (N - 1) * 7 + 1 of the year, which is not the ISO-8601
week-numbering rule (no leap-week handling). Keep it that way; stored meals
were planned against these ranges.
"""
from datetime import date as _date, timedelta
from typing import List, Optional, Tuple

from mealweek.utilities.constants import (
    WEEKS_PER_YEAR,
    DAYS_PER_WEEK,
    ISO_DATE_FORMAT,
    YEAR_OPTIONS_BEFORE,
    YEAR_OPTIONS_AFTER,
)

WeekYear = Tuple[int, int]


def week_for_date(d: _date) -> WeekYear:
    """Return (week, year) of the ISO week containing d.

    ISO week 53 is folded into week 52 so results stay within 1..52.
    """
    iso = d.isocalendar()
    return min(iso.week, WEEKS_PER_YEAR), iso.year


def current_week_year(today: Optional[_date] = None) -> WeekYear:
    return week_for_date(today or _date.today())


def quick_week(weeks_from_now: int, today: Optional[_date] = None) -> WeekYear:
    """Week containing the day `weeks_from_now` weeks after today (negative allowed)."""
    today = today or _date.today()
    return week_for_date(today + timedelta(days=weeks_from_now * DAYS_PER_WEEK))


def week_key(week: int, year: int) -> Tuple[int, int]:
    # Year first so ordering never breaks across a year boundary
    return (year, week)


def date_range_for_week(week: int, year: int) -> Tuple[_date, _date]:
    target = _date(year, 1, 1) + timedelta(days=(week - 1) * DAYS_PER_WEEK)
    start = target - timedelta(days=target.weekday())
    return start, start + timedelta(days=DAYS_PER_WEEK - 1)


def week_start_date(week: int, year: int) -> str:
    """First day of the week as YYYY-MM-DD (prefills date pickers)."""
    start, _ = date_range_for_week(week, year)
    return start.strftime(ISO_DATE_FORMAT)


def format_week_range(week: int, year: int) -> dict:
    """Display labels for a week, e.g. {'start': 'Mar 3', 'end': 'Mar 9, 2025'}."""
    start, end = date_range_for_week(week, year)
    return {
        "start": f"{start.strftime('%b')} {start.day}",
        "end": f"{end.strftime('%b')} {end.day}, {end.year}",
    }


def _normalize(week: int, year: int) -> WeekYear:
    while week < 1:
        week += WEEKS_PER_YEAR
        year -= 1
    while week > WEEKS_PER_YEAR:
        week -= WEEKS_PER_YEAR
        year += 1
    return week, year


def rolling_weeks(current_week: int, current_year: int, before_count: int, after_count: int) -> List[WeekYear]:
    """Consecutive (week, year) pairs from `before_count` weeks back to `after_count` ahead.

    Wrapping adds or subtracts exactly 52 weeks per year, so 53-week years
    are not represented.
    """
    return [
        _normalize(current_week + offset, current_year)
        for offset in range(-before_count, after_count + 1)
    ]


def week_options() -> List[int]:
    return list(range(1, WEEKS_PER_YEAR + 1))


def year_options(current_year: int) -> List[int]:
    return list(range(current_year - YEAR_OPTIONS_BEFORE, current_year + YEAR_OPTIONS_AFTER + 1))
