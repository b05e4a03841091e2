from typing import Final

MEALS_KEY: Final[str] = "meals"
WEEKS_PER_YEAR: Final[int] = 52
DAYS_PER_WEEK: Final[int] = 7
ISO_DATE_FORMAT: Final[str] = "%Y-%m-%d"
# Rolling calendar window shown around the current week
CALENDAR_WEEKS_BEFORE: Final[int] = 2
CALENDAR_WEEKS_AFTER: Final[int] = 4
# Furthest a quick pick may jump from the current week, either way
QUICK_WEEK_MAX_OFFSET: Final[int] = WEEKS_PER_YEAR * 10
# Year choices offered relative to the current year
YEAR_OPTIONS_BEFORE: Final[int] = 1
YEAR_OPTIONS_AFTER: Final[int] = 2
MEALS_CHANGED: Final[str] = "meals.changed"
USER_ID_HEADER: Final[str] = "X-User-Id"
