from datetime import date as _date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from mealweek.infra.Meal_Repository import MealRepository
from mealweek.logic.weeks.partition import calendar_weeks
from mealweek.logic.weeks.week_math import (
    current_week_year,
    date_range_for_week,
    format_week_range,
    quick_week,
    week_for_date,
    week_options,
    week_start_date,
    year_options,
)
from mealweek.utilities.constants import (
    CALENDAR_WEEKS_BEFORE,
    CALENDAR_WEEKS_AFTER,
    QUICK_WEEK_MAX_OFFSET,
    WEEKS_PER_YEAR,
)
from mealweek.api.auth import require_user
from mealweek.api.routes.meals import get_repository, meal_view

router = APIRouter(prefix="/api/weeks", tags=["weeks"])


def week_view(week: int, year: int) -> dict:
    start, end = date_range_for_week(week, year)
    return {
        "week": week,
        "year": year,
        "start": start.isoformat(),
        "end": end.isoformat(),
        "label": format_week_range(week, year),
    }


@router.get("/current")
def current_week():
    return week_view(*current_week_year())


@router.get("/range")
def week_range(week: int = Query(..., ge=1, le=WEEKS_PER_YEAR), year: int = Query(..., ge=1970, le=9999)):
    data = week_view(week, year)
    data["picker_date"] = week_start_date(week, year)
    return data


@router.get("/from-date")
def week_from_date(date: _date = Query(..., description="Any day of the target week (YYYY-MM-DD)")):
    """The meal will be planned for the week containing this date."""
    return week_view(*week_for_date(date))


@router.get("/quick")
def week_from_now(offset: int = Query(default=0, ge=-QUICK_WEEK_MAX_OFFSET, le=QUICK_WEEK_MAX_OFFSET,
                                      description="Weeks from now; 0 = this week, 1 = next week")):
    return week_view(*quick_week(offset))


@router.get("/options")
def options(year: Optional[int] = Query(default=None)):
    if year is None:
        _, year = current_week_year()
    return {"weeks": week_options(), "years": year_options(year)}


@router.get("/calendar", dependencies=[Depends(require_user)])
async def calendar(before: int = Query(default=CALENDAR_WEEKS_BEFORE, ge=0, le=WEEKS_PER_YEAR),
                   after: int = Query(default=CALENDAR_WEEKS_AFTER, ge=0, le=WEEKS_PER_YEAR),
                   repo: MealRepository = Depends(get_repository)):
    week, year = repo.current_week()
    weeks = calendar_weeks(await repo.list(), week, year, before=before, after=after)
    return [
        {
            "week": w["week"],
            "year": w["year"],
            "is_current": w["is_current"],
            "start": w["start"].isoformat(),
            "end": w["end"].isoformat(),
            "label": w["label"],
            "meals": [meal_view(m) for m in w["meals"]],
        }
        for w in weeks
    ]
