"""Meal list partitioning relative to the current week.

upcoming() and historic() split a collection into two disjoint lists:
  - upcoming: planned for the current week or later and not eaten,
    ascending by (year, week).
  - historic: everything else (planned before the current week, or eaten),
    newest first.
"""
from typing import Iterable, List, Dict, Any

from mealweek.domain.Meal import Meal
from mealweek.logic.weeks.week_math import (
    week_key,
    rolling_weeks,
    format_week_range,
    date_range_for_week,
)
from mealweek.utilities.constants import CALENDAR_WEEKS_BEFORE, CALENDAR_WEEKS_AFTER


def _sort_key(meal: Meal):
    return week_key(meal.week, meal.year)


def classify(meal: Meal, current_week: int, current_year: int) -> bool:
    """True when the meal is planned for the current week."""
    return meal.week == current_week and meal.year == current_year


def refresh_flags(meals: Iterable[Meal], current_week: int, current_year: int) -> List[Meal]:
    """Recompute is_this_week on every meal (stored values are never trusted)."""
    result = []
    for meal in meals:
        meal.is_this_week = classify(meal, current_week, current_year)
        result.append(meal)
    return result


def is_upcoming(meal: Meal, current_week: int, current_year: int) -> bool:
    if meal.eaten:
        return False
    return week_key(meal.week, meal.year) >= week_key(current_week, current_year)


def upcoming(meals: Iterable[Meal], current_week: int, current_year: int, this_week_only: bool = False) -> List[Meal]:
    selected = [
        m for m in refresh_flags(meals, current_week, current_year)
        if is_upcoming(m, current_week, current_year)
    ]
    if this_week_only:
        selected = [m for m in selected if m.is_this_week]
    return sorted(selected, key=_sort_key)


def historic(meals: Iterable[Meal], current_week: int, current_year: int) -> List[Meal]:
    selected = [
        m for m in refresh_flags(meals, current_week, current_year)
        if not is_upcoming(m, current_week, current_year)
    ]
    return sorted(selected, key=_sort_key, reverse=True)


def meals_for_week(meals: Iterable[Meal], week: int, year: int) -> List[Meal]:
    return [m for m in meals if m.is_week(week, year)]


def calendar_weeks(meals: Iterable[Meal], current_week: int, current_year: int,
                   before: int = CALENDAR_WEEKS_BEFORE, after: int = CALENDAR_WEEKS_AFTER) -> List[Dict[str, Any]]:
    """Rolling calendar around the current week, each entry carrying its meals."""
    meals = refresh_flags(meals, current_week, current_year)
    weeks = []
    for week, year in rolling_weeks(current_week, current_year, before, after):
        start, end = date_range_for_week(week, year)
        weeks.append({
            "week": week,
            "year": year,
            "is_current": week == current_week and year == current_year,
            "start": start,
            "end": end,
            "label": format_week_range(week, year),
            "meals": meals_for_week(meals, week, year),
        })
    return weeks
