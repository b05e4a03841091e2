from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from mealweek.domain.Meal import Meal
from mealweek.events.web_observers import get_events
from mealweek.infra.Meal_Repository import MealRepository
from mealweek.infra.factory import get_meal_repository
from mealweek.logic.weeks.partition import upcoming, historic
from mealweek.logic.weeks.week_math import format_week_range
from mealweek.utilities.exceptions import MealNotFound
from mealweek.utilities.validators import MealInput, MealUpdateInput
from mealweek.api.auth import require_user

router = APIRouter(prefix="/api/meals", tags=["meals"], dependencies=[Depends(require_user)])


def get_repository() -> MealRepository:
    return get_meal_repository()


def meal_view(meal) -> dict:
    """Stored fields plus the display labels of the meal's week."""
    data = meal.to_dict()
    data["range"] = format_week_range(meal.week, meal.year)
    return data


@router.get("")
async def list_meals(repo: MealRepository = Depends(get_repository)):
    meals = await repo.list()
    return [meal_view(m) for m in meals]


@router.post("")
async def create_meal(payload: MealInput, repo: MealRepository = Depends(get_repository)):
    meal = await repo.add(payload.name, payload.week, payload.year, eaten=payload.eaten)
    return meal_view(meal)


@router.get("/upcoming")
async def list_upcoming(this_week_only: bool = Query(default=False),
                        repo: MealRepository = Depends(get_repository)):
    week, year = repo.current_week()
    meals = upcoming(await repo.list(), week, year, this_week_only=this_week_only)
    return {"week": week, "year": year, "count": len(meals), "meals": [meal_view(m) for m in meals]}


@router.get("/historic")
async def list_historic(repo: MealRepository = Depends(get_repository)):
    week, year = repo.current_week()
    meals = historic(await repo.list(), week, year)
    return {"week": week, "year": year, "count": len(meals), "meals": [meal_view(m) for m in meals]}


@router.get("/changes")
def list_changes(since: Optional[int] = Query(default=None),
                 action: Optional[Literal["created", "updated", "deleted"]] = Query(default=None)):
    """Recent collection changes for polling clients, optionally of one action."""
    return get_events(since, action)


@router.put("/{meal_id}")
async def edit_meal(meal_id: str, payload: MealUpdateInput, repo: MealRepository = Depends(get_repository)):
    """Replace the whole record. An unknown id is a no-op that echoes the meal back."""
    meal = Meal(id=meal_id, name=payload.name, week=payload.week, year=payload.year, eaten=payload.eaten)
    meal = await repo.update(meal)
    return meal_view(meal)


@router.delete("/{meal_id}")
async def delete_meal(meal_id: str, repo: MealRepository = Depends(get_repository)):
    await repo.remove(meal_id)
    return {"status": "ok"}


@router.post("/{meal_id}/eaten")
async def mark_meal_eaten(meal_id: str, repo: MealRepository = Depends(get_repository)):
    meal = await repo.mark_eaten(meal_id)
    if meal is None:
        raise MealNotFound(meal_id)
    return meal_view(meal)


@router.post("/{meal_id}/promote")
async def promote_meal(meal_id: str, repo: MealRepository = Depends(get_repository)):
    meal = await repo.promote_to_current_week(meal_id)
    if meal is None:
        raise MealNotFound(meal_id)
    return meal_view(meal)
