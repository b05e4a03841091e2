import json
import time
import logging
from datetime import date as _date
from json import JSONDecodeError
from typing import Callable, List, Optional

from mealweek.domain.Meal import Meal
from mealweek.events.event_helpers import publish_meal_changed
from mealweek.infra.storage_backends import KeyValueBackend
from mealweek.logic.weeks.week_math import current_week_year
from mealweek.logic.weeks.partition import classify, refresh_flags
from mealweek.utilities.constants import MEALS_KEY
from mealweek.utilities.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class MealRepository:
    """List/add/update/remove over the meal collection.

    The whole collection is stored as one JSON array under MEALS_KEY, so
    every write is read-modify-write of the full list. There is no locking
    or version check: two concurrent writers race and the last one wins.

    Reads are lenient: an unreadable store lists as empty and malformed
    entries are skipped. Writes are not, since they would replace the stored
    array with that partial view; add/update/remove raise PersistenceError
    and leave the stored value alone when the collection does not parse.
    """

    def __init__(self, backend: KeyValueBackend, today: Optional[Callable[[], _date]] = None):
        self.backend = backend
        self._today = today or _date.today

    def current_week(self):
        return current_week_year(self._today())

    async def _load(self, for_write: bool = False) -> List[Meal]:
        try:
            raw = await self.backend.get(MEALS_KEY)
        except Exception as e:
            logger.error("Error fetching meals from %s: %s", self.backend.name, e)
            return []
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except JSONDecodeError as e:
            logger.error("Invalid JSON in stored meals: %s", e)
            if for_write:
                self._refuse_write("invalid JSON")
            return []
        if not isinstance(data, list):
            logger.error("Stored meals are not a list (got %s)", type(data).__name__)
            if for_write:
                self._refuse_write(f"expected a list, got {type(data).__name__}")
            return []
        meals = [m for m in (Meal.from_dict(d) for d in data) if m is not None]
        if len(meals) != len(data):
            logger.warning("Skipped %d malformed meal entries", len(data) - len(meals))
            if for_write:
                self._refuse_write(f"{len(data) - len(meals)} malformed entries")
        return refresh_flags(meals, *self.current_week())

    @staticmethod
    def _refuse_write(reason: str) -> None:
        raise PersistenceError("Stored meals are unreadable; refusing to overwrite them",
                               details={"key": MEALS_KEY, "reason": reason})

    async def _save(self, meals: List[Meal], failure_message: str) -> None:
        refresh_flags(meals, *self.current_week())
        payload = json.dumps([m.to_dict() for m in meals], ensure_ascii=False)
        try:
            await self.backend.set(MEALS_KEY, payload)
        except Exception as e:
            logger.exception("%s", failure_message)
            details = e.details if isinstance(e, PersistenceError) else None
            raise PersistenceError(failure_message, details=details) from e

    @staticmethod
    def _new_id(existing: List[Meal]) -> str:
        taken = {m.id for m in existing}
        candidate = int(time.time() * 1000)
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    async def list(self) -> List[Meal]:
        """Full collection with is_this_week recomputed. Never raises."""
        return await self._load()

    async def get(self, meal_id: str) -> Optional[Meal]:
        for meal in await self._load():
            if meal.id == meal_id:
                return meal
        return None

    async def add(self, name: str, week: int, year: int, eaten: bool = False) -> Meal:
        meals = await self._load(for_write=True)
        meal = Meal(id=self._new_id(meals), name=name, week=week, year=year, eaten=eaten)
        meal.is_this_week = classify(meal, *self.current_week())
        meals.append(meal)
        await self._save(meals, "Failed to create meal")
        logger.info("Created meal %s (%s)", meal.id, meal)
        publish_meal_changed("created", meal.id, meal.name)
        return meal

    async def update(self, meal: Meal) -> Meal:
        """Replace the stored meal with the same id.

        An unknown id leaves the collection untouched and nothing is written.
        """
        stored = meal.copy(is_this_week=classify(meal, *self.current_week()))
        meals = await self._load(for_write=True)
        for i, current in enumerate(meals):
            if current.id == meal.id:
                meals[i] = stored
                break
        else:
            logger.info("Meal %s not found; nothing updated", meal.id)
            return stored
        await self._save(meals, "Failed to update meal")
        publish_meal_changed("updated", stored.id, stored.name)
        return stored

    async def remove(self, meal_id: str) -> None:
        meals = await self._load(for_write=True)
        remaining = [m for m in meals if m.id != meal_id]
        if len(remaining) == len(meals):
            logger.info("Meal %s not found; nothing deleted", meal_id)
            return
        await self._save(remaining, "Failed to delete meal")
        removed = next(m for m in meals if m.id == meal_id)
        publish_meal_changed("deleted", meal_id, removed.name)

    async def mark_eaten(self, meal_id: str) -> Optional[Meal]:
        """Move the meal to the current week and flag it eaten."""
        return await self._move_to_current_week(meal_id, eaten=True)

    async def promote_to_current_week(self, meal_id: str) -> Optional[Meal]:
        """Plan the meal again for the current week (clears eaten)."""
        return await self._move_to_current_week(meal_id, eaten=False)

    async def _move_to_current_week(self, meal_id: str, eaten: bool) -> Optional[Meal]:
        meal = await self.get(meal_id)
        if meal is None:
            return None
        week, year = self.current_week()
        return await self.update(meal.copy(week=week, year=year, eaten=eaten))
