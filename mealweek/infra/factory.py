"""Meal repository factory.

Builds the MealRepository once from the environment (StorageSettings) and
hands out the same instance afterwards:
- KV_REST_API_URL and KV_REST_API_TOKEN set: remote store with local copy
- otherwise: local copy only (MEALS_DATA_DIR)
"""
from typing import Optional

from mealweek.infra.Meal_Repository import MealRepository
from mealweek.infra.storage_backends import build_backend
from mealweek.utilities.config import StorageSettings

_meal_repository: Optional[MealRepository] = None


def create_meal_repository(settings: Optional[StorageSettings] = None) -> MealRepository:
    return MealRepository(build_backend(settings or StorageSettings.from_env()))


def get_meal_repository() -> MealRepository:
    """Get singleton meal repository instance."""
    global _meal_repository

    if _meal_repository is None:
        _meal_repository = create_meal_repository()

    return _meal_repository


def reset_meal_repository() -> None:
    """Reset the singleton (for testing purposes)."""
    global _meal_repository
    _meal_repository = None
