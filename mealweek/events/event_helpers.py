"""Event helper utilities.

Quick import:
    from mealweek.events.event_helpers import publish_meal_changed, MEALS_CHANGED
"""
from __future__ import annotations
from typing import Optional
from .Event_Bus import publish, MealChange, ACTIONS, MEALS_CHANGED

__all__ = ['publish_meal_changed', 'MealChange', 'ACTIONS', 'MEALS_CHANGED']


def publish_meal_changed(action: str, meal_id: str, name: Optional[str] = None) -> MealChange:
    """Publish a meals.changed event after a successful write.

    Raises ValueError for an action outside ACTIONS, before anything is delivered.
    """
    change = MealChange(action=action, meal_id=meal_id, name=name)
    publish(MEALS_CHANGED, change)
    return change
