"""Event Bus / Observer for meal collection changes.

Event names:
  meals.changed -> payload MealChange(action, meal_id, name)

Subscribers are callables taking (event_name, change). A subscriber may ask
for a subset of actions, e.g. only "deleted", and is skipped for the rest.
"""
from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass, asdict
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple
import logging

from mealweek.utilities.constants import MEALS_CHANGED

logger = logging.getLogger(__name__)

ACTIONS = ('created', 'updated', 'deleted')

Subscriber = Callable[[str, "MealChange"], None]


@dataclass(frozen=True)
class MealChange:
	"""One successful write to the meal collection."""
	action: str
	meal_id: str
	name: Optional[str] = None

	def __post_init__(self):
		if self.action not in ACTIONS:
			raise ValueError(f"Unknown meal change action: {self.action}")

	def as_dict(self) -> dict:
		return asdict(self)


class EventBus:
	def __init__(self):
		# event name -> [(callback, actions or None for all)]
		self._subscribers: Dict[str, List[Tuple[Subscriber, Optional[FrozenSet[str]]]]] = defaultdict(list)

	def subscribe(self, event_name: str, callback: Subscriber, actions: Optional[Iterable[str]] = None):
		wanted = None
		if actions is not None:
			wanted = frozenset(actions)
			unknown = wanted.difference(ACTIONS)
			if unknown:
				raise ValueError(f"Unknown meal change actions: {sorted(unknown)}")
		subscribers = self._subscribers[event_name]
		for i, (cb, _) in enumerate(subscribers):
			if cb == callback:
				subscribers[i] = (callback, wanted)
				return
		subscribers.append((callback, wanted))

	def unsubscribe(self, event_name: str, callback: Subscriber):
		self._subscribers[event_name] = [
			(cb, wanted) for cb, wanted in self._subscribers.get(event_name, []) if cb != callback
		]

	def publish(self, event_name: str, change: MealChange) -> int:
		"""Deliver the change to matching subscribers; returns how many received it."""
		delivered = 0
		for cb, wanted in list(self._subscribers.get(event_name, [])):
			if wanted is not None and change.action not in wanted:
				continue
			try:
				cb(event_name, change)
				delivered += 1
			except Exception:
				# A broken subscriber must not fail the write that triggered it
				logger.exception("Error delivering %s %s of meal %s to %r",
				                 event_name, change.action, change.meal_id, cb)
		return delivered


# A singleton-like instance (can be imported)
GLOBAL_EVENT_BUS = EventBus()


def publish(event_name: str, change: MealChange) -> int:
	"""Publish a change on the global bus (sugar function)."""
	return GLOBAL_EVENT_BUS.publish(event_name, change)


__all__ = ['EventBus', 'GLOBAL_EVENT_BUS', 'MealChange', 'ACTIONS', 'publish', 'MEALS_CHANGED']
