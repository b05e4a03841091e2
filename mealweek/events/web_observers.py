"""Web-facing observer for meal change events.

Subscribes to meals.changed on the GLOBAL_EVENT_BUS and keeps an in-memory
ring buffer of recent changes so UI clients can poll for them and reload
their view of the collection.

  * Each event gets an auto-increment integer id (cursor); clients ask for
    events newer than the last id they saw (since=<id>).
  * Clients may narrow the feed to one action (e.g. only deletions). The
    cursor still advances over every buffered event.
  * A Lock guards the buffer; the buffer is per-process.
  * MAX_EVENTS caps memory use.
"""
from __future__ import annotations
from typing import List, Dict, Any, Optional
from threading import Lock
from datetime import datetime, timezone

from .Event_Bus import GLOBAL_EVENT_BUS, MEALS_CHANGED, ACTIONS, MealChange

_lock = Lock()
_events: List[Dict[str, Any]] = []
_next_id = 1
MAX_EVENTS = 300
_started = False


def _record(event_name: str, change: MealChange):  # signature expected by EventBus
    global _next_id
    with _lock:
        evt = {
            'id': _next_id,
            'type': event_name,
            'ts': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            **change.as_dict(),
        }
        _events.append(evt)
        _next_id += 1
        if len(_events) > MAX_EVENTS:
            del _events[: len(_events) - MAX_EVENTS]


def start():
    """Idempotent start: subscribe observers once."""
    global _started
    if _started:
        return
    GLOBAL_EVENT_BUS.subscribe(MEALS_CHANGED, _record)
    _started = True


def get_events(since: Optional[int] = None, action: Optional[str] = None) -> Dict[str, Any]:
    """Return events newer than 'since' (exclusive), optionally of one action.

    next_cursor is the largest id buffered, whatever the filter, so a client
    polling with since=next_cursor never sees the same event twice.
    """
    if action is not None and action not in ACTIONS:
        raise ValueError(f"Unknown meal change action: {action}")
    with _lock:
        data = [
            e for e in _events
            if (since is None or e['id'] > since) and (action is None or e['action'] == action)
        ]
        next_cursor = _events[-1]['id'] if _events else since or 0
    return {'events': data, 'next_cursor': next_cursor}


__all__ = ['start', 'get_events', 'MAX_EVENTS']
