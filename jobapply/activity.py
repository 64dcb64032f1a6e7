"""User-visible activity feed (newest first) plus live listeners."""
from __future__ import annotations

from typing import Callable

from jobapply.log import get_logger
from jobapply.models import Activity, utc_now
from jobapply.storage import ACTIVITY_FEED_KEY, KeyValueStore

log = get_logger(__name__)

MAX_ACTIVITIES = 50

Listener = Callable[[Activity], None]


class ActivityFeed:
    def __init__(self, backend: KeyValueStore, *, clock: Callable[[], str] = utc_now) -> None:
        self.backend = backend
        self.clock = clock
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, type: str, message: str) -> Activity:
        activity = Activity(type=type, message=message, timestamp=self.clock())
        feed = self.backend.get_or(ACTIVITY_FEED_KEY, [])
        if not isinstance(feed, list):
            feed = []
        feed.insert(0, activity.to_dict())
        del feed[MAX_ACTIVITIES:]
        self.backend.try_set(ACTIVITY_FEED_KEY, feed)

        for listener in list(self._listeners):
            try:
                listener(activity)
            except Exception as exc:
                log.warning("Activity listener %r failed: %s", listener, exc)

        log.info("[Activity] %s: %s", type, message)
        return activity

    def recent(self, limit: int = MAX_ACTIVITIES) -> list[Activity]:
        feed = self.backend.get_or(ACTIVITY_FEED_KEY, [])
        items = feed if isinstance(feed, list) else []
        return [
            Activity(type=str(a.get("type", "")), message=str(a.get("message", "")), timestamp=str(a.get("timestamp", "")))
            for a in items[:limit]
            if isinstance(a, dict)
        ]
