"""Current-day activity log with write-time pruning."""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime, time, tzinfo
from typing import Callable

from dateutil import tz

from task_analyzer.activity.models import ActivityEvent
from task_analyzer.storage import ACTIVITIES_KEY, StateStorage

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    return datetime.now().astimezone()


def wall_clock(day: date, at: time, zone: tzinfo | None = None) -> datetime:
    """``day`` at wall-clock ``at`` in ``zone`` (the system zone by default).

    The offset is resolved for that instant, so the result stays on the
    requested wall-clock time across DST changes. A time that falls in a
    spring-forward gap moves past the gap.
    """
    zone = zone or tz.tzlocal()
    return tz.resolve_imaginary(datetime.combine(day, at).replace(tzinfo=zone))


def start_of_day(moment: datetime, zone: tzinfo | None = None) -> datetime:
    """Local midnight of the day containing ``moment``."""
    zone = zone or tz.tzlocal()
    return wall_clock(moment.astimezone(zone).date(), time(0, 0), zone)


class RetentionStore:
    """Append-only log bounded to events from the current local day.

    There is no cleanup task: every ``append`` re-filters the whole log
    against today's midnight before writing it back, so a log left over
    from a previous day is dropped on the first write after a restart.

    Args:
        storage: Backing state storage (record ``activities``).
        clock: Returns the current aware local time.
        zone: Zone whose midnight bounds the day; the system zone by default.
    """

    def __init__(
        self,
        storage: StateStorage,
        clock: Callable[[], datetime] | None = None,
        zone: tzinfo | None = None,
    ):
        self._storage = storage
        self._clock = clock or local_now
        self._zone = zone
        self._lock = threading.Lock()

    def append(self, event: ActivityEvent) -> None:
        with self._lock:
            events = self._load()
            events.append(event)
            cutoff = start_of_day(self._clock(), self._zone)
            kept = [e for e in events if e.timestamp >= cutoff]
            if len(kept) < len(events):
                logger.debug("Pruned %d events from before %s", len(events) - len(kept), cutoff)
            self._storage.set(ACTIVITIES_KEY, [e.to_dict() for e in kept])

    def snapshot(self) -> list[ActivityEvent]:
        """Stored events in insertion (chronological) order."""
        with self._lock:
            return self._load()

    def clear(self) -> None:
        with self._lock:
            self._storage.set(ACTIVITIES_KEY, [])
        logger.info("Activity log cleared")

    def _load(self) -> list[ActivityEvent]:
        events: list[ActivityEvent] = []
        for item in self._storage.get(ACTIVITIES_KEY, []) or []:
            try:
                events.append(ActivityEvent.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping corrupt stored activity: %s", e)
        return events
