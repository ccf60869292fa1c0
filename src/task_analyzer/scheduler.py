"""Daily analysis alarm: next-fire computation and a re-armable timer."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, time, timedelta, tzinfo
from typing import Any, Callable

from dateutil import tz

from task_analyzer.activity.store import local_now, wall_clock
from task_analyzer.exceptions import SchedulerError

logger = logging.getLogger(__name__)

ALARM_NAME = "dailyAnalysis"
DEFAULT_FIRE_TIME = time(18, 0)

TimerFactory = Callable[[float, Callable[..., Any], tuple], Any]


def next_run_at(now: datetime, at: time = DEFAULT_FIRE_TIME, zone: tzinfo | None = None) -> datetime:
    """Today at ``at`` unless ``now`` is already past it, else tomorrow.

    ``at`` is wall-clock time in ``zone`` (the system zone by default).
    """
    zone = zone or tz.tzlocal()
    today = now.astimezone(zone).date()
    target = wall_clock(today, at, zone)
    if now > target:
        target = wall_clock(today + timedelta(days=1), at, zone)
    return target


def following_day(target: datetime, at: time, zone: tzinfo | None = None) -> datetime:
    """The fire after ``target``: the next calendar day at ``at``."""
    zone = zone or tz.tzlocal()
    return wall_clock(target.astimezone(zone).date() + timedelta(days=1), at, zone)


def _thread_timer(delay: float, function: Callable[..., Any], args: tuple) -> threading.Timer:
    timer = threading.Timer(delay, function, args=args)
    timer.daemon = True
    return timer


class DailyScheduler:
    """Fires ``callback`` once a day at a fixed local time.

    ``arm`` is idempotent: it cancels any timer it owns before creating a
    new one. After each fire the next target is the following day at the same
    wall-clock time, skipping forward past any fires missed while suspended.

    Args:
        callback: Invoked with no arguments on each fire.
        at: Local wall-clock fire time.
        clock: Returns the current aware local time.
        timer_factory: ``(delay_seconds, function, args) -> timer`` where the
            timer has ``start()`` and ``cancel()``. Defaults to daemon
            ``threading.Timer`` instances.
        name: Alarm identity; ``fire`` ignores any other name.
        zone: Zone of the wall-clock fire time; the system zone by default.
    """

    def __init__(
        self,
        callback: Callable[[], Any],
        at: time = DEFAULT_FIRE_TIME,
        clock: Callable[[], datetime] | None = None,
        timer_factory: TimerFactory | None = None,
        name: str = ALARM_NAME,
        zone: tzinfo | None = None,
    ):
        self._callback = callback
        self.zone = zone
        self.at = at
        self.name = name
        self._clock = clock or local_now
        self._timer_factory = timer_factory or _thread_timer
        self._timer: Any = None
        self._target: datetime | None = None
        self._lock = threading.Lock()

    @property
    def state(self) -> str:
        return "armed" if self._timer is not None else "idle"

    @property
    def next_fire_at(self) -> datetime | None:
        return self._target

    def arm(self, at: time | None = None) -> datetime:
        """(Re)create the alarm and return its first target."""
        with self._lock:
            if at is not None:
                self.at = at
            self._cancel()
            target = next_run_at(self._clock(), self.at, self.zone)
            self._schedule(target)
        logger.info("Next analysis scheduled for %s", target.isoformat())
        return target

    def disarm(self) -> None:
        with self._lock:
            self._cancel()
            self._target = None

    def fire(self, name: str = ALARM_NAME) -> bool:
        """Handle an alarm event; returns False when it was not ours."""
        if name != self.name:
            logger.debug("Ignoring alarm %r", name)
            return False
        with self._lock:
            now = self._clock()
            if self._target is None:
                target = next_run_at(now, self.at, self.zone)
            else:
                target = following_day(self._target, self.at, self.zone)
            while target <= now:
                target = following_day(target, self.at, self.zone)
            self._cancel()
            self._schedule(target)
        logger.info("Daily analysis triggered; next at %s", target.isoformat())
        try:
            self._callback()
        except Exception:
            # Timer threads have no caller to report to.
            logger.exception("Scheduled analysis callback failed")
        return True

    def _schedule(self, target: datetime) -> None:
        delay = max(0.0, (target - self._clock()).total_seconds())
        timer = self._timer_factory(delay, self.fire, (self.name,))
        try:
            timer.start()
        except RuntimeError as e:
            raise SchedulerError(f"Could not start the {self.name} timer: {e}") from e
        self._timer = timer
        self._target = target

    def _cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
