"""Command surface: capture ingress, analysis runs and read-side views."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any, Callable

from task_analyzer.activity.models import ActivityEvent
from task_analyzer.activity.sanitizer import sanitize_event
from task_analyzer.activity.store import RetentionStore, local_now
from task_analyzer.analysis.client import AnalysisClient, BaseAnalysisClient
from task_analyzer.analysis.models import AnalysisRecord, AnalysisResult
from task_analyzer.analysis.summarizer import summarize
from task_analyzer.config import Settings, SettingsStore
from task_analyzer.exceptions import (
    ConfigurationError,
    NoDataError,
    ServiceError,
    StorageError,
    TaskAnalyzerError,
)
from task_analyzer.history.report import (
    analysis_filename,
    render_analysis,
    render_period_summary,
    summary_filename,
)
from task_analyzer.history.rollup import Period, PeriodSummary, summarize_period
from task_analyzer.history.store import AnalysisHistory
from task_analyzer import notifications
from task_analyzer.notifications import LoggingNotifier, Notifier
from task_analyzer.scheduler import DEFAULT_FIRE_TIME, DailyScheduler, TimerFactory
from task_analyzer.storage import MemoryStateStorage, StateStorage

logger = logging.getLogger(__name__)


@dataclass
class AnalysisOutcome:
    """Result of one run. Failures are returned, not raised."""

    success: bool
    analysis: AnalysisResult | None = None
    error: str | None = None
    category: str | None = None  # "configuration" | "no_data" | "service" | "storage"

    def to_dict(self) -> dict:
        if self.success and self.analysis is not None:
            return {"success": True, "analysis": self.analysis.to_dict()}
        return {"success": False, "error": self.error}


class TaskAnalyzer:
    """Single owning context for activity, settings and history state.

    Args:
        storage: Backing state storage; in-memory when omitted.
        client: Analysis service client; an OpenAI-compatible httpx client by default.
        notifier: Receives one notification per analysis run.
        clock: Returns the current aware local time.
        timer_factory: Passed to the daily scheduler.
        default_settings: Written on first start; read from the environment when omitted.
        zone: Zone for the day boundary and the daily fire time; the system zone by default.
    """

    def __init__(
        self,
        storage: StateStorage | None = None,
        client: BaseAnalysisClient | None = None,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] | None = None,
        timer_factory: TimerFactory | None = None,
        default_settings: Settings | None = None,
        zone: tzinfo | None = None,
    ):
        self.storage = storage or MemoryStateStorage()
        self._clock = clock or local_now
        self.settings = SettingsStore(self.storage, default_settings or Settings.from_env())
        self.activities = RetentionStore(self.storage, clock=self._clock, zone=zone)
        self.history = AnalysisHistory(self.storage, clock=self._clock)
        self.client = client or AnalysisClient()
        self.notifier = notifier or LoggingNotifier()
        self.scheduler = DailyScheduler(
            self.run_analysis,
            at=self._fire_time(self.settings.load()),
            clock=self._clock,
            timer_factory=timer_factory,
            zone=zone,
        )
        self._run_lock = threading.Lock()

    # ---- Lifecycle ----

    def start(self) -> datetime:
        """Arm the daily alarm. Safe to call repeatedly."""
        return self.scheduler.arm(self._fire_time(self.settings.load()))

    def stop(self) -> None:
        self.scheduler.disarm()

    def close(self) -> None:
        self.stop()
        self.storage.close()

    # ---- Capture ----

    def record_activity(self, raw: Any) -> bool:
        """Sanitize and store one raw event; returns whether it was stored."""
        event = sanitize_event(raw, now=self._clock())
        if event is None:
            return False
        if not self.settings.load().recording_enabled:
            return False
        self.activities.append(event)
        return True

    def get_activities(self) -> list[ActivityEvent]:
        return self.activities.snapshot()

    def clear_activities(self) -> None:
        self.activities.clear()

    # ---- Analysis ----

    def run_analysis(self) -> AnalysisOutcome:
        """Summarize today's log, analyze it and archive the result.

        Runs are serialized: a timer fire and an on-demand request never
        overlap. History is written only when the run succeeds.
        """
        with self._run_lock:
            try:
                settings = self.settings.load()
                summary = summarize(self.activities.snapshot())
                result = self.client.analyze(summary, settings.analysis_api_key)
                self.history.record(result)
            except ConfigurationError as e:
                logger.warning("Analysis skipped: %s", e)
                self.notifier.notify(notifications.missing_api_key())
                return AnalysisOutcome(False, error=str(e), category="configuration")
            except NoDataError as e:
                logger.info("Analysis skipped: %s", e)
                self.notifier.notify(notifications.no_activity())
                return AnalysisOutcome(False, error=str(e), category="no_data")
            except ServiceError as e:
                logger.warning("Analysis failed: %s", e)
                self.notifier.notify(notifications.analysis_failed(str(e)))
                return AnalysisOutcome(False, error=str(e), category="service")
            except StorageError as e:
                logger.error("Analysis result could not be saved: %s", e)
                self.notifier.notify(notifications.analysis_failed(str(e)))
                return AnalysisOutcome(False, error=str(e), category="storage")

        self.notifier.notify(notifications.analysis_complete(result))
        return AnalysisOutcome(True, analysis=result)

    def trigger_analysis(self) -> dict:
        """On-demand run, bypassing the timer."""
        return self.run_analysis().to_dict()

    # ---- History ----

    def get_history(self) -> list[AnalysisRecord]:
        return self.history.get_history()

    def get_last_analysis(self) -> AnalysisRecord | None:
        return self.history.last()

    def summarize_period(self, period: Period | str) -> PeriodSummary:
        return summarize_period(self.history.get_history(), period, now=self._clock())

    def get_summary(self, period: Period | str = Period.WEEK) -> dict:
        try:
            summary = self.summarize_period(period)
        except ValueError:
            return {"success": False, "error": f"Unknown period: {period!r}"}
        return {"success": True, "summary": summary.to_dict()}

    def export_analysis_markdown(self, index: int = 0) -> tuple[str, str]:
        """Return ``(filename, markdown)`` for the history record at ``index``."""
        history = self.history.get_history()
        if not 0 <= index < len(history):
            raise NoDataError(f"No analysis record at position {index}")
        record = history[index]
        return analysis_filename(record), render_analysis(record)

    def export_summary_markdown(self, period: Period | str = Period.WEEK) -> tuple[str, str]:
        summary = self.summarize_period(period)
        return summary_filename(summary), render_period_summary(summary)

    # ---- Settings ----

    def get_settings(self) -> Settings:
        return self.settings.load()

    def save_settings(self, settings: Settings | dict) -> Settings:
        """Validate and persist; re-arms the alarm if it is running.

        A dict may be partial: its keys are merged onto the current settings.
        """
        if isinstance(settings, dict):
            settings = self.settings.load().merged(settings)
        saved = self.settings.save(settings)
        if self.scheduler.state == "armed":
            self.scheduler.arm(saved.notification_clock())
        return saved

    # ---- Host message channel ----

    def handle_message(self, message: dict) -> dict:
        """Dispatch one host message by its ``type``.

        Never raises the task-analyzer taxonomy; failures come back as
        ``{"success": False, "error": ...}``.
        """
        kind = message.get("type") if isinstance(message, dict) else None
        try:
            if kind == "recordActivity":
                raw = dict(message.get("data") or {})
                for key in ("url", "title", "timestamp"):
                    if key in message:
                        raw.setdefault(key, message[key])
                return {"success": self.record_activity(raw)}
            if kind == "getActivities":
                return {"success": True, "activities": [e.to_dict() for e in self.get_activities()]}
            if kind == "triggerAnalysis":
                return self.trigger_analysis()
            if kind == "getSummary":
                return self.get_summary(message.get("period", Period.WEEK.value))
            if kind == "saveSettings":
                self.save_settings(message.get("settings") or {})
                return {"success": True}
            if kind == "clearActivities":
                self.clear_activities()
                return {"success": True}
            if kind == "getHistory":
                return {"success": True, "history": [r.to_dict() for r in self.get_history()]}
        except TaskAnalyzerError as e:
            logger.warning("Message %r failed: %s", kind, e)
            return {"success": False, "error": str(e)}
        return {"success": False, "error": f"Unknown message type: {kind!r}"}

    @staticmethod
    def _fire_time(settings: Settings):
        try:
            return settings.notification_clock()
        except ConfigurationError as e:
            logger.warning("Invalid stored notification time, using default: %s", e)
            return DEFAULT_FIRE_TIME
