"""Outbound run notifications."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from task_analyzer.analysis.models import AnalysisResult

logger = logging.getLogger(__name__)

TOP_TASKS_IN_NOTIFICATION = 3


class NotificationCategory(str, Enum):
    ANALYSIS = "analysis"
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    title: str
    message: str
    category: NotificationCategory


class Notifier(ABC):
    """Abstract interface for the host's notification display."""

    @abstractmethod
    def notify(self, notification: Notification) -> None:
        ...


class LoggingNotifier(Notifier):
    """Writes notifications to the log. Used when no display is attached."""

    def notify(self, notification: Notification) -> None:
        level = logging.WARNING if notification.category is NotificationCategory.ERROR else logging.INFO
        logger.log(level, "[%s] %s: %s", notification.category.value, notification.title, notification.message)


class CallbackNotifier(Notifier):
    """Forwards each notification to a host-provided callable."""

    def __init__(self, callback: Callable[[Notification], None]):
        self._callback = callback

    def notify(self, notification: Notification) -> None:
        self._callback(notification)


def analysis_complete(result: AnalysisResult) -> Notification:
    top = result.automatable_tasks[:TOP_TASKS_IN_NOTIFICATION]
    if top:
        bullets = "\n".join(f"• {task.task}" for task in top)
        message = f"Tasks AI could automate:\n{bullets}\n\nOpen the report for details."
    else:
        message = "Open the report for details."
    return Notification("AI analysis complete", message, NotificationCategory.ANALYSIS)


def missing_api_key() -> Notification:
    return Notification(
        "API key not set",
        "Enter your analysis API key in settings.",
        NotificationCategory.ERROR,
    )


def no_activity() -> Notification:
    return Notification(
        "No activity recorded",
        "Nothing has been recorded today.",
        NotificationCategory.INFO,
    )


def analysis_failed(message: str) -> Notification:
    return Notification("Analysis error", message, NotificationCategory.ERROR)
