"""Activity capture: sanitization and the current-day retention log."""

from task_analyzer.activity.models import ActivityEvent, EventKind
from task_analyzer.activity.sanitizer import sanitize_event, sanitize_url
from task_analyzer.activity.store import RetentionStore

__all__ = [
    "ActivityEvent",
    "EventKind",
    "sanitize_event",
    "sanitize_url",
    "RetentionStore",
]
