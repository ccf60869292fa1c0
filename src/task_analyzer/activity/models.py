"""Data models for the activity capture module."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class EventKind(str, Enum):
    """Interaction kinds produced by the host capture hooks."""

    # Tab and navigation hooks
    TAB_CREATED = "tab_created"
    TAB_SWITCHED = "tab_switched"
    PAGE_VISIT = "page_visit"
    NAVIGATION = "navigation"
    # In-page interactions
    CLICK = "click"
    REPEATED_CLICK = "repeated_click"
    SELECT_CHANGE = "select_change"
    FORM_SUBMIT = "form_submit"
    FORM_INTERACTIONS = "form_interactions"
    COPY = "copy"
    PASTE = "paste"
    FREQUENT_COPY_PASTE = "frequent_copy_paste"
    EXCESSIVE_SCROLLING = "excessive_scrolling"
    SEARCH_SHORTCUT = "search_shortcut"
    TAB_SWITCH_SHORTCUT = "tab_switch_shortcut"
    TAB_CLOSE_SHORTCUT = "tab_close_shortcut"
    PAGE_DURATION = "page_duration"
    STATISTICS = "statistics"


@dataclass(frozen=True)
class ActivityEvent:
    """A sanitized interaction event.

    ``url`` has already been reduced by the sanitizer; ``kind`` is kept as a
    plain string so unknown host kinds still count.
    """

    kind: str
    timestamp: datetime  # timezone-aware
    url: str | None = None
    payload: dict[str, Any] | None = None

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "timestamp": self.timestamp.isoformat(),
            "url": self.url,
            "payload": self.payload,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ActivityEvent":
        return cls(
            kind=data["kind"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            url=data.get("url"),
            payload=data.get("payload"),
        )
