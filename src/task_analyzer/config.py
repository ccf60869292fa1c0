"""User settings and environment-driven defaults."""

from __future__ import annotations

import logging
import os
import re
import threading
from dataclasses import dataclass
from datetime import time

from task_analyzer.exceptions import ConfigurationError
from task_analyzer.storage import SETTINGS_KEY, StateStorage

logger = logging.getLogger(__name__)

DEFAULT_MODEL = os.environ.get("TASK_ANALYZER_MODEL", "gpt-4o")
DEFAULT_NOTIFICATION_TIME = "18:00"

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

_FALSE_STRINGS = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class Settings:
    """Process-wide user settings. Replaced as a whole on save."""

    analysis_api_key: str = ""
    notification_time: str = DEFAULT_NOTIFICATION_TIME
    recording_enabled: bool = True

    def validate(self) -> None:
        if not _HHMM.match(self.notification_time or ""):
            raise ConfigurationError(
                f"notification_time must be HH:MM (24h), got {self.notification_time!r}"
            )

    def notification_clock(self) -> time:
        """The daily fire time as a ``datetime.time``."""
        self.validate()
        hours, minutes = self.notification_time.split(":")
        return time(int(hours), int(minutes))

    def to_dict(self) -> dict:
        return {
            "analysisApiKey": self.analysis_api_key,
            "notificationTime": self.notification_time,
            "recordingEnabled": self.recording_enabled,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "Settings":
        data = data or {}
        api_key = data.get("analysisApiKey")
        if api_key is None:
            # Older records used the provider-specific name.
            api_key = data.get("openaiApiKey", "")
        return cls(
            analysis_api_key=str(api_key or "").strip(),
            notification_time=str(data.get("notificationTime") or DEFAULT_NOTIFICATION_TIME),
            recording_enabled=_as_bool(data.get("recordingEnabled", True)),
        )

    def merged(self, changes: dict) -> "Settings":
        """Apply a partial camelCase record on top of these settings."""
        data = self.to_dict()
        if "openaiApiKey" in changes and "analysisApiKey" not in changes:
            data.pop("analysisApiKey")
        data.update(changes)
        return Settings.from_dict(data)

    @classmethod
    def from_env(cls) -> "Settings":
        """Initial settings, read from the environment."""
        api_key = os.environ.get("TASK_ANALYZER_API_KEY") or os.environ.get("OPENAI_API_KEY", "")
        return cls(
            analysis_api_key=api_key.strip(),
            notification_time=os.environ.get(
                "TASK_ANALYZER_NOTIFICATION_TIME", DEFAULT_NOTIFICATION_TIME
            ).strip(),
            recording_enabled=_as_bool(os.environ.get("TASK_ANALYZER_RECORDING", "true")),
        )


def _as_bool(value) -> bool:
    # Host records and the environment may carry booleans as strings.
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


class SettingsStore:
    """Owns the persisted ``settings`` record.

    Args:
        storage: Backing state storage.
        defaults: Written on first load when no record exists yet.
    """

    def __init__(self, storage: StateStorage, defaults: Settings | None = None):
        self._storage = storage
        self._defaults = defaults or Settings()
        self._lock = threading.Lock()

    def load(self) -> Settings:
        with self._lock:
            data = self._storage.get(SETTINGS_KEY)
            if data is None:
                logger.info("No stored settings; initializing defaults")
                self._storage.set(SETTINGS_KEY, self._defaults.to_dict())
                return self._defaults
        return Settings.from_dict(data)

    def save(self, settings: Settings) -> Settings:
        settings.validate()
        with self._lock:
            self._storage.set(SETTINGS_KEY, settings.to_dict())
        logger.info(
            "Settings saved (recording=%s, notification_time=%s)",
            settings.recording_enabled,
            settings.notification_time,
        )
        return settings
