"""Tests for settings."""

from datetime import time

import pytest

from task_analyzer.config import Settings, SettingsStore
from task_analyzer.exceptions import ConfigurationError
from task_analyzer.storage import MemoryStateStorage


def test_defaults():
    settings = Settings()
    assert settings.analysis_api_key == ""
    assert settings.notification_time == "18:00"
    assert settings.recording_enabled is True
    assert settings.notification_clock() == time(18, 0)


@pytest.mark.parametrize("value", ["18", "24:00", "7:30", "18:60", "", "ab:cd"])
def test_invalid_notification_time(value):
    with pytest.raises(ConfigurationError, match="HH:MM"):
        Settings(notification_time=value).validate()


def test_round_trip_uses_camel_case():
    settings = Settings(analysis_api_key="sk-1", notification_time="09:30", recording_enabled=False)
    data = settings.to_dict()
    assert data == {
        "analysisApiKey": "sk-1",
        "notificationTime": "09:30",
        "recordingEnabled": False,
    }
    assert Settings.from_dict(data) == settings


def test_from_dict_accepts_legacy_key():
    settings = Settings.from_dict({"openaiApiKey": " sk-legacy "})
    assert settings.analysis_api_key == "sk-legacy"
    assert settings.recording_enabled is True


def test_from_env(monkeypatch):
    monkeypatch.delenv("TASK_ANALYZER_API_KEY", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setenv("TASK_ANALYZER_NOTIFICATION_TIME", "20:15")
    monkeypatch.setenv("TASK_ANALYZER_RECORDING", "off")
    settings = Settings.from_env()
    assert settings.analysis_api_key == "sk-env"
    assert settings.notification_time == "20:15"
    assert settings.recording_enabled is False


def test_store_initializes_defaults_on_first_load():
    storage = MemoryStateStorage()
    store = SettingsStore(storage, defaults=Settings(analysis_api_key="sk-init"))
    assert store.load().analysis_api_key == "sk-init"
    assert storage.get("settings")["analysisApiKey"] == "sk-init"


def test_store_save_and_load():
    store = SettingsStore(MemoryStateStorage())
    store.save(Settings(recording_enabled=False))
    assert store.load().recording_enabled is False


def test_store_rejects_invalid():
    store = SettingsStore(MemoryStateStorage())
    with pytest.raises(ConfigurationError):
        store.save(Settings(notification_time="late"))
    assert store.load().notification_time == "18:00"


@pytest.mark.parametrize("value,expected", [
    ("false", False),
    ("Off", False),
    ("0", False),
    ("true", True),
    ("yes", True),
    (0, False),
    (1, True),
    (False, False),
])
def test_recording_flag_coerced(value, expected):
    assert Settings.from_dict({"recordingEnabled": value}).recording_enabled is expected


def test_merged_applies_partial_record():
    current = Settings(analysis_api_key="sk-1", notification_time="09:30")
    updated = current.merged({"recordingEnabled": "no"})
    assert updated == Settings(analysis_api_key="sk-1", notification_time="09:30", recording_enabled=False)


def test_merged_accepts_legacy_key():
    current = Settings(analysis_api_key="sk-old")
    assert current.merged({"openaiApiKey": "sk-new"}).analysis_api_key == "sk-new"
