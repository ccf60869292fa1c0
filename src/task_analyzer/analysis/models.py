"""Data models for activity summaries and analysis results."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from task_analyzer.activity.models import ActivityEvent

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


class Level(str, Enum):
    """Shared scale for task frequency and priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]


@dataclass
class ActivitySummary:
    """Bounded digest of the day's activity log. Never persisted."""

    total_count: int
    top_sites: list[tuple[str, int]] = field(default_factory=list)
    action_counts: dict[str, int] = field(default_factory=dict)
    sample_events: list[ActivityEvent] = field(default_factory=list)


@dataclass
class Task:
    """An automation suggestion returned by the analysis service."""

    task: str
    frequency: Level
    automation_method: str
    time_saving_minutes_per_day: float
    priority: Level

    def to_dict(self) -> dict:
        return {
            "task": self.task,
            "frequency": self.frequency.value,
            "automation_method": self.automation_method,
            "time_saving": self.time_saving_minutes_per_day,
            "priority": self.priority.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        if not isinstance(data, dict):
            raise ValueError(f"task entry must be an object, got {type(data).__name__}")
        task = data.get("task")
        if not isinstance(task, str) or not task.strip():
            raise ValueError("task entry has no description")
        return cls(
            task=task.strip(),
            frequency=_level(data.get("frequency"), "frequency"),
            automation_method=str(data.get("automation_method") or ""),
            time_saving_minutes_per_day=_minutes(data.get("time_saving", 0)),
            priority=_level(data.get("priority"), "priority"),
        )


@dataclass
class Product:
    """A product idea that would automate one or more tasks."""

    name: str
    description: str
    target_tasks: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "target_tasks": list(self.target_tasks),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        if not isinstance(data, dict):
            raise ValueError(f"product entry must be an object, got {type(data).__name__}")
        targets = data.get("target_tasks") or []
        if not isinstance(targets, list):
            raise ValueError("target_tasks must be a list")
        return cls(
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            target_tasks=[str(t) for t in targets],
        )


@dataclass
class AnalysisResult:
    """Validated structured payload from the analysis service."""

    automatable_tasks: list[Task] = field(default_factory=list)
    product_ideas: list[Product] = field(default_factory=list)
    summary_text: str = ""

    def to_dict(self) -> dict:
        return {
            "automatable_tasks": [t.to_dict() for t in self.automatable_tasks],
            "product_ideas": [p.to_dict() for p in self.product_ideas],
            "summary": self.summary_text,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "AnalysisResult":
        """Validate the service payload. Raises ValueError on any bad shape."""
        if not isinstance(data, dict):
            raise ValueError(f"analysis payload must be an object, got {type(data).__name__}")
        tasks = data.get("automatable_tasks") or []
        products = data.get("product_ideas") or []
        if not isinstance(tasks, list) or not isinstance(products, list):
            raise ValueError("automatable_tasks and product_ideas must be lists")
        summary = data.get("summary", "")
        if not isinstance(summary, str):
            raise ValueError("summary must be a string")
        return cls(
            automatable_tasks=[Task.from_dict(t) for t in tasks],
            product_ideas=[Product.from_dict(p) for p in products],
            summary_text=summary,
        )


@dataclass
class AnalysisRecord:
    """One completed analysis run."""

    timestamp: datetime
    result: AnalysisResult

    def to_dict(self) -> dict:
        return {"timestamp": self.timestamp.isoformat(), "result": self.result.to_dict()}

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisRecord":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            result=AnalysisResult.from_dict(data["result"]),
        )


def _level(value: Any, name: str) -> Level:
    try:
        return Level(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"{name} must be one of high/medium/low, got {value!r}") from None


def _minutes(value: Any) -> float:
    """Accept 15, 15.5, "15", "15分" or "15 minutes"."""
    if isinstance(value, bool):
        raise ValueError("time_saving must be a number")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        match = _NUMBER.search(value)
        if match:
            number = float(match.group())
            return int(number) if number.is_integer() else number
    raise ValueError(f"time_saving must be a number, got {value!r}")
