"""Roll analysis history up over a trailing week or month."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Sequence

from task_analyzer.activity.store import local_now
from task_analyzer.analysis.models import AnalysisRecord, Level, Product


class Period(str, Enum):
    WEEK = "week"
    MONTH = "month"

    @property
    def days(self) -> int:
        return 7 if self is Period.WEEK else 30


@dataclass
class RecurringTask:
    """Every occurrence of one task description inside the window, merged."""

    task: str
    count: int
    total_time_savings: float
    priority: Level
    automation_method: str

    def to_dict(self) -> dict:
        return {
            "task": self.task,
            "count": self.count,
            "totalTimeSavings": self.total_time_savings,
            "priority": self.priority.value,
            "automationMethod": self.automation_method,
        }


@dataclass
class PeriodSummary:
    period: Period
    start: datetime
    end: datetime
    total_analyses: int = 0
    total_unique_tasks: int = 0
    total_time_savings: float = 0
    recurring_tasks: list[RecurringTask] = field(default_factory=list)
    product_ideas: list[Product] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "period": self.period.value,
            "dateRange": {"start": self.start.isoformat(), "end": self.end.isoformat()},
            "totalAnalyses": self.total_analyses,
            "totalUniqueTasks": self.total_unique_tasks,
            "totalTimeSavings": self.total_time_savings,
            "recurringTasks": [t.to_dict() for t in self.recurring_tasks],
            "productIdeas": [p.to_dict() for p in self.product_ideas],
        }


def summarize_period(
    records: Sequence[AnalysisRecord],
    period: Period | str,
    now: datetime | None = None,
) -> PeriodSummary:
    """Merge recurring tasks across the records inside the trailing window.

    ``records`` is newest first, as stored. Tasks merge on exact description
    text; the most recent occurrence supplies priority and automation method.
    Time savings are summed per occurrence, never deduplicated. An empty
    window yields a zeroed summary.
    """
    period = Period(period)
    end = now or local_now()
    start = end - timedelta(days=period.days)
    selected = [r for r in records if r.timestamp >= start]

    merged: dict[str, RecurringTask] = {}
    products: list[Product] = []
    total_savings: float = 0

    # Oldest first, so later occurrences override earlier ones.
    for record in sorted(selected, key=lambda r: r.timestamp):
        for task in record.result.automatable_tasks:
            saving = task.time_saving_minutes_per_day
            total_savings += saving
            entry = merged.get(task.task)
            if entry is None:
                merged[task.task] = RecurringTask(
                    task=task.task,
                    count=1,
                    total_time_savings=saving,
                    priority=task.priority,
                    automation_method=task.automation_method,
                )
                continue
            entry.count += 1
            entry.total_time_savings += saving
            entry.priority = task.priority
            entry.automation_method = task.automation_method

    # Newest first, as displayed.
    for record in selected:
        products.extend(record.result.product_ideas)

    recurring = sorted(
        merged.values(),
        key=lambda t: (t.priority.rank, t.count),
        reverse=True,
    )

    return PeriodSummary(
        period=period,
        start=start,
        end=end,
        total_analyses=len(selected),
        total_unique_tasks=len(merged),
        total_time_savings=total_savings,
        recurring_tasks=recurring,
        product_ideas=products,
    )
