"""Analysis history and trailing-period rollups."""

from task_analyzer.history.rollup import Period, PeriodSummary, RecurringTask, summarize_period
from task_analyzer.history.store import HISTORY_LIMIT, AnalysisHistory

__all__ = [
    "AnalysisHistory",
    "HISTORY_LIMIT",
    "Period",
    "PeriodSummary",
    "RecurringTask",
    "summarize_period",
]
