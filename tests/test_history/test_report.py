"""Tests for markdown exports."""

from datetime import datetime, timedelta

from task_analyzer.analysis.models import AnalysisRecord, AnalysisResult, Level, Product, Task
from task_analyzer.history.report import (
    analysis_filename,
    render_analysis,
    render_period_summary,
    summary_filename,
)
from task_analyzer.history.rollup import Period, summarize_period

NOW = datetime(2024, 3, 20, 18, 5).astimezone()


def _record():
    return AnalysisRecord(
        timestamp=NOW,
        result=AnalysisResult(
            automatable_tasks=[
                Task(
                    task="Reconcile invoices",
                    frequency=Level.HIGH,
                    automation_method="Match rows with a script",
                    time_saving_minutes_per_day=35,
                    priority=Level.HIGH,
                )
            ],
            product_ideas=[Product(name="Reconciler", description="Matches invoices", target_tasks=["Reconcile invoices"])],
            summary_text="Bookkeeping dominates the day.",
        ),
    )


def test_analysis_filename():
    assert analysis_filename(_record()) == "ai-task-analysis_2024-03-20.md"


def test_render_analysis():
    text = render_analysis(_record())
    assert text.startswith("# AI Task Analysis Report")
    assert "**Analyzed at**: 2024-03-20 18:05" in text
    assert "### 1. Reconcile invoices" in text
    assert "- **Priority**: High" in text
    assert "- **Estimated saving**: 35 min/day" in text
    assert "### 1. Reconciler" in text
    assert "- Reconcile invoices" in text
    assert "Bookkeeping dominates the day." in text


def test_render_empty_analysis():
    text = render_analysis(AnalysisRecord(timestamp=NOW, result=AnalysisResult()))
    assert "No automatable tasks were found." in text
    assert "No product ideas." in text
    assert "No notes." in text


def test_period_report():
    records = [_record(), AnalysisRecord(timestamp=NOW - timedelta(days=1), result=_record().result)]
    summary = summarize_period(records, Period.WEEK, now=NOW)

    assert summary_filename(summary) == "ai-task-summary_weekly_2024-03-20.md"
    text = render_period_summary(summary)
    assert text.startswith("# AI Task Analysis - Weekly Summary")
    assert "- **Analyses**: 2" in text
    assert "**70 min** (1.2 h)" in text
    assert "About **10 min** per day could be saved." in text
    assert "- **Occurrences**: 2" in text


def test_empty_monthly_report():
    summary = summarize_period([], Period.MONTH, now=NOW)
    assert summary_filename(summary) == "ai-task-summary_monthly_2024-03-20.md"
    text = render_period_summary(summary)
    assert "Monthly Summary" in text
    assert "per day could be saved" not in text
    assert "No recurring tasks." in text
