"""Markdown exports for single analyses and period rollups."""

from __future__ import annotations

from task_analyzer.analysis.models import AnalysisRecord, Level, Product
from task_analyzer.history.rollup import Period, PeriodSummary

_PRIORITY_LABELS = {Level.HIGH: "High", Level.MEDIUM: "Medium", Level.LOW: "Low"}


def analysis_filename(record: AnalysisRecord) -> str:
    return f"ai-task-analysis_{record.timestamp.date().isoformat()}.md"


def summary_filename(summary: PeriodSummary) -> str:
    label = "weekly" if summary.period is Period.WEEK else "monthly"
    return f"ai-task-summary_{label}_{summary.end.date().isoformat()}.md"


def render_analysis(record: AnalysisRecord) -> str:
    result = record.result
    stamp = record.timestamp.strftime("%Y-%m-%d %H:%M")
    lines = [
        "# AI Task Analysis Report",
        "",
        f"**Analyzed at**: {stamp}",
        "",
        "---",
        "",
        "## Automatable tasks",
        "",
    ]
    if result.automatable_tasks:
        for index, task in enumerate(result.automatable_tasks, 1):
            lines.extend([
                f"### {index}. {task.task}",
                "",
                f"- **Priority**: {_PRIORITY_LABELS[task.priority]}",
                f"- **Frequency**: {_PRIORITY_LABELS[task.frequency]}",
                f"- **Estimated saving**: {task.time_saving_minutes_per_day} min/day",
                "- **Automation method**:",
                "",
                f"  {task.automation_method}",
                "",
                "---",
                "",
            ])
    else:
        lines.extend(["No automatable tasks were found.", ""])

    lines.extend(_render_products(result.product_ideas, "## Product ideas"))
    lines.extend([
        "## Overall notes",
        "",
        result.summary_text or "No notes.",
        "",
    ])
    return "\n".join(lines)


def render_period_summary(summary: PeriodSummary) -> str:
    label = "Weekly" if summary.period is Period.WEEK else "Monthly"
    hours = round(summary.total_time_savings / 60, 1)
    lines = [
        f"# AI Task Analysis - {label} Summary",
        "",
        f"**Period**: {summary.start.date().isoformat()} - {summary.end.date().isoformat()}",
        "",
        "---",
        "",
        "## Statistics",
        "",
        f"- **Analyses**: {summary.total_analyses}",
        f"- **Unique tasks**: {summary.total_unique_tasks}",
        f"- **Cumulative saving**: **{summary.total_time_savings} min** ({hours} h)",
        "",
    ]
    if summary.total_time_savings > 0:
        daily = round(summary.total_time_savings / summary.period.days)
        lines.extend([f"About **{daily} min** per day could be saved.", ""])

    lines.extend(["---", "", "## Recurring tasks (by priority)", ""])
    if summary.recurring_tasks:
        for index, task in enumerate(summary.recurring_tasks, 1):
            lines.extend([
                f"### {index}. {task.task}",
                "",
                f"- **Occurrences**: {task.count}",
                f"- **Cumulative saving**: {task.total_time_savings} min",
                f"- **Priority**: {_PRIORITY_LABELS[task.priority]}",
                "- **Automation method**:",
                "",
                f"  {task.automation_method}",
                "",
                "---",
                "",
            ])
    else:
        lines.extend(["No recurring tasks.", ""])

    lines.extend(_render_products(summary.product_ideas, "## Product ideas"))
    return "\n".join(lines)


def _render_products(products: list[Product], heading: str) -> list[str]:
    lines = [heading, ""]
    if not products:
        return lines + ["No product ideas.", ""]
    for index, product in enumerate(products, 1):
        lines.extend([f"### {index}. {product.name}", "", product.description, ""])
        lines.append("**Target tasks**:")
        lines.extend(f"- {target}" for target in product.target_tasks)
        lines.append("")
    return lines
