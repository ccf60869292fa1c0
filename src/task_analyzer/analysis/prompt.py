"""Instruction payload sent to the analysis service."""

from __future__ import annotations

import json

from task_analyzer.analysis.models import ActivitySummary

PROMPT_SAMPLE_LIMIT = 30

SYSTEM_PROMPT = "You are an expert in workflow efficiency and practical AI automation."

OUTPUT_SCHEMA = """{
  "automatable_tasks": [
    {
      "task": "description of the task",
      "frequency": "high | medium | low",
      "automation_method": "how to automate it",
      "time_saving": "estimated minutes saved per day (number)",
      "priority": "high | medium | low"
    }
  ],
  "product_ideas": [
    {
      "name": "product name",
      "description": "what it does",
      "target_tasks": ["task 1", "task 2"]
    }
  ],
  "summary": "overall observations and recommendations"
}"""


def build_analysis_prompt(summary: ActivitySummary) -> str:
    """Render the user message for one analysis run."""
    lines = [
        "Analyze the following browser activity log and identify tasks that AI "
        "could automate or replace.",
        "",
        "## Today's activity",
        f"Total events: {summary.total_count}",
        "",
        f"Most visited sites (top {len(summary.top_sites)}):",
    ]
    lines.extend(f"- {domain}: {count} visits" for domain, count in summary.top_sites)
    lines.append("")
    lines.append("Event types:")
    lines.extend(f"- {kind}: {count}" for kind, count in summary.action_counts.items())
    lines.append("")
    lines.append("Detailed log (excerpt):")
    for event in summary.sample_events[:PROMPT_SAMPLE_LIMIT]:
        stamp = event.timestamp.astimezone().strftime("%H:%M:%S")
        detail = f" {json.dumps(event.payload, ensure_ascii=False)}" if event.payload else ""
        lines.append(f"- [{stamp}] {event.kind}: {event.url or 'N/A'}{detail}")

    lines.extend([
        "",
        "## Instructions",
        "Propose AI automation from these angles:",
        "1. Repetitive work: frequent visits to the same site or similar action patterns",
        "2. Data entry: form input or searches that AI could take over",
        "3. Information gathering: collecting information across sites that an AI agent could do",
        "4. Copy and paste: transferring data between pages",
        "5. Product ideas: products that would automate these tasks",
        "",
        "## Output format",
        "Respond with a single JSON object with exactly this structure:",
        OUTPUT_SCHEMA,
    ])
    return "\n".join(lines)
