"""Build a bounded summary from the day's activity log."""

from __future__ import annotations

from collections import Counter
from typing import Sequence
from urllib.parse import urlsplit

from task_analyzer.activity.models import ActivityEvent
from task_analyzer.analysis.models import ActivitySummary

TOP_SITES_LIMIT = 20
SAMPLE_LIMIT = 100


def summarize(events: Sequence[ActivityEvent]) -> ActivitySummary:
    """Count domains and kinds; keep the first ``SAMPLE_LIMIT`` events.

    Domain ranking is by count descending; ties keep first-seen order
    (``Counter`` preserves insertion order and ``sorted`` is stable).
    """
    domain_counts: Counter[str] = Counter()
    action_counts: Counter[str] = Counter()

    for event in events:
        domain = _domain(event.url)
        if domain:
            domain_counts[domain] += 1
        action_counts[event.kind] += 1

    top_sites = sorted(domain_counts.items(), key=lambda item: item[1], reverse=True)

    return ActivitySummary(
        total_count=len(events),
        top_sites=top_sites[:TOP_SITES_LIMIT],
        action_counts=dict(action_counts),
        sample_events=list(events[:SAMPLE_LIMIT]),
    )


def _domain(url: str | None) -> str | None:
    if not url:
        return None
    try:
        return urlsplit(url).hostname
    except ValueError:
        return None
