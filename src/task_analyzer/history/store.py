"""Capped, newest-first archive of completed analysis runs."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable

from task_analyzer.activity.store import local_now
from task_analyzer.analysis.models import AnalysisRecord, AnalysisResult
from task_analyzer.storage import HISTORY_KEY, LAST_ANALYSIS_KEY, StateStorage

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 30


class AnalysisHistory:
    """Owns the ``analysisHistory`` and ``lastAnalysis`` records.

    Args:
        storage: Backing state storage.
        clock: Returns the current aware local time; stamps new records.
        limit: Maximum number of records kept.
    """

    def __init__(
        self,
        storage: StateStorage,
        clock: Callable[[], datetime] | None = None,
        limit: int = HISTORY_LIMIT,
    ):
        self._storage = storage
        self._clock = clock or local_now
        self.limit = max(1, limit)
        self._lock = threading.Lock()

    def record(self, result: AnalysisResult) -> AnalysisRecord:
        """Prepend a record for ``result`` then cap; the newest always survives."""
        entry = AnalysisRecord(timestamp=self._clock(), result=result)
        with self._lock:
            history = self._storage.get(HISTORY_KEY, []) or []
            history.insert(0, entry.to_dict())
            dropped = len(history) - self.limit
            if dropped > 0:
                logger.debug("History full; dropping %d oldest records", dropped)
            self._storage.set(HISTORY_KEY, history[: self.limit])
            self._storage.set(LAST_ANALYSIS_KEY, entry.to_dict())
        return entry

    def get_history(self) -> list[AnalysisRecord]:
        """All kept records, newest first."""
        with self._lock:
            raw = self._storage.get(HISTORY_KEY, []) or []
        records: list[AnalysisRecord] = []
        for item in raw:
            try:
                records.append(AnalysisRecord.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping corrupt history record: %s", e)
        return records

    def last(self) -> AnalysisRecord | None:
        history = self.get_history()
        return history[0] if history else None
