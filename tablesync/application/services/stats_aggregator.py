"""
Acumulador de estadísticas de una corrida.
"""

from __future__ import annotations

import time
from datetime import timedelta
from typing import Optional

from tablesync.application.services.batch_executor import BatchOutcome
from tablesync.domain.entities.sync_stats import SyncStats


class StatsAggregator:
    """
    Junta los conteos de todas las etapas y mide la duración total con un
    timer monotónico.
    """

    def __init__(self) -> None:
        self._stats = SyncStats()
        self._started: Optional[float] = None

    @property
    def stats(self) -> SyncStats:
        return self._stats

    def start(self) -> None:
        self._started = time.monotonic()

    def add_created(self, outcome: BatchOutcome) -> None:
        self._stats.created += outcome.success_count
        self._stats.failed += outcome.failure_count

    def add_updated(self, outcome: BatchOutcome) -> None:
        self._stats.updated += outcome.success_count
        self._stats.failed += outcome.failure_count

    def add_deleted(self, outcome: BatchOutcome) -> None:
        self._stats.deleted += outcome.success_count
        self._stats.failed += outcome.failure_count

    def add_failed(self, outcome: BatchOutcome) -> None:
        self._stats.failed += outcome.failure_count

    def add_unchanged(self, count: int = 1) -> None:
        self._stats.unchanged += count

    def set_record_counts(self, source: int, target: int) -> None:
        self._stats.source_records = source
        self._stats.target_records = target

    def finish(self) -> SyncStats:
        if self._started is not None:
            self._stats.duration = timedelta(seconds=time.monotonic() - self._started)
        return self._stats
