"""
Estadísticas de una corrida de sync.

Se producen nuevas en cada corrida y nunca se persisten.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any


@dataclass
class SyncStats:
    source_records: int = 0
    target_records: int = 0
    created: int = 0
    updated: int = 0
    deleted: int = 0
    unchanged: int = 0
    failed: int = 0
    duration: timedelta = field(default_factory=timedelta)

    def to_dict(self) -> dict[str, Any]:
        """Reporte plano (claves camelCase, duración en segundos)."""
        return {
            "sourceRecords": self.source_records,
            "targetRecords": self.target_records,
            "created": self.created,
            "updated": self.updated,
            "deleted": self.deleted,
            "unchanged": self.unchanged,
            "failed": self.failed,
            "duration": round(self.duration.total_seconds(), 3),
        }
