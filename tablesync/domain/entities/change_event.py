"""
Eventos de cambio usados por el sync incremental bidireccional.

Orden garantizado: solo el orden de llegada dentro de una misma tabla; no hay
reloj global entre source y target.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from tablesync.domain.entities.record import Record
from tablesync.shared.utils.datetime_utils import parse_iso_datetime


class ChangeType(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def parse(cls, raw: Any) -> "ChangeType":
        return cls(str(raw).strip().lower())


@dataclass(frozen=True)
class ChangeEvent:
    """Notificación de que un registro fue creado, actualizado o borrado."""

    record_id: str
    type: ChangeType
    record: Optional[Record] = None
    timestamp: Optional[datetime] = None
    actor: Optional[str] = None

    @property
    def is_upsert(self) -> bool:
        return self.type in (ChangeType.CREATE, ChangeType.UPDATE)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "ChangeEvent":
        raw_record = payload.get("record")
        return cls(
            record_id=str(payload.get("id") or ""),
            type=ChangeType.parse(payload.get("type")),
            record=Record.from_api(raw_record) if raw_record else None,
            timestamp=parse_iso_datetime(payload.get("timestamp")),
            actor=payload.get("userId"),
        )
