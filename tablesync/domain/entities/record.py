"""
Entidades de registro y campo de una tabla remota.

El motor es dueño de estos objetos solo durante una corrida; la persistencia
es responsabilidad de la API remota.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from tablesync.shared.utils.datetime_utils import parse_iso_datetime


@dataclass(frozen=True)
class TableField:
    """Campo del schema de una tabla (solo lo necesario para inferir mapeos)."""

    id: str
    name: str

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "TableField":
        return cls(id=str(payload.get("id")), name=str(payload.get("name") or ""))


@dataclass(frozen=True)
class Record:
    """
    Registro remoto.

    - id: asignado por la API (vacío para registros aún no creados)
    - fields: field id -> valor
    """

    id: str
    fields: dict[str, Any] = field(default_factory=dict)
    created_time: Optional[datetime] = None
    last_modified_time: Optional[datetime] = None

    def key_value(self, key_field: str) -> Optional[str]:
        """
        Retorna el valor del campo clave como string, o None si falta.

        Un registro sin valor de clave no participa del matching.
        """
        value = self.fields.get(key_field)
        if value is None:
            return None
        return str(value)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Record":
        return cls(
            id=str(payload.get("id") or ""),
            fields=dict(payload.get("fields") or {}),
            created_time=parse_iso_datetime(payload.get("createdTime")),
            last_modified_time=parse_iso_datetime(payload.get("lastModifiedTime")),
        )


@dataclass(frozen=True)
class RecordPage:
    """Página de registros más el cursor de continuación (None = última página)."""

    records: list[Record]
    next_cursor: Optional[str] = None
