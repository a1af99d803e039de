"""
Valor tipado de un campo de registro.

La API entrega los valores de cada campo como JSON sin tipo declarado. Para
comparar source vs target sin que ese tipo dinámico se filtre por todo el
motor, cada valor se etiqueta con su `ValueKind` y se serializa de una única
forma canónica. Esa serialización se usa solo para detectar diferencias,
nunca para enviar datos a la API.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

from tablesync.shared.utils.datetime_utils import isoformat_z


class ValueKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOL = "bool"
    DATE = "date"
    LIST = "list"
    MAP = "map"
    NULL = "null"


def _normalize(value: Any) -> Any:
    """
    Lleva un valor a una forma JSON estable.

    - float entero -> int (1.0 y 1 son el mismo número para la API)
    - datetime -> ISO8601 UTC con 'Z'; date -> YYYY-MM-DD
    - tuple/list -> list (el orden importa)
    - dict -> dict con claves string (el orden lo fija sort_keys)
    """
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else value
    if isinstance(value, datetime):
        return isoformat_z(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _normalize(v) for k, v in value.items()}
    return str(value)


@dataclass(frozen=True)
class FieldValue:
    """Valor de campo etiquetado con su tipo."""

    kind: ValueKind
    value: Any

    @classmethod
    def of(cls, raw: Any) -> "FieldValue":
        if isinstance(raw, FieldValue):
            return raw
        if raw is None:
            return cls(ValueKind.NULL, None)
        # bool antes que int: bool es subclase de int
        if isinstance(raw, bool):
            return cls(ValueKind.BOOL, raw)
        if isinstance(raw, (int, float)):
            return cls(ValueKind.NUMBER, raw)
        if isinstance(raw, str):
            return cls(ValueKind.STRING, raw)
        if isinstance(raw, (datetime, date)):
            return cls(ValueKind.DATE, raw)
        if isinstance(raw, (list, tuple)):
            return cls(ValueKind.LIST, list(raw))
        if isinstance(raw, dict):
            return cls(ValueKind.MAP, dict(raw))
        return cls(ValueKind.STRING, str(raw))

    def canonical(self) -> str:
        """Serialización canónica (independiente del orden de claves)."""
        return json.dumps(
            _normalize(self.value),
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        )


def values_equal(a: Any, b: Any) -> bool:
    """
    Compara dos valores de campo por su serialización canónica.

    Un bool nunca es igual a un número (`true` vs `1`), igual que en JSON.
    """
    return FieldValue.of(a).canonical() == FieldValue.of(b).canonical()
