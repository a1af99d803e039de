"""
Filtro de igualdad por campo clave (`{keyField} == {value}`).

Es el único filtro que construye el motor; cualquier otro filtro llega del
caller como valor opaco.
"""

from __future__ import annotations

from typing import Any


def build_key_filter(field_id: str, value: Any) -> dict[str, Any]:
    return {
        "operator": "and",
        "conditions": [
            {"fieldId": field_id, "operator": "eq", "value": value},
        ],
    }
