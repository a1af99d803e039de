"""
Mapeo inmutable de field ids: tabla source -> tabla target.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

from tablesync.shared.exceptions.sync import SyncConfigError


class FieldMap(Mapping[str, str]):
    """
    Correspondencia `source field id -> target field id`.

    Se construye una vez por corrida. Un field source sin par simplemente no
    aparece en el mapa.
    """

    def __init__(self, mapping: Optional[Mapping[str, str]] = None) -> None:
        self._mapping = MappingProxyType(
            {str(k): str(v) for k, v in (mapping or {}).items()}
        )

    def __getitem__(self, source_field: str) -> str:
        return self._mapping[source_field]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def __repr__(self) -> str:
        return f"FieldMap({dict(self._mapping)!r})"

    def require_target(self, source_field: str) -> str:
        """
        Retorna el field target de `source_field`.

        Raises:
            SyncConfigError: el field no tiene equivalente en la tabla target
        """
        target_field = self._mapping.get(source_field)
        if target_field is None:
            raise SyncConfigError(
                f"El key field '{source_field}' no tiene field equivalente en la tabla target",
                field="key_field",
            )
        return target_field

    def inverse(self) -> "FieldMap":
        """
        Mapa target -> source.

        Si dos fields source apuntan al mismo target, gana el último.
        """
        return FieldMap({target: source for source, target in self._mapping.items()})

    def map_fields(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Renombra los fields de un registro; los que no están en el mapa se descartan."""
        return {
            self._mapping[name]: value
            for name, value in fields.items()
            if name in self._mapping
        }
