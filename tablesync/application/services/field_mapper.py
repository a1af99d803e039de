"""
Construcción del mapeo de fields source -> target.
"""

from __future__ import annotations

from typing import Mapping, Optional

from loguru import logger

from tablesync.application.services.rate_limit import RateLimitPolicy
from tablesync.domain.entities.field_map import FieldMap
from tablesync.domain.entities.record import TableField
from tablesync.domain.interfaces.table_api import TableApi
from tablesync.shared.exceptions.sync import TableApiError


class FieldMapper:
    def __init__(self, api: TableApi, rate_limit: Optional[RateLimitPolicy] = None) -> None:
        self._api = api
        self._rate_limit = rate_limit or RateLimitPolicy()

    def build(
        self,
        source_table_id: str,
        target_table_id: str,
        explicit: Optional[Mapping[str, str]] = None,
    ) -> FieldMap:
        """
        Retorna el FieldMap de la corrida.

        - Mapeo explícito: se usa tal cual (no se valida contra el schema remoto).
        - Sin mapeo: se infiere emparejando fields con nombre idéntico.
        """
        if explicit is not None:
            return FieldMap(explicit)

        source_fields = self._fetch_fields(source_table_id)
        target_fields = self._fetch_fields(target_table_id)
        field_map = infer_field_map(source_fields, target_fields)
        logger.info(
            f"Mapeo inferido por nombre: {len(field_map)}/{len(source_fields)} fields de "
            f"'{source_table_id}' emparejados con '{target_table_id}'"
        )
        return field_map

    def _fetch_fields(self, table_id: str) -> list[TableField]:
        resp = self._rate_limit.call(
            lambda: self._api.fetch_fields(table_id), f"fetch_fields({table_id})"
        )
        if not resp.ok or resp.data is None:
            raise TableApiError(
                f"No se pudieron obtener los fields de la tabla {table_id}: {resp.error}",
                status_code=resp.status_code,
                table_id=table_id,
            )
        return list(resp.data)


def infer_field_map(source_fields: list[TableField], target_fields: list[TableField]) -> FieldMap:
    """
    Empareja fields por nombre exacto.

    Con nombres duplicados en target gana el primer candidato; los fields
    source sin par quedan fuera del mapa.
    """
    first_by_name: dict[str, str] = {}
    for tf in target_fields:
        first_by_name.setdefault(tf.name, tf.id)

    mapping: dict[str, str] = {}
    for sf in source_fields:
        target_id = first_by_name.get(sf.name)
        if target_id is not None:
            mapping[sf.id] = target_id
    return FieldMap(mapping)
