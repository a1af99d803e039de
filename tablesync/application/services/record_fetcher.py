"""
Lectura de registros y eventos de cambio desde la API de tablas.

- Snapshot: paginación por cursor hasta que la API no devuelva cursor.
- Cambios: una sola llamada (sin paginar) con todos los eventos >= since.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Optional

from loguru import logger

from tablesync.application.services.key_filter import build_key_filter
from tablesync.application.services.rate_limit import RateLimitPolicy
from tablesync.domain.entities.change_event import ChangeEvent
from tablesync.domain.entities.record import Record
from tablesync.domain.interfaces.table_api import TableApi
from tablesync.shared.exceptions.sync import TableApiError
from tablesync.shared.utils.datetime_utils import isoformat_z

DEFAULT_PAGE_SIZE = 100


class RecordFetcher:
    def __init__(
        self,
        api: TableApi,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        rate_limit: Optional[RateLimitPolicy] = None,
    ) -> None:
        self._api = api
        self._page_size = page_size
        self._rate_limit = rate_limit or RateLimitPolicy()

    def iter_records(self, table_id: str, filter: Optional[Any] = None) -> Iterable[Record]:
        """
        Itera todos los registros de la tabla que cumplen el filtro.

        Una página vacía con cursor no corta la iteración: solo la ausencia de
        cursor indica el final.
        """
        cursor: Optional[str] = None
        page_num = 0

        while True:
            page_num += 1
            resp = self._rate_limit.call(
                lambda: self._api.fetch_records(
                    table_id, filter=filter, page_size=self._page_size, cursor=cursor
                ),
                f"fetch_records({table_id}, página {page_num})",
            )
            if not resp.ok or resp.data is None:
                raise TableApiError(
                    f"No se pudieron obtener registros de la tabla {table_id}: {resp.error}",
                    status_code=resp.status_code,
                    table_id=table_id,
                )

            yield from resp.data.records

            cursor = resp.data.next_cursor
            if not cursor:
                break

    def fetch_all(self, table_id: str, filter: Optional[Any] = None) -> list[Record]:
        records = list(self.iter_records(table_id, filter))
        logger.debug(f"Tabla {table_id}: {len(records)} registros leídos")
        return records

    def find_by_key(self, table_id: str, key_field: str, value: Any) -> Optional[Record]:
        """
        Busca un registro por igualdad del campo clave (una sola consulta filtrada).

        Retorna el primer resultado o None.
        """
        resp = self._rate_limit.call(
            lambda: self._api.fetch_records(
                table_id, filter=build_key_filter(key_field, value), page_size=1
            ),
            f"find_by_key({table_id}, {key_field})",
        )
        if not resp.ok or resp.data is None:
            raise TableApiError(
                f"No se pudo buscar {key_field}={value!r} en la tabla {table_id}: {resp.error}",
                status_code=resp.status_code,
                table_id=table_id,
            )
        return resp.data.records[0] if resp.data.records else None

    def fetch_changes(self, table_id: str, since: datetime) -> list[ChangeEvent]:
        """
        Trae los eventos de cambio con timestamp >= since.

        Una lista vacía es un no-op normal.
        """
        resp = self._rate_limit.call(
            lambda: self._api.fetch_changes(table_id, since),
            f"fetch_changes({table_id})",
        )
        if not resp.ok:
            raise TableApiError(
                f"No se pudieron obtener los cambios de la tabla {table_id}: {resp.error}",
                status_code=resp.status_code,
                table_id=table_id,
            )
        events = list(resp.data or [])
        logger.info(f"Tabla {table_id}: {len(events)} cambios desde {isoformat_z(since)}")
        return events
