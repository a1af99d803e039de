"""
Contrato de la API de tablas que consume el motor de sync.

Este contrato existe para:
- Que el motor reciba un handle ya autenticado por inyección (sin sesión global).
- Facilitar tests unitarios con una implementación en memoria.

Todas las operaciones retornan un `ApiResponse` explícito en lugar de levantar
excepciones: el conteo de fallos del sync nunca depende de un stack unwinding.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, Mapping, Optional, Protocol, Sequence, TypeVar

from tablesync.domain.entities.change_event import ChangeEvent
from tablesync.domain.entities.record import Record, RecordPage, TableField

T = TypeVar("T")

RATE_LIMIT_STATUS = 429


@dataclass(frozen=True)
class ApiResponse(Generic[T]):
    """
    Resultado de una llamada a la API.

    - ok: la llamada fue exitosa
    - data: payload ya parseado (solo si ok)
    - status_code: código HTTP (None si no hubo respuesta)
    - retry_after: sugerencia de espera en segundos (solo en rate-limit)
    - error: mensaje de error legible
    """

    ok: bool
    data: Optional[T] = None
    status_code: Optional[int] = None
    retry_after: Optional[float] = None
    error: Optional[str] = None

    @property
    def rate_limited(self) -> bool:
        return self.status_code == RATE_LIMIT_STATUS

    @classmethod
    def success(cls, data: Optional[T] = None, status_code: int = 200) -> "ApiResponse[T]":
        return cls(ok=True, data=data, status_code=status_code)

    @classmethod
    def failure(cls, error: str, status_code: Optional[int] = None) -> "ApiResponse[T]":
        return cls(ok=False, status_code=status_code, error=error)

    @classmethod
    def rate_limit(cls, retry_after: Optional[float] = None) -> "ApiResponse[T]":
        return cls(
            ok=False,
            status_code=RATE_LIMIT_STATUS,
            retry_after=retry_after,
            error="Too many requests. Rate limit exceeded.",
        )


class TableApi(Protocol):
    """
    Operaciones remotas sobre tablas.

    Implementaciones:
    - TeableClient (HTTP).
    - Fake en memoria para tests.
    """

    supports_bulk_delete: bool

    def fetch_fields(self, table_id: str) -> ApiResponse[list[TableField]]:
        ...

    def fetch_records(
        self,
        table_id: str,
        *,
        filter: Optional[Any] = None,
        page_size: int = 100,
        cursor: Optional[str] = None,
    ) -> ApiResponse[RecordPage]:
        ...

    def fetch_changes(self, table_id: str, since: datetime) -> ApiResponse[list[ChangeEvent]]:
        ...

    def create_records(
        self, table_id: str, records: Sequence[Mapping[str, Any]]
    ) -> ApiResponse[list[Record]]:
        """Crea registros a partir de sus fields. Puede retornar un subconjunto."""
        ...

    def update_record(
        self, table_id: str, record_id: str, fields: Mapping[str, Any]
    ) -> ApiResponse[Any]:
        ...

    def delete_records(self, table_id: str, record_ids: Sequence[str]) -> ApiResponse[Any]:
        ...

    def delete_record(self, table_id: str, record_id: str) -> ApiResponse[Any]:
        ...
