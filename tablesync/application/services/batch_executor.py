"""
Aplicación de mutaciones en batches acotados.

Diseño (resumen):
- Create: un request por batch; si la API crea menos registros que los
  pedidos, la diferencia cuenta como fallo.
- Update y delete individual: un registro a la vez (el endpoint de update es
  single-record); fallos por registro.
- Delete masivo: un request por batch de ids cuando la API lo soporta; un
  batch fallido cuenta completo como fallo.
- Rate-limit: una espera y un único reintento (ver RateLimitPolicy).
- continue_on_error=False: el primer fallo aborta todo con SyncAbortedError.

Cada llamada produce un BatchOutcome explícito; el conteo de fallos no
depende de excepciones.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional, Sequence, TypeVar

from loguru import logger

from tablesync.application.services.rate_limit import RateLimitPolicy
from tablesync.application.services.reconciler import PendingUpdate
from tablesync.domain.interfaces.table_api import TableApi
from tablesync.shared.exceptions.sync import SyncAbortedError

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 100


@dataclass
class BatchOutcome:
    success_count: int = 0
    failure_count: int = 0
    error: Optional[str] = None

    def merge(self, other: "BatchOutcome") -> "BatchOutcome":
        self.success_count += other.success_count
        self.failure_count += other.failure_count
        # Conservamos el primer error: es el que dispara un abort
        if self.error is None:
            self.error = other.error
        return self


def iter_batches(items: Sequence[T], batch_size: int) -> Iterator[list[T]]:
    """Parte `items` en batches de `batch_size` respetando el orden."""
    for i in range(0, len(items), batch_size):
        yield list(items[i:i + batch_size])


class BatchExecutor:
    def __init__(
        self,
        api: TableApi,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay_ms: int = 0,
        rate_limit: Optional[RateLimitPolicy] = None,
        continue_on_error: bool = True,
        dry_run: bool = False,
    ) -> None:
        self._api = api
        self._batch_size = batch_size
        self._batch_delay_ms = batch_delay_ms
        self._rate_limit = rate_limit or RateLimitPolicy()
        self._continue_on_error = continue_on_error
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    # ------------------------------------------------------------------
    # Operaciones por lote
    # ------------------------------------------------------------------

    def create_records(self, table_id: str, records: Sequence[Mapping[str, Any]]) -> BatchOutcome:
        total = BatchOutcome()
        if not records:
            return total
        if self._dry_run:
            logger.info(f"[what-if] Se crearían {len(records)} registros en {table_id}")
            return BatchOutcome(success_count=len(records))

        logger.info(f"Creando {len(records)} registros en {table_id}")
        for n, batch in enumerate(self._batches(records)):
            total.merge(self._create_batch(table_id, batch, n))
        return total

    def update_records(self, table_id: str, updates: Sequence[PendingUpdate]) -> BatchOutcome:
        total = BatchOutcome()
        if not updates:
            return total
        if self._dry_run:
            logger.info(f"[what-if] Se actualizarían {len(updates)} registros en {table_id}")
            return BatchOutcome(success_count=len(updates))

        logger.info(f"Actualizando {len(updates)} registros en {table_id}")
        for batch in self._batches(updates):
            for update in batch:
                total.merge(self.update_one(table_id, update.record_id, update.fields))
        return total

    def delete_records(self, table_id: str, record_ids: Sequence[str]) -> BatchOutcome:
        total = BatchOutcome()
        if not record_ids:
            return total
        if self._dry_run:
            logger.info(f"[what-if] Se borrarían {len(record_ids)} registros en {table_id}")
            return BatchOutcome(success_count=len(record_ids))

        bulk = bool(getattr(self._api, "supports_bulk_delete", False))
        logger.info(f"Borrando {len(record_ids)} registros en {table_id} (bulk={bulk})")
        for n, batch in enumerate(self._batches(record_ids)):
            if bulk:
                total.merge(self._delete_batch(table_id, batch, n))
            else:
                for record_id in batch:
                    total.merge(self.delete_one(table_id, record_id))
        return total

    # ------------------------------------------------------------------
    # Operaciones de un registro
    # ------------------------------------------------------------------

    def create_one(self, table_id: str, fields: Mapping[str, Any]) -> BatchOutcome:
        if self._dry_run:
            return BatchOutcome(success_count=1)
        return self._create_batch(table_id, [fields], None)

    def update_one(self, table_id: str, record_id: str, fields: Mapping[str, Any]) -> BatchOutcome:
        if self._dry_run:
            return BatchOutcome(success_count=1)
        resp = self._rate_limit.call(
            lambda: self._api.update_record(table_id, record_id, fields),
            f"update_record({table_id}, {record_id})",
        )
        if resp.ok:
            return BatchOutcome(success_count=1)
        logger.warning(f"Fallo al actualizar el registro {record_id}: {resp.error}")
        return self._failed(f"update_record {record_id}", 1, resp.error)

    def delete_one(self, table_id: str, record_id: str) -> BatchOutcome:
        if self._dry_run:
            return BatchOutcome(success_count=1)
        resp = self._rate_limit.call(
            lambda: self._api.delete_record(table_id, record_id),
            f"delete_record({table_id}, {record_id})",
        )
        if resp.ok:
            return BatchOutcome(success_count=1)
        logger.warning(f"Fallo al borrar el registro {record_id}: {resp.error}")
        return self._failed(f"delete_record {record_id}", 1, resp.error)

    def record_failure(self, what: str, error: Optional[str], count: int = 1) -> BatchOutcome:
        """Registra un fallo ajeno a una mutación (p.ej. un lookup) con la misma política."""
        return self._failed(what, count, error)

    # ------------------------------------------------------------------
    # Internos
    # ------------------------------------------------------------------

    def _batches(self, items: Sequence[T]) -> Iterator[list[T]]:
        """Itera batches aplicando la pausa entre batches (no después del último)."""
        for n, batch in enumerate(iter_batches(items, self._batch_size)):
            if n > 0 and self._batch_delay_ms > 0:
                time.sleep(self._batch_delay_ms / 1000.0)
            yield batch

    def _create_batch(
        self, table_id: str, batch: list[Mapping[str, Any]], batch_num: Optional[int]
    ) -> BatchOutcome:
        what = f"create_records({table_id}, batch {batch_num})" if batch_num is not None else f"create_record({table_id})"
        resp = self._rate_limit.call(lambda: self._api.create_records(table_id, batch), what)
        if not resp.ok:
            logger.warning(f"Fallo al crear batch en {table_id}: {resp.error}")
            return self._failed(what, len(batch), resp.error)

        created = len(resp.data or [])
        shortfall = len(batch) - created
        if shortfall > 0:
            logger.warning(f"La API creó {created} de {len(batch)} registros en {table_id}")
            return self._failed(
                what, shortfall, f"La API creó {created} de {len(batch)} registros", success=created
            )
        return BatchOutcome(success_count=len(batch))

    def _delete_batch(self, table_id: str, batch: list[str], batch_num: int) -> BatchOutcome:
        what = f"delete_records({table_id}, batch {batch_num})"
        resp = self._rate_limit.call(lambda: self._api.delete_records(table_id, batch), what)
        if resp.ok:
            return BatchOutcome(success_count=len(batch))
        logger.warning(f"Fallo al borrar batch en {table_id}: {resp.error}")
        return self._failed(what, len(batch), resp.error)

    def _failed(self, what: str, count: int, error: Optional[str], success: int = 0) -> BatchOutcome:
        outcome = BatchOutcome(success_count=success, failure_count=count, error=error or "error desconocido")
        if not self._continue_on_error:
            raise SyncAbortedError(what, outcome.error)
        return outcome
