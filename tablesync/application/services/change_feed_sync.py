"""
Sync incremental bidireccional basado en eventos de cambio.

Orden de aplicación:
1. Todos los eventos de source -> target (mapeo directo).
2. Todos los eventos de target -> source (mapeo inverso).

Un registro tocado en ambos lados dentro de la misma ventana termina con el
valor de target, solo por el orden de aplicación. No se comparan timestamps.

El `since` lo persiste y avanza el caller; aquí no se guarda estado entre
corridas.
"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from loguru import logger

from tablesync.application.services.batch_executor import BatchExecutor
from tablesync.application.services.record_fetcher import RecordFetcher
from tablesync.application.services.stats_aggregator import StatsAggregator
from tablesync.domain.entities.change_event import ChangeEvent
from tablesync.domain.entities.field_map import FieldMap
from tablesync.shared.exceptions.sync import TableApiError


class ChangeFeedSynchronizer:
    def __init__(
        self,
        *,
        fetcher: RecordFetcher,
        executor: BatchExecutor,
        stats: StatsAggregator,
        key_field: str,
        field_map: FieldMap,
    ) -> None:
        self._fetcher = fetcher
        self._executor = executor
        self._stats = stats
        self._key_field = key_field
        self._target_key_field = field_map.require_target(key_field)
        self._field_map = field_map

    def sync(self, source_table_id: str, target_table_id: str, since: datetime) -> None:
        # Ambos feeds se leen antes de escribir: los cambios que aplica esta
        # corrida no aparecen como eventos de la misma corrida.
        source_events = self._fetcher.fetch_changes(source_table_id, since)
        target_events = self._fetcher.fetch_changes(target_table_id, since)
        self._stats.set_record_counts(len(source_events), len(target_events))

        self._apply(
            source_events,
            dest_table_id=target_table_id,
            field_map=self._field_map,
            event_key_field=self._key_field,
            dest_key_field=self._target_key_field,
        )
        self._apply(
            target_events,
            dest_table_id=source_table_id,
            field_map=self._field_map.inverse(),
            event_key_field=self._target_key_field,
            dest_key_field=self._key_field,
        )

    def _apply(
        self,
        events: Sequence[ChangeEvent],
        *,
        dest_table_id: str,
        field_map: FieldMap,
        event_key_field: str,
        dest_key_field: str,
    ) -> None:
        for event in events:
            key_value = event.record.fields.get(event_key_field) if event.record else None
            if key_value is None:
                logger.warning(
                    f"Evento {event.type.value} del registro {event.record_id} sin valor para "
                    f"'{event_key_field}'; se omite"
                )
                continue

            try:
                existing = self._fetcher.find_by_key(dest_table_id, dest_key_field, key_value)
            except TableApiError as e:
                logger.warning(f"No se pudo buscar {dest_key_field}={key_value!r}: {e.message}")
                self._stats.add_failed(self._executor.record_failure(f"find_by_key {dest_table_id}", e.message))
                continue

            if event.is_upsert:
                mapped = field_map.map_fields(event.record.fields)
                if existing is not None:
                    self._stats.add_updated(self._executor.update_one(dest_table_id, existing.id, mapped))
                else:
                    self._stats.add_created(self._executor.create_one(dest_table_id, mapped))
            elif existing is not None:
                self._stats.add_deleted(self._executor.delete_one(dest_table_id, existing.id))
            else:
                logger.debug(f"Delete de {key_value!r} sin registro equivalente en {dest_table_id}")
