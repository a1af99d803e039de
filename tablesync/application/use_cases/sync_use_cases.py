"""
Casos de uso para sincronizacion de datos entre dos tablas.
"""
from loguru import logger

from tablesync.application.dto.sync_dto import SyncOptions
from tablesync.application.services.batch_executor import BatchExecutor
from tablesync.application.services.change_feed_sync import ChangeFeedSynchronizer
from tablesync.application.services.field_mapper import FieldMapper
from tablesync.application.services.rate_limit import RateLimitPolicy
from tablesync.application.services.reconciler import Reconciler
from tablesync.application.services.record_fetcher import RecordFetcher
from tablesync.application.services.stats_aggregator import StatsAggregator
from tablesync.domain.entities.field_map import FieldMap
from tablesync.domain.entities.sync_stats import SyncStats
from tablesync.domain.interfaces.table_api import TableApi


class SyncTableDataUseCase:
    """
    Orquestador de una corrida de sync.

    Flujo: FieldMapper -> (Reconciler | ChangeFeedSynchronizer) -> BatchExecutor,
    con StatsAggregator juntando conteos de todas las etapas.

    El handle `api` llega ya autenticado y se reutiliza en toda la corrida.
    """

    def __init__(self, api: TableApi):
        self.api = api

    def execute(self, options: SyncOptions) -> SyncStats:
        """
        Ejecuta una corrida completa y retorna sus estadisticas.

        Raises:
            SyncConfigError: configuracion invalida (antes de modificar datos)
            SyncAbortedError: fallo con continue_on_error=False
            TableApiError: no se pudo leer un snapshot o un feed de cambios
        """
        options.check()

        stats = StatsAggregator()
        stats.start()

        rate_limit = RateLimitPolicy(
            respect_rate_limit=options.respect_rate_limit,
            default_delay_s=options.rate_limit_delay_s,
        )
        field_map = FieldMapper(self.api, rate_limit).build(
            options.source_table_id, options.target_table_id, options.field_mapping
        )
        field_map.require_target(options.key_field)

        fetcher = RecordFetcher(self.api, page_size=options.page_size, rate_limit=rate_limit)
        executor = BatchExecutor(
            self.api,
            batch_size=options.batch_size,
            batch_delay_ms=options.batch_delay_ms,
            rate_limit=rate_limit,
            continue_on_error=options.continue_on_error,
            dry_run=options.what_if,
        )

        mode = "bidireccional" if options.bidirectional else "one-way"
        logger.info(
            f"Iniciando sync {mode}: '{options.source_table_id}' -> '{options.target_table_id}' "
            f"(key={options.key_field}, what_if={executor.dry_run})"
        )

        if options.bidirectional:
            ChangeFeedSynchronizer(
                fetcher=fetcher,
                executor=executor,
                stats=stats,
                key_field=options.key_field,
                field_map=field_map,
            ).sync(options.source_table_id, options.target_table_id, options.since)
        else:
            self._sync_one_way(options, field_map, fetcher, executor, stats)

        result = stats.finish()
        logger.success(f"Sync completado: {result.to_dict()}")
        return result

    def _sync_one_way(
        self,
        options: SyncOptions,
        field_map: FieldMap,
        fetcher: RecordFetcher,
        executor: BatchExecutor,
        stats: StatsAggregator,
    ) -> None:
        reconciler = Reconciler(
            key_field=options.key_field,
            field_map=field_map,
            create_missing=options.create_missing,
            update_existing=options.update_existing,
            delete_extra=options.delete_extra,
        )

        source_records = fetcher.fetch_all(options.source_table_id, options.source_filter)
        target_records = fetcher.fetch_all(options.target_table_id, options.target_filter)
        stats.set_record_counts(len(source_records), len(target_records))

        plan = reconciler.reconcile(source_records, target_records)
        stats.add_unchanged(plan.unchanged)

        target = options.target_table_id
        stats.add_created(executor.create_records(target, plan.creates))
        stats.add_updated(executor.update_records(target, plan.updates))
        stats.add_deleted(executor.delete_records(target, [r.id for r in plan.deletes]))
