"""
Servicios del motor de sync.
Cada servicio encapsula una etapa de la corrida.
"""
from tablesync.application.services.batch_executor import BatchExecutor, BatchOutcome, iter_batches
from tablesync.application.services.change_feed_sync import ChangeFeedSynchronizer
from tablesync.application.services.field_mapper import FieldMapper, infer_field_map
from tablesync.application.services.key_filter import build_key_filter
from tablesync.application.services.rate_limit import RateLimitPolicy
from tablesync.application.services.reconciler import PendingUpdate, ReconcilePlan, Reconciler
from tablesync.application.services.record_fetcher import RecordFetcher
from tablesync.application.services.stats_aggregator import StatsAggregator


__all__ = [
    "BatchExecutor",
    "BatchOutcome",
    "iter_batches",
    "ChangeFeedSynchronizer",
    "FieldMapper",
    "infer_field_map",
    "build_key_filter",
    "RateLimitPolicy",
    "PendingUpdate",
    "ReconcilePlan",
    "Reconciler",
    "RecordFetcher",
    "StatsAggregator",
]
