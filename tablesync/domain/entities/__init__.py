"""
Entidades del dominio de sincronización.
"""
from tablesync.domain.entities.change_event import ChangeEvent, ChangeType
from tablesync.domain.entities.field_map import FieldMap
from tablesync.domain.entities.field_value import FieldValue, ValueKind, values_equal
from tablesync.domain.entities.record import Record, RecordPage, TableField
from tablesync.domain.entities.sync_stats import SyncStats


__all__ = [
    "ChangeEvent",
    "ChangeType",
    "FieldMap",
    "FieldValue",
    "ValueKind",
    "values_equal",
    "Record",
    "RecordPage",
    "TableField",
    "SyncStats",
]
