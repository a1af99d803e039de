"""
Casos de uso de tablesync.
"""
from .sync_use_cases import SyncTableDataUseCase

__all__ = ["SyncTableDataUseCase"]
