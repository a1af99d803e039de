"""
Data Transfer Objects (DTOs) para la capa de aplicacion.
"""
from tablesync.application.dto.sync_dto import SyncOptions

__all__ = ["SyncOptions"]
