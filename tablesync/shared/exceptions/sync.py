"""
Excepciones relacionadas con la sincronización de tablas.
"""
from typing import Any, Optional

from tablesync.shared.exceptions.base import AppException


class SyncConfigError(AppException):
    """
    Error de configuración del sync.

    Es fatal: se levanta antes de cualquier llamada que modifique datos.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else None
        super().__init__(
            message=message,
            error_code="SYNC_CONFIG_ERROR",
            details=details
        )


class TableApiError(AppException):
    """Error de integración con la API de tablas."""

    def __init__(self, message: str, status_code: Optional[int] = None, table_id: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="TABLE_API_ERROR",
            details={"status_code": status_code, "table_id": table_id}
        )
        self.status_code = status_code
        self.table_id = table_id


class SyncAbortedError(AppException):
    """
    El sync se detuvo en el primer fallo (continue_on_error=False).

    `cause` conserva el error que disparó el abort.
    """

    def __init__(self, operation: str, cause: Any):
        super().__init__(
            message=f"Sync abortado durante '{operation}': {cause}",
            error_code="SYNC_ABORTED",
            details={"operation": operation, "cause": str(cause)}
        )
        self.operation = operation
        self.cause = cause
