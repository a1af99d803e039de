"""
Raíz de la jerarquía de errores de tablesync.
"""
from typing import Optional, Dict, Any


class AppException(Exception):
    """
    Error de tablesync con código estable y contexto estructurado.

    El CLI lo atrapa en un solo lugar y lo reporta como
    `[error_code] message`; `details` lleva los datos que identifican el
    origen (field de configuración, tabla, operación).
    """

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)
