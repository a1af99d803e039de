"""
DTOs relacionados con la sincronizacion de tablas.
Definen las opciones de una corrida de sync.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from tablesync.core.config import Settings
from tablesync.shared.exceptions.sync import SyncConfigError


class SyncOptions(BaseModel):
    """Opciones de una corrida de sync entre dos tablas."""

    source_table_id: str = Field(..., min_length=1, description="ID de la tabla origen")
    target_table_id: str = Field(..., min_length=1, description="ID de la tabla destino")
    key_field: str = Field(..., min_length=1, description="Field (source) usado para emparejar registros")
    field_mapping: Optional[Dict[str, str]] = Field(
        None,
        description="Mapeo explicito source -> target. Si es None se infiere por nombre"
    )

    create_missing: bool = Field(True, description="Crear en target los registros que faltan")
    update_existing: bool = Field(True, description="Actualizar registros existentes en target")
    delete_extra: bool = Field(False, description="Borrar de target los registros que no estan en source")

    source_filter: Optional[Any] = Field(None, description="Filtro opaco para la tabla origen")
    target_filter: Optional[Any] = Field(None, description="Filtro opaco para la tabla destino")

    page_size: int = Field(100, ge=1, description="Registros por pagina al leer")
    batch_size: int = Field(100, ge=1, description="Registros por batch al escribir")
    batch_delay_ms: int = Field(0, ge=0, description="Pausa entre batches (ms)")
    respect_rate_limit: bool = Field(False, description="Respetar el Retry-After sugerido por la API")
    rate_limit_delay_s: float = Field(5.0, ge=0, description="Espera por defecto ante rate-limit (s)")

    bidirectional: bool = Field(False, description="Sync incremental bidireccional por eventos")
    since: Optional[datetime] = Field(None, description="Inicio de la ventana de cambios (bidireccional)")

    what_if: bool = Field(False, description="Dry-run: clasifica y cuenta sin modificar datos")
    continue_on_error: bool = Field(True, description="Continuar ante fallos de API")

    @classmethod
    def create(cls, **values: Any) -> "SyncOptions":
        """
        Construye las opciones convirtiendo errores de validacion en SyncConfigError.
        """
        try:
            options = cls(**values)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ()))
            raise SyncConfigError(f"Opcion de sync invalida '{field}': {first.get('msg')}", field=field) from e
        options.check()
        return options

    @classmethod
    def from_settings(cls, settings: Settings, **values: Any) -> "SyncOptions":
        """Aplica los defaults SYNC_* de Settings; `values` tiene prioridad."""
        defaults: Dict[str, Any] = {
            "page_size": settings.SYNC_PAGE_SIZE,
            "batch_size": settings.SYNC_BATCH_SIZE,
            "batch_delay_ms": settings.SYNC_BATCH_DELAY_MS,
            "respect_rate_limit": settings.SYNC_RESPECT_RATE_LIMIT,
            "rate_limit_delay_s": settings.SYNC_RATE_LIMIT_DELAY_S,
            "continue_on_error": settings.SYNC_CONTINUE_ON_ERROR,
        }
        defaults.update({k: v for k, v in values.items() if v is not None})
        return cls.create(**defaults)

    def check(self) -> None:
        """Reglas entre campos que no se expresan con Field."""
        if self.bidirectional and self.since is None:
            raise SyncConfigError("'since' es obligatorio para el sync bidireccional", field="since")
