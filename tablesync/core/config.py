"""
Configuracion central de tablesync.
Gestiona variables de entorno y valores por defecto del motor de sync.
"""
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """
    Clase de configuracion.
    Lee variables de entorno (y .env si existe) y proporciona valores por defecto.

    Los valores SYNC_* son los defaults de cada corrida; el caller puede
    sobreescribirlos por corrida via SyncOptions.
    """

    # API de tablas
    TEABLE_API_URL: str = Field(default="https://app.teable.io/api")
    TEABLE_API_TOKEN: str = Field(default="")
    HTTP_TIMEOUT_S: float = Field(default=30.0)

    # Paginacion y batches
    SYNC_PAGE_SIZE: int = Field(default=100)
    SYNC_BATCH_SIZE: int = Field(default=100)
    SYNC_BATCH_DELAY_MS: int = Field(default=0)

    # Rate limiting
    SYNC_RESPECT_RATE_LIMIT: bool = Field(default=False)
    SYNC_RATE_LIMIT_DELAY_S: float = Field(default=5.0)

    # Politica de errores
    SYNC_CONTINUE_ON_ERROR: bool = Field(default=True)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="")

    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


def get_settings() -> Settings:
    """Construye la configuracion leyendo el entorno actual."""
    return Settings()
