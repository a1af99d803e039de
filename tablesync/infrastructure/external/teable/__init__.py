"""
Integracion HTTP con la REST API de Teable.
"""
from tablesync.infrastructure.external.teable.teable_client import (
    TeableClient,
    TeableCredentials,
    build_from_settings,
)

__all__ = ["TeableClient", "TeableCredentials", "build_from_settings"]
