"""
Política de rate-limit compartida por lecturas y escrituras.

Estrategia:
- 429: espera Retry-After si se respeta el rate-limit y la API lo sugirió;
  si no, espera el delay configurado.
- Se reintenta la misma llamada exactamente una vez. Un segundo 429 (o
  cualquier fallo en el reintento) se retorna tal cual al caller.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from loguru import logger

from tablesync.domain.interfaces.table_api import ApiResponse

T = TypeVar("T")


@dataclass(frozen=True)
class RateLimitPolicy:
    respect_rate_limit: bool = False
    default_delay_s: float = 5.0

    def wait_seconds(self, resp: ApiResponse) -> float:
        if self.respect_rate_limit and resp.retry_after is not None:
            return max(0.0, float(resp.retry_after))
        return self.default_delay_s

    def call(self, fn: Callable[[], ApiResponse[T]], what: str) -> ApiResponse[T]:
        resp = fn()
        if not resp.rate_limited:
            return resp

        wait_s = self.wait_seconds(resp)
        logger.warning(f"Rate limited en {what}. Esperando {wait_s:g}s antes de reintentar...")
        time.sleep(wait_s)

        retry = fn()
        if retry.rate_limited:
            logger.error(f"Rate limited nuevamente en {what}; no se reintenta otra vez")
        return retry
