"""
Cliente mínimo de la REST API de Teable (sin SDKs externos).

Requisitos cubiertos:
- requests
- paginación por pageToken / nextPageToken
- rate-limit (429) reportado como ApiResponse con su Retry-After
- lectura de cambios incrementales con `since`

No reintenta: la política de reintentos vive en el motor de sync.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Sequence

import requests
from loguru import logger

from tablesync.core.config import Settings
from tablesync.domain.entities.change_event import ChangeEvent
from tablesync.domain.entities.record import Record, RecordPage, TableField
from tablesync.domain.interfaces.table_api import RATE_LIMIT_STATUS, ApiResponse
from tablesync.shared.exceptions.sync import SyncConfigError
from tablesync.shared.utils.datetime_utils import isoformat_z


@dataclass(frozen=True)
class TeableCredentials:
    token: str
    base_url: str = "https://app.teable.io/api"


def _serialize_filter(filter: Any) -> Optional[str]:
    """Los filtros estructurados viajan como JSON en el query param `filter`."""
    if filter is None or filter == "":
        return None
    if isinstance(filter, str):
        return filter
    return json.dumps(filter, separators=(",", ":"), default=str)


def _parse_retry_after(raw: Optional[str]) -> Optional[float]:
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _error_message(resp: requests.Response) -> str:
    """
    Arma un mensaje legible: `HTTP <code> - <detalle>`.

    El detalle sale del body JSON (`error`, `error.message` o `message`) o del
    texto crudo.
    """
    message = f"HTTP {resp.status_code}"
    text = resp.text or ""
    if not text:
        return message
    try:
        body = resp.json()
    except ValueError:
        return f"{message} - {text[:500]}"

    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, str):
            return f"{message} - {err}"
        if isinstance(err, dict) and err.get("message"):
            return f"{message} - {err['message']}"
        if body.get("message"):
            return f"{message} - {body['message']}"
    return f"{message} - {text[:500]}"


def _parse_changes(body: dict[str, Any]) -> list[ChangeEvent]:
    """Un evento de tipo desconocido se omite; el resto del feed sigue siendo válido."""
    events = []
    for raw in body.get("data") or []:
        try:
            events.append(ChangeEvent.from_api(raw))
        except ValueError:
            logger.warning(f"Evento de cambio {raw.get('id')!r} con tipo desconocido {raw.get('type')!r}; se omite")
    return events


class TeableClient:
    """
    Cliente HTTP de Teable. Implementa el protocolo TableApi.

    Importante:
    - No hace cast de tipos de campos: los valores viajan tal cual.
    - Un mismo `requests.Session` se reutiliza para toda la corrida.
    """

    supports_bulk_delete = True

    def __init__(
        self,
        credentials: TeableCredentials,
        *,
        session: Optional[requests.Session] = None,
        timeout_s: float = 30,
    ) -> None:
        self._creds = credentials
        self._base_url = credentials.base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {credentials.token}",
                "Content-Type": "application/json",
            }
        )

    # ------------------------------------------------------------------
    # Lecturas
    # ------------------------------------------------------------------

    def fetch_fields(self, table_id: str) -> ApiResponse[list[TableField]]:
        return self._request(
            "GET",
            f"tables/{table_id}/fields",
            parse=lambda body: [TableField.from_api(f) for f in (body.get("data") or [])],
        )

    def fetch_records(
        self,
        table_id: str,
        *,
        filter: Optional[Any] = None,
        page_size: int = 100,
        cursor: Optional[str] = None,
    ) -> ApiResponse[RecordPage]:
        params: dict[str, Any] = {"pageSize": page_size}
        serialized = _serialize_filter(filter)
        if serialized:
            params["filter"] = serialized
        if cursor:
            params["pageToken"] = cursor

        return self._request(
            "GET",
            f"tables/{table_id}/records",
            params=params,
            parse=lambda body: RecordPage(
                records=[Record.from_api(r) for r in (body.get("data") or [])],
                next_cursor=body.get("nextPageToken") or None,
            ),
        )

    def fetch_changes(self, table_id: str, since: datetime) -> ApiResponse[list[ChangeEvent]]:
        return self._request(
            "GET",
            f"tables/{table_id}/changes",
            params={"since": isoformat_z(since)},
            parse=_parse_changes,
        )

    # ------------------------------------------------------------------
    # Escrituras
    # ------------------------------------------------------------------

    def create_records(
        self, table_id: str, records: Sequence[Mapping[str, Any]]
    ) -> ApiResponse[list[Record]]:
        payload = {"records": [{"fields": dict(fields)} for fields in records]}
        return self._request(
            "POST",
            f"tables/{table_id}/records",
            json_body=payload,
            parse=lambda body: [Record.from_api(r) for r in (body.get("data") or [])],
        )

    def update_record(
        self, table_id: str, record_id: str, fields: Mapping[str, Any]
    ) -> ApiResponse[Any]:
        return self._request(
            "PATCH",
            f"tables/{table_id}/records/{record_id}",
            json_body={"fields": dict(fields)},
        )

    def delete_records(self, table_id: str, record_ids: Sequence[str]) -> ApiResponse[Any]:
        return self._request(
            "DELETE",
            f"tables/{table_id}/records",
            json_body={"recordIds": list(record_ids)},
        )

    def delete_record(self, table_id: str, record_id: str) -> ApiResponse[Any]:
        return self._request("DELETE", f"tables/{table_id}/records/{record_id}")

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        parse: Optional[Callable[[dict[str, Any]], Any]] = None,
    ) -> ApiResponse[Any]:
        """
        Request HTTP que nunca levanta: todo termina en un ApiResponse.

        - 2xx: ok, con el body parseado si se pasó `parse`
        - 429: rate_limited, con Retry-After si existe
        - resto / error de red: failure con mensaje legible
        """
        url = f"{self._base_url}/{path}"
        try:
            resp = self._session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                timeout=self._timeout_s,
            )
        except requests.RequestException as e:
            logger.warning(f"{method} {url} falló sin respuesta: {e}")
            return ApiResponse.failure(f"Error de red: {e}")

        if resp.status_code == RATE_LIMIT_STATUS:
            return ApiResponse.rate_limit(_parse_retry_after(resp.headers.get("Retry-After")))

        if not 200 <= resp.status_code < 300:
            return ApiResponse.failure(_error_message(resp), status_code=resp.status_code)

        if parse is None:
            return ApiResponse.success(status_code=resp.status_code)

        try:
            body = resp.json() if resp.content else {}
        except ValueError:
            return ApiResponse.failure(
                f"Respuesta no es JSON válido: {resp.text[:200]}", status_code=resp.status_code
            )
        if not isinstance(body, dict):
            body = {"data": body}
        try:
            data = parse(body)
        except (ValueError, TypeError, AttributeError) as e:
            return ApiResponse.failure(f"Respuesta con formato inesperado: {e}", status_code=resp.status_code)
        return ApiResponse.success(data, status_code=resp.status_code)


def build_from_settings(settings: Settings) -> TeableClient:
    """
    Constructor “oficial” del cliente leyendo la configuración.

    Requiere TEABLE_API_TOKEN.
    """
    if not settings.TEABLE_API_TOKEN:
        raise SyncConfigError("Falta variable de entorno obligatoria: TEABLE_API_TOKEN", field="TEABLE_API_TOKEN")
    return TeableClient(
        TeableCredentials(token=settings.TEABLE_API_TOKEN, base_url=settings.TEABLE_API_URL),
        timeout_s=settings.HTTP_TIMEOUT_S,
    )
