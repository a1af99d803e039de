"""
Configuración de fixtures para pytest.

Incluye una implementación en memoria de TableApi para testear el motor de
sync sin red.
"""
from __future__ import annotations

from collections import defaultdict, deque
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pytest

from tablesync.domain.entities.change_event import ChangeEvent
from tablesync.domain.entities.record import Record, RecordPage, TableField
from tablesync.domain.interfaces.table_api import ApiResponse


class FakeTableApi:
    """
    TableApi en memoria.

    - Paginación por cursor (el cursor es el offset como string).
    - Entiende el filtro de igualdad por key field; otros filtros se ignoran.
    - `script(method, *responses)` fuerza las próximas respuestas de un método
      (p.ej. rate-limits o fallos) antes de volver al comportamiento normal.
    - `calls` registra cada llamada como (método, table_id, argumento).
    """

    def __init__(self, supports_bulk_delete: bool = True) -> None:
        self.supports_bulk_delete = supports_bulk_delete
        self.tables: Dict[str, Dict[str, Record]] = defaultdict(dict)
        self.fields: Dict[str, List[TableField]] = {}
        self.changes: Dict[str, List[ChangeEvent]] = defaultdict(list)
        self.calls: List[tuple] = []
        self.create_limit: Optional[int] = None
        self._scripted: Dict[str, deque] = defaultdict(deque)
        self._next_id = 0

    # Helpers de test -----------------------------------------------------

    def seed(self, table_id: str, *records: Dict[str, Any]) -> List[Record]:
        """Inserta registros; acepta un 'id' opcional dentro del dict."""
        created = []
        for raw in records:
            raw = dict(raw)
            record_id = raw.pop("id", None) or self._new_id()
            record = Record(id=record_id, fields=raw)
            self.tables[table_id][record_id] = record
            created.append(record)
        return created

    def script(self, method: str, *responses: ApiResponse) -> None:
        self._scripted[method].extend(responses)

    def rows(self, table_id: str) -> List[Dict[str, Any]]:
        return [dict(r.fields) for r in self.tables[table_id].values()]

    def calls_to(self, method: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == method]

    def _new_id(self) -> str:
        self._next_id += 1
        return f"rec{self._next_id}"

    def _scripted_response(self, method: str) -> Optional[ApiResponse]:
        queue = self._scripted.get(method)
        if queue:
            return queue.popleft()
        return None

    # TableApi -------------------------------------------------------------

    def fetch_fields(self, table_id: str) -> ApiResponse[List[TableField]]:
        self.calls.append(("fetch_fields", table_id, None))
        scripted = self._scripted_response("fetch_fields")
        if scripted is not None:
            return scripted
        return ApiResponse.success(list(self.fields.get(table_id, [])))

    def fetch_records(
        self,
        table_id: str,
        *,
        filter: Optional[Any] = None,
        page_size: int = 100,
        cursor: Optional[str] = None,
    ) -> ApiResponse[RecordPage]:
        self.calls.append(("fetch_records", table_id, filter))
        scripted = self._scripted_response("fetch_records")
        if scripted is not None:
            return scripted

        records = list(self.tables[table_id].values())
        if isinstance(filter, dict) and filter.get("conditions"):
            cond = filter["conditions"][0]
            records = [
                r for r in records
                if cond["fieldId"] in r.fields and str(r.fields[cond["fieldId"]]) == str(cond["value"])
            ]

        start = int(cursor or 0)
        page = records[start:start + page_size]
        next_cursor = str(start + page_size) if start + page_size < len(records) else None
        return ApiResponse.success(RecordPage(records=page, next_cursor=next_cursor))

    def fetch_changes(self, table_id: str, since: datetime) -> ApiResponse[List[ChangeEvent]]:
        self.calls.append(("fetch_changes", table_id, since))
        scripted = self._scripted_response("fetch_changes")
        if scripted is not None:
            return scripted
        events = [e for e in self.changes[table_id] if e.timestamp is None or e.timestamp >= since]
        return ApiResponse.success(events)

    def create_records(
        self, table_id: str, records: Sequence[Mapping[str, Any]]
    ) -> ApiResponse[List[Record]]:
        self.calls.append(("create_records", table_id, [dict(r) for r in records]))
        scripted = self._scripted_response("create_records")
        if scripted is not None:
            return scripted

        to_create = list(records)
        if self.create_limit is not None:
            to_create = to_create[:self.create_limit]
        created = []
        for fields in to_create:
            record = Record(id=self._new_id(), fields=dict(fields))
            self.tables[table_id][record.id] = record
            created.append(record)
        return ApiResponse.success(created, status_code=201)

    def update_record(
        self, table_id: str, record_id: str, fields: Mapping[str, Any]
    ) -> ApiResponse[Any]:
        self.calls.append(("update_record", table_id, (record_id, dict(fields))))
        scripted = self._scripted_response("update_record")
        if scripted is not None:
            return scripted

        current = self.tables[table_id].get(record_id)
        if current is None:
            return ApiResponse.failure("HTTP 404 - Record not found", status_code=404)
        merged = dict(current.fields)
        merged.update(fields)
        self.tables[table_id][record_id] = Record(id=record_id, fields=merged)
        return ApiResponse.success()

    def delete_records(self, table_id: str, record_ids: Sequence[str]) -> ApiResponse[Any]:
        self.calls.append(("delete_records", table_id, list(record_ids)))
        scripted = self._scripted_response("delete_records")
        if scripted is not None:
            return scripted
        for record_id in record_ids:
            self.tables[table_id].pop(record_id, None)
        return ApiResponse.success()

    def delete_record(self, table_id: str, record_id: str) -> ApiResponse[Any]:
        self.calls.append(("delete_record", table_id, record_id))
        scripted = self._scripted_response("delete_record")
        if scripted is not None:
            return scripted
        if self.tables[table_id].pop(record_id, None) is None:
            return ApiResponse.failure("HTTP 404 - Record not found", status_code=404)
        return ApiResponse.success()


@pytest.fixture
def api() -> FakeTableApi:
    """TableApi en memoria, limpia para cada test."""
    return FakeTableApi()


@pytest.fixture
def no_sleep(monkeypatch):
    """Reemplaza time.sleep y registra las esperas solicitadas."""
    sleeps: List[float] = []
    monkeypatch.setattr("time.sleep", lambda s: sleeps.append(s))
    return sleeps


@pytest.fixture
def single_delete_api() -> FakeTableApi:
    """TableApi en memoria sin borrado masivo."""
    return FakeTableApi(supports_bulk_delete=False)
