"""
Tests unitarios para BatchExecutor.

Cubren el tamaño de los batches, la pausa entre batches, la política de
rate-limit, los conteos de fallo y el modo dry-run.
"""
from __future__ import annotations

import pytest

from tablesync.application.services.batch_executor import BatchExecutor, BatchOutcome, iter_batches
from tablesync.application.services.rate_limit import RateLimitPolicy
from tablesync.application.services.reconciler import PendingUpdate
from tablesync.domain.interfaces.table_api import ApiResponse
from tablesync.shared.exceptions.sync import SyncAbortedError


def _rows(n: int) -> list:
    return [{"key": f"K{i}"} for i in range(n)]


class TestIterBatches:
    """Tests para el particionado en batches."""

    def test_splits_with_remainder(self) -> None:
        """Verifica que el último batch lleva el resto."""
        batches = list(iter_batches(list(range(7)), 3))

        assert batches == [[0, 1, 2], [3, 4, 5], [6]]

    def test_empty_input_yields_nothing(self) -> None:
        """Verifica que una entrada vacía no produce batches."""
        assert list(iter_batches([], 10)) == []


class TestCreateRecords:
    """Tests para creación por batches."""

    def test_issues_ceil_n_over_b_requests(self, api) -> None:
        """Verifica que N registros con batch B generan ceil(N/B) requests."""
        outcome = BatchExecutor(api, batch_size=100).create_records("tbl", _rows(250))

        sizes = [len(c[2]) for c in api.calls_to("create_records")]
        assert sizes == [100, 100, 50]
        assert outcome == BatchOutcome(success_count=250, failure_count=0)

    def test_sleeps_between_batches_not_after_last(self, api, no_sleep) -> None:
        """Verifica que la pausa se aplica entre batches y no después del último."""
        BatchExecutor(api, batch_size=2, batch_delay_ms=250).create_records("tbl", _rows(5))

        assert no_sleep == [0.25, 0.25]

    def test_rate_limited_batch_waits_hint_and_retries_once(self, api, no_sleep) -> None:
        """Verifica que un 429 con Retry-After de 2s espera 2s y reintenta una vez."""
        api.script("create_records", ApiResponse.rate_limit(retry_after=2))
        executor = BatchExecutor(
            api, batch_size=10, rate_limit=RateLimitPolicy(respect_rate_limit=True)
        )

        outcome = executor.create_records("tbl", _rows(3))

        assert no_sleep == [2.0]
        assert len(api.calls_to("create_records")) == 2
        assert outcome.success_count == 3 and outcome.failure_count == 0

    def test_rate_limit_hint_ignored_when_not_respected(self, api, no_sleep) -> None:
        """Verifica que sin respect_rate_limit se usa el delay por defecto."""
        api.script("create_records", ApiResponse.rate_limit(retry_after=2))
        executor = BatchExecutor(api, rate_limit=RateLimitPolicy(default_delay_s=7.0))

        executor.create_records("tbl", _rows(1))

        assert no_sleep == [7.0]

    def test_second_rate_limit_fails_whole_batch(self, api, no_sleep) -> None:
        """Verifica que un segundo 429 cuenta el batch completo como fallido."""
        api.script(
            "create_records",
            ApiResponse.rate_limit(retry_after=1),
            ApiResponse.rate_limit(retry_after=1),
        )

        outcome = BatchExecutor(api, batch_size=4).create_records("tbl", _rows(6))

        # Solo el primer batch se pierde; el segundo se crea normalmente
        assert outcome.failure_count == 4
        assert outcome.success_count == 2
        assert len(api.calls_to("create_records")) == 3

    def test_shortfall_counts_as_failures(self, api) -> None:
        """Verifica que si la API crea menos registros, la diferencia es fallo."""
        api.create_limit = 3

        outcome = BatchExecutor(api, batch_size=5).create_records("tbl", _rows(5))

        assert outcome.success_count == 3
        assert outcome.failure_count == 2
        assert outcome.error is not None

    def test_failed_batch_without_continue_aborts(self, api) -> None:
        """Verifica que con continue_on_error=False el primer fallo aborta."""
        api.script("create_records", ApiResponse.failure("HTTP 500 - boom", status_code=500))
        executor = BatchExecutor(api, batch_size=2, continue_on_error=False)

        with pytest.raises(SyncAbortedError):
            executor.create_records("tbl", _rows(4))

        assert len(api.calls_to("create_records")) == 1

    def test_dry_run_makes_no_calls(self, api) -> None:
        """Verifica que en dry-run se cuentan intenciones sin llamar a la API."""
        outcome = BatchExecutor(api, dry_run=True).create_records("tbl", _rows(3))

        assert outcome.success_count == 3
        assert api.calls == []


class TestUpdateRecords:
    """Tests para actualizaciones individuales."""

    def test_updates_one_record_per_call(self, api) -> None:
        """Verifica que cada update es un request de un registro."""
        api.seed("tbl", {"id": "t1", "key": "K1"}, {"id": "t2", "key": "K2"})
        updates = [PendingUpdate("t1", {"Name": "A"}), PendingUpdate("t2", {"Name": "B"})]

        outcome = BatchExecutor(api, batch_size=1).update_records("tbl", updates)

        assert outcome.success_count == 2
        assert api.tables["tbl"]["t2"].fields["Name"] == "B"

    def test_failure_is_per_record(self, api) -> None:
        """Verifica que un update fallido no afecta a los demás."""
        api.seed("tbl", {"id": "t1", "key": "K1"})
        updates = [PendingUpdate("missing", {"Name": "A"}), PendingUpdate("t1", {"Name": "B"})]

        outcome = BatchExecutor(api).update_records("tbl", updates)

        assert outcome.success_count == 1
        assert outcome.failure_count == 1
        assert "404" in outcome.error

    def test_dry_run_update_leaves_record_untouched(self, api) -> None:
        """Verifica que en dry-run el update se cuenta pero el registro no cambia."""
        api.seed("tbl", {"id": "t1", "key": "K1", "Name": "Bob"})

        outcome = BatchExecutor(api, dry_run=True).update_records("tbl", [PendingUpdate("t1", {"Name": "Alice"})])

        assert outcome.success_count == 1
        assert api.calls_to("update_record") == []
        assert api.tables["tbl"]["t1"].fields["Name"] == "Bob"


class TestDeleteRecords:
    """Tests para borrado masivo e individual."""

    def test_bulk_delete_one_request_per_batch(self, api) -> None:
        """Verifica que el borrado masivo envía un request por batch de ids."""
        api.seed("tbl", *[{"id": f"t{i}", "key": f"K{i}"} for i in range(5)])

        outcome = BatchExecutor(api, batch_size=2).delete_records("tbl", [f"t{i}" for i in range(5)])

        assert [len(c[2]) for c in api.calls_to("delete_records")] == [2, 2, 1]
        assert outcome.success_count == 5
        assert api.rows("tbl") == []

    def test_failed_bulk_batch_counts_whole_batch(self, api) -> None:
        """Verifica que un batch de borrado fallido cuenta todos sus ids como fallo."""
        api.script("delete_records", ApiResponse.failure("HTTP 500", status_code=500))

        outcome = BatchExecutor(api, batch_size=3).delete_records("tbl", ["a", "b", "c", "d"])

        assert outcome.failure_count == 3
        assert outcome.success_count == 1

    def test_falls_back_to_single_deletes(self, single_delete_api) -> None:
        """Verifica que sin borrado masivo se borra registro por registro."""
        api = single_delete_api
        api.seed("tbl", {"id": "t1"}, {"id": "t2"})

        outcome = BatchExecutor(api).delete_records("tbl", ["t1", "t2", "t3"])

        assert len(api.calls_to("delete_record")) == 3
        assert api.calls_to("delete_records") == []
        assert outcome == BatchOutcome(success_count=2, failure_count=1, error=outcome.error)


class TestRecordFailure:
    """Tests para fallos ajenos a una mutación."""

    def test_counts_failure_when_continuing(self, api) -> None:
        """Verifica que el fallo se cuenta cuando se continúa ante errores."""
        outcome = BatchExecutor(api).record_failure("lookup", "HTTP 500")

        assert outcome.failure_count == 1

    def test_aborts_when_not_continuing(self, api) -> None:
        """Verifica que el fallo aborta con continue_on_error=False."""
        with pytest.raises(SyncAbortedError):
            BatchExecutor(api, continue_on_error=False).record_failure("lookup", "HTTP 500")
