"""
Tests for storage instrumentation.
"""

from unittest.mock import MagicMock

import pytest
from prometheus_client import REGISTRY
from sqlalchemy.exc import OperationalError

from gateway_storage.domain.entities import EUI64
from gateway_storage.domain.exceptions import NotFoundError, StorageError
from gateway_storage.metrics import query_timer, render_metrics, timed

MISSING_ID = EUI64(bytes([1, 1, 1, 1, 1, 1, 1, 1]))


def _count(function: str, status: str) -> float:
    value = REGISTRY.get_sample_value(
        "gateway_storage_queries_total", {"function": function, "status": status}
    )
    return value or 0.0


def _observations(function: str) -> float:
    value = REGISTRY.get_sample_value(
        "gateway_storage_query_duration_seconds_count", {"function": function}
    )
    return value or 0.0


class TestQueryTimer:
    """Test the query timer wrapper."""

    def test_success(self):
        before = _count("test_success", "success")
        observed = _observations("test_success")

        assert query_timer("test_success", lambda: 42) == 42

        assert _count("test_success", "success") == before + 1
        assert _observations("test_success") == observed + 1

    def test_failure_reraises_same_exception(self):
        error = ValueError("boom")

        def fail():
            raise error

        before = _count("test_failure", "failure")
        with pytest.raises(ValueError) as exc_info:
            query_timer("test_failure", fail)

        assert exc_info.value is error
        assert _count("test_failure", "failure") == before + 1
        assert _count("test_failure", "success") == 0

    def test_timed_decorator(self):
        @timed("test_decorated")
        def add(a, b=0):
            """Add numbers."""
            return a + b

        before = _count("test_decorated", "success")

        assert add(1, b=2) == 3
        assert add.__name__ == "add"
        assert add.__doc__ == "Add numbers."
        assert _count("test_decorated", "success") == before + 1


class TestRepositoryInstrumentation:
    """Test every repository operation is timed."""

    def test_operations_record_success(self, repository, db_conn, gateway):
        names = [
            "create_gateway",
            "get_gateway",
            "get_gateways_for_ids",
            "update_gateway",
            "delete_gateway",
        ]
        before = {name: _count(name, "success") for name in names}

        repository.create(db_conn, gateway)
        repository.get(db_conn, gateway.gateway_id)
        repository.get_many(db_conn, [gateway.gateway_id])
        repository.update(db_conn, gateway)
        repository.delete(db_conn, gateway.gateway_id)

        for name in names:
            assert _count(name, "success") == before[name] + 1

    def test_not_found_records_failure(self, repository, db_conn):
        before = _count("get_gateway", "failure")

        with pytest.raises(NotFoundError):
            repository.get(db_conn, MISSING_ID)

        assert _count("get_gateway", "failure") == before + 1

    def test_storage_error_passes_through(self, repository):
        db = MagicMock()
        db.execute.side_effect = OperationalError("delete", {}, Exception("gone"))
        before = _count("delete_gateway", "failure")

        with pytest.raises(StorageError):
            repository.delete(db, MISSING_ID)

        assert _count("delete_gateway", "failure") == before + 1


class TestRenderMetrics:
    """Test the scrape payload."""

    def test_render(self):
        query_timer("test_render", lambda: None)

        payload, content_type = render_metrics()

        assert b"gateway_storage_queries_total" in payload
        assert b'function="test_render"' in payload
        assert content_type.startswith("text/plain")
