"""Tests for PostgresRecordStore and status metrics (mocked pool)."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import psycopg2

from chargewatch.domain.models import ErrorRecord, ProcessedWebhookRecord
from chargewatch.infra.repositories.metrics_repository import (
    METRIC_QUERIES,
    collect_metrics,
    empty_metrics,
)
from chargewatch.infra.repositories.webhook_records_repository import PostgresRecordStore

from helpers import FakeStore


def _mock_pool(cursor=None, error: Exception | None = None):
    """Pool whose connection() yields a conn with the given cursor."""
    cursor = cursor or MagicMock()
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor

    pool = MagicMock()

    @contextmanager
    def connection():
        if error is not None:
            raise error
        yield conn

    pool.connection = connection
    return pool, conn, cursor


def _processed():
    return ProcessedWebhookRecord(
        customer_name="Jane Doe",
        customer_email="jane@example.com",
        order_id=1001,
        webhook_json="{}",
        action="Added tag: chargeback_flag1",
        customer_tags_before="",
        customer_tags_after="chargeback_flag1",
        dispute_id=5,
        dispute_amount=Decimal("11.50"),
        dispute_currency="USD",
        dispute_reason="fraudulent",
        dispute_status="needs_response",
        processed_at=datetime(2026, 10, 17, tzinfo=timezone.utc),
    )


def _error():
    return ErrorRecord(
        http_code=404,
        error_message="Order 1001 not found",
        error_type="OrderNotFound",
        function_name="ChargebackPipeline.process",
        environment="production",
        order_id=1001,
    )


class TestConnection:
    def test_no_pool(self):
        assert PostgresRecordStore(None).test_connection() is False

    def test_select_one(self):
        pool, conn, cursor = _mock_pool()
        assert PostgresRecordStore(pool).test_connection() is True
        cursor.execute.assert_called_once_with("SELECT 1")
        conn.commit.assert_called_once()

    def test_database_error(self):
        pool, _, _ = _mock_pool(error=psycopg2.OperationalError("could not connect"))
        assert PostgresRecordStore(pool).test_connection() is False


class TestInserts:
    def test_insert_processed(self):
        pool, conn, cursor = _mock_pool()
        assert PostgresRecordStore(pool).insert_processed_record(_processed()) is True
        sql, params = cursor.execute.call_args[0]
        assert "INSERT INTO processed_webhooks" in sql
        assert params[0] == "Jane Doe"
        assert params[6] == "chargeback_flag1"
        assert params[8] == Decimal("11.50")
        conn.commit.assert_called_once()

    def test_insert_error(self):
        pool, _, cursor = _mock_pool()
        assert PostgresRecordStore(pool).insert_error_record(_error()) is True
        sql, params = cursor.execute.call_args[0]
        assert "INSERT INTO error_records" in sql
        assert params[0] == 404
        assert params[2] == "OrderNotFound"
        assert params[-1] == "production"

    def test_insert_failure_returns_false(self):
        cursor = MagicMock()
        cursor.execute.side_effect = psycopg2.IntegrityError("bad row")
        pool, conn, _ = _mock_pool(cursor=cursor)

        assert PostgresRecordStore(pool).insert_error_record(_error()) is False
        conn.rollback.assert_called_once()

    def test_insert_without_pool(self):
        store = PostgresRecordStore(None)
        assert store.insert_processed_record(_processed()) is False
        assert store.insert_error_record(_error()) is False


class TestQueries:
    def test_query_returns_dicts(self):
        cursor = MagicMock()
        cursor.description = [("id",), ("order_id",)]
        cursor.fetchall.return_value = [(1, 1001), (2, 1001)]
        pool, _, _ = _mock_pool(cursor=cursor)

        rows = PostgresRecordStore(pool).get_records_by_order_id(1001)

        assert rows == [{"id": 1, "order_id": 1001}, {"id": 2, "order_id": 1001}]
        assert cursor.execute.call_args[0][1] == (1001,)

    def test_error_records_by_period(self):
        cursor = MagicMock()
        cursor.description = [("error_type",)]
        cursor.fetchall.return_value = [("OrderNotFound",)]
        pool, _, _ = _mock_pool(cursor=cursor)

        rows = PostgresRecordStore(pool).get_error_records_by_period(days=3)

        assert rows == [{"error_type": "OrderNotFound"}]
        assert cursor.execute.call_args[0][1] == (3,)

    def test_lookups_return_empty_on_failure(self):
        pool, _, _ = _mock_pool(error=psycopg2.OperationalError("gone"))
        store = PostgresRecordStore(pool)
        assert store.get_records_by_order_id(1) == []
        assert store.get_error_records_by_period() == []

    def test_close(self):
        pool = MagicMock()
        PostgresRecordStore(pool).close()
        pool.close.assert_called_once()


class TestMetrics:
    def test_collect(self):
        metrics = collect_metrics(FakeStore(rows=[{"total": 3}]))
        assert metrics == {name: 3 for name in METRIC_QUERIES}

    def test_empty_rows_count_as_zero(self):
        assert collect_metrics(FakeStore(rows=[])) == empty_metrics()

    def test_failure_yields_zeros(self):
        store = FakeStore(query_error=psycopg2.ProgrammingError("no table"))
        assert collect_metrics(store) == empty_metrics()
