"""Record store for processed webhooks and error rows.

Uses raw SQL with psycopg2 (no ORM). Every insert is a single statement in
its own short transaction. Inserts report failure as False and never raise;
query() raises so the status surface can report a degraded database.
"""

from __future__ import annotations

from typing import Any, Sequence

import psycopg2

from chargewatch.domain.models import ErrorRecord, ProcessedWebhookRecord
from chargewatch.infra.db import ConnectionPool, txn
from chargewatch.observability.logging import get_logger
from chargewatch.observability.redaction import safe_log_context

logger = get_logger(__name__)

_INSERT_PROCESSED = """
    INSERT INTO processed_webhooks (
        customer_name, customer_email, order_id, webhook_json, action,
        customer_tags_before, customer_tags_after, dispute_id,
        dispute_amount, dispute_currency, dispute_reason, dispute_status,
        processed_at
    )
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
"""

_INSERT_ERROR = """
    INSERT INTO error_records (
        http_code, error_message, error_type, function_name,
        order_id, dispute_id, customer_email, stack_trace,
        request_data, environment
    )
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
"""


class PostgresRecordStore:
    """RecordStore backed by a pooled Postgres connection.

    A store built without a pool (DATABASE_URL unset) reports itself
    unavailable and drops every write.
    """

    def __init__(self, pool: ConnectionPool | None) -> None:
        self._pool = pool

    def test_connection(self) -> bool:
        if self._pool is None:
            return False
        try:
            with self._pool.connection() as conn, txn(conn) as cur:
                cur.execute("SELECT 1")
                cur.fetchone()
            return True
        except (psycopg2.Error, RuntimeError) as e:
            logger.error(
                "database connection check failed",
                extra={"extra_fields": safe_log_context(error_type=type(e).__name__)},
            )
            return False

    def _execute(self, sql: str, params: Sequence[Any]) -> None:
        if self._pool is None:
            raise RuntimeError("database not configured")
        with self._pool.connection() as conn, txn(conn) as cur:
            cur.execute(sql, params)

    def insert_processed_record(self, record: ProcessedWebhookRecord) -> bool:
        params = (
            record.customer_name,
            record.customer_email,
            record.order_id,
            record.webhook_json,
            record.action,
            record.customer_tags_before,
            record.customer_tags_after,
            record.dispute_id,
            record.dispute_amount,
            record.dispute_currency,
            record.dispute_reason,
            record.dispute_status,
            record.processed_at,
        )
        try:
            self._execute(_INSERT_PROCESSED, params)
        except (psycopg2.Error, RuntimeError) as e:
            logger.error(
                "failed to insert processed webhook",
                extra={
                    "extra_fields": safe_log_context(
                        dispute_id=record.dispute_id,
                        error_type=type(e).__name__,
                    )
                },
            )
            return False
        return True

    def insert_error_record(self, record: ErrorRecord) -> bool:
        params = (
            record.http_code,
            record.error_message,
            record.error_type,
            record.function_name,
            record.order_id,
            record.dispute_id,
            record.customer_email,
            record.stack_trace,
            record.request_data,
            record.environment,
        )
        try:
            self._execute(_INSERT_ERROR, params)
        except (psycopg2.Error, RuntimeError) as e:
            logger.error(
                "failed to insert error record",
                extra={
                    "extra_fields": safe_log_context(
                        error_type=record.error_type,
                        db_error=type(e).__name__,
                    )
                },
            )
            return False
        return True

    def query(self, sql: str, params: Sequence[Any] | None = None) -> list[dict[str, Any]]:
        """Run a read-only query and return rows as dicts.

        Raises:
            RuntimeError: If no database is configured.
            psycopg2.Error: On any database failure.
        """
        if self._pool is None:
            raise RuntimeError("database not configured")
        with self._pool.connection() as conn, txn(conn) as cur:
            cur.execute(sql, params or ())
            if cur.description is None:
                return []
            columns = [col[0] for col in cur.description]
            return [dict(zip(columns, row)) for row in cur.fetchall()]

    def get_records_by_order_id(self, order_id: int) -> list[dict[str, Any]]:
        """Processed webhooks for one order, newest first. [] on failure."""
        try:
            return self.query(
                """
                SELECT * FROM processed_webhooks
                WHERE order_id = %s
                ORDER BY created_at DESC
                """,
                (order_id,),
            )
        except (psycopg2.Error, RuntimeError):
            logger.exception("failed to load processed webhooks by order")
            return []

    def get_error_records_by_period(self, days: int = 7) -> list[dict[str, Any]]:
        """Error rows from the last `days` days, newest first. [] on failure."""
        try:
            return self.query(
                """
                SELECT * FROM error_records
                WHERE created_at >= now() - make_interval(days => %s)
                ORDER BY created_at DESC
                """,
                (days,),
            )
        except (psycopg2.Error, RuntimeError):
            logger.exception("failed to load error records by period")
            return []

    def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
