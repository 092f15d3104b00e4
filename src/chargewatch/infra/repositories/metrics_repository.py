"""Aggregate counts for the status surface. Read-only."""

from __future__ import annotations

from typing import Any

from chargewatch.domain.ports import RecordStore
from chargewatch.observability.logging import get_logger

logger = get_logger(__name__)

METRIC_QUERIES: dict[str, str] = {
    "total_chargebacks": """
        SELECT COUNT(*) AS total FROM processed_webhooks
        WHERE dispute_id IS NOT NULL
    """,
    "chargebacks_today": """
        SELECT COUNT(*) AS total FROM processed_webhooks
        WHERE dispute_id IS NOT NULL
          AND created_at::date = CURRENT_DATE
    """,
    "chargebacks_this_month": """
        SELECT COUNT(*) AS total FROM processed_webhooks
        WHERE dispute_id IS NOT NULL
          AND date_trunc('month', created_at) = date_trunc('month', now())
    """,
    "errors_today": """
        SELECT COUNT(*) AS total FROM error_records
        WHERE created_at::date = CURRENT_DATE
    """,
    "errors_this_month": """
        SELECT COUNT(*) AS total FROM error_records
        WHERE date_trunc('month', created_at) = date_trunc('month', now())
    """,
}


def empty_metrics() -> dict[str, int]:
    return {name: 0 for name in METRIC_QUERIES}


def _first_total(rows: list[dict[str, Any]]) -> int:
    if not rows:
        return 0
    return int(rows[0].get("total") or 0)


def collect_metrics(store: RecordStore) -> dict[str, int]:
    """Run every metric query. Any failure yields all zeros."""
    try:
        return {name: _first_total(store.query(sql)) for name, sql in METRIC_QUERIES.items()}
    except Exception:
        logger.exception("failed to collect metrics")
        return empty_metrics()
