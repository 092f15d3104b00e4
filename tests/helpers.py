"""Shared test helpers for chargewatch tests.

Plain functions and in-memory fakes (NOT fixtures) that both conftest.py
and individual test modules import.
"""

from __future__ import annotations

import json
from typing import Any

from chargewatch.domain.models import CustomerRecord, OrderRecord
from chargewatch.webhooks.signature import compute_signature

TEST_SECRET = "test_webhook_secret_32_bytes_long!"
TEST_SHOP = "test-shop.myshopify.com"
TEST_ORDER_ID = 820982911946154508
TEST_CUSTOMER_ID = 115310627314723954


def make_dispute_payload(**overrides: Any) -> dict[str, Any]:
    """Build a Shopify dispute payload (chargeback by default)."""
    payload = {
        "id": 1052608616,
        "order_id": TEST_ORDER_ID,
        "type": "chargeback",
        "amount": "11.50",
        "currency": "USD",
        "reason": "fraudulent",
        "network_reason_code": "4837",
        "status": "needs_response",
        "evidence_due_by": "2026-11-01T00:00:00-04:00",
        "finalized_on": None,
        "created_at": "2026-10-17T12:00:00-04:00",
    }
    payload.update(overrides)
    return payload


def make_order(
    tags: str | None = "",
    email: str | None = "jane@example.com",
    with_customer: bool = True,
    name: str | None = "#1001",
) -> OrderRecord:
    customer = None
    if with_customer:
        customer = CustomerRecord(
            id=TEST_CUSTOMER_ID,
            first_name="Jane",
            last_name="Doe",
            email=email,
            tags=tags,
        )
    return OrderRecord(id=TEST_ORDER_ID, name=name, customer=customer)


def signed_headers(
    body: bytes,
    secret: str = TEST_SECRET,
    topic: str = "disputes/create",
    shop: str = TEST_SHOP,
) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "X-Shopify-Hmac-Sha256": compute_signature(secret, body),
        "X-Shopify-Topic": topic,
        "X-Shopify-Shop-Domain": shop,
        "X-Shopify-API-Version": "2025-07",
        "X-Shopify-Webhook-Id": "b54557e4-bdd9-4b37-8a5f-bf7d70bcd043",
    }


def encode(payload: Any) -> bytes:
    return json.dumps(payload).encode("utf-8")


class FakeGateway:
    """In-memory CommerceGateway."""

    def __init__(
        self,
        order: OrderRecord | None = None,
        tag_update_ok: bool = True,
        get_order_error: Exception | None = None,
        tag_update_error: Exception | None = None,
    ) -> None:
        self.order = order
        self.tag_update_ok = tag_update_ok
        self.get_order_error = get_order_error
        self.tag_update_error = tag_update_error
        self.get_order_calls: list[int] = []
        self.tag_updates: list[tuple[int, str]] = []

    def get_order(self, order_id):
        self.get_order_calls.append(order_id)
        if self.get_order_error is not None:
            raise self.get_order_error
        return self.order

    def set_customer_tags(self, customer_id, tags):
        if self.tag_update_error is not None:
            raise self.tag_update_error
        self.tag_updates.append((customer_id, tags))
        return self.tag_update_ok


class FakeStore:
    """In-memory RecordStore that remembers every write."""

    def __init__(
        self,
        connected: bool = True,
        connection_error: Exception | None = None,
        rows: list[dict[str, Any]] | None = None,
        query_error: Exception | None = None,
    ) -> None:
        self.connected = connected
        self.connection_error = connection_error
        self.rows = rows if rows is not None else [{"total": 0}]
        self.query_error = query_error
        self.connection_checks = 0
        self.processed: list = []
        self.errors: list = []
        self.events: list[str] = []

    def test_connection(self):
        self.connection_checks += 1
        if self.connection_error is not None:
            raise self.connection_error
        return self.connected

    def insert_processed_record(self, record):
        self.processed.append(record)
        self.events.append("processed")
        return True

    def insert_error_record(self, record):
        self.errors.append(record)
        self.events.append("error")
        return True

    def query(self, sql, params=None):
        if self.query_error is not None:
            raise self.query_error
        return list(self.rows)


class FakeNotifier:
    """NotificationSink that records posts (optionally into a shared event log)."""

    def __init__(self, events: list[str] | None = None) -> None:
        self.posts: list[dict[str, Any]] = []
        self.events = events

    def post_event(
        self,
        event,
        action=None,
        customer_name=None,
        customer_email=None,
        order_name=None,
    ):
        self.posts.append(
            {
                "event": event,
                "action": action,
                "customer_name": customer_name,
                "customer_email": customer_email,
                "order_name": order_name,
            }
        )
        if self.events is not None:
            self.events.append("notify")
        return True
