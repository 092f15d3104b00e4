"""Chargeback domain models.

DisputeEvent wraps the inbound webhook payload. OrderRecord/CustomerRecord
mirror the Shopify Admin REST shapes the pipeline reads. The record types
map one-to-one onto the processed_webhooks and error_records tables.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

CHARGEBACK_TYPE = "chargeback"

CUSTOMER_NAME_PLACEHOLDER = "Customer not identified"
CUSTOMER_EMAIL_PLACEHOLDER = "email@not.identified.com"


@dataclass(frozen=True)
class DisputeEvent:
    """A Shopify dispute as received. Never mutated after parsing."""

    id: int | None = None
    order_id: int | None = None
    amount: str | None = None
    currency: str | None = None
    reason: str | None = None
    status: str | None = None
    type: str | None = None
    created_at: str | None = None
    network_reason_code: str | None = None
    evidence_due_by: str | None = None
    finalized_on: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> DisputeEvent:
        """Build an event from a parsed webhook body. Unknown keys are kept in raw."""
        amount = payload.get("amount")
        return cls(
            id=payload.get("id"),
            order_id=payload.get("order_id"),
            amount=str(amount) if amount is not None else None,
            currency=payload.get("currency"),
            reason=payload.get("reason"),
            status=payload.get("status"),
            type=payload.get("type"),
            created_at=payload.get("created_at"),
            network_reason_code=payload.get("network_reason_code"),
            evidence_due_by=payload.get("evidence_due_by"),
            finalized_on=payload.get("finalized_on"),
            raw=dict(payload),
        )

    @classmethod
    def empty(cls) -> DisputeEvent:
        """Placeholder used for notifications sent before a payload exists."""
        return cls()

    @property
    def is_chargeback(self) -> bool:
        return self.type == CHARGEBACK_TYPE

    @property
    def amount_decimal(self) -> Decimal | None:
        if self.amount is None:
            return None
        try:
            value = Decimal(self.amount)
        except InvalidOperation:
            return None
        return value if value.is_finite() else None

    def to_json(self) -> str:
        return json.dumps(self.raw, default=str)


@dataclass(frozen=True)
class CustomerRecord:
    id: int
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    tags: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CustomerRecord:
        return cls(
            id=data["id"],
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            email=data.get("email"),
            tags=data.get("tags"),
        )


@dataclass(frozen=True)
class OrderRecord:
    id: int
    name: str | None = None
    customer: CustomerRecord | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> OrderRecord:
        """Build from the "order" object of GET /orders/{id}.json."""
        customer_data = data.get("customer")
        return cls(
            id=data["id"],
            name=data.get("name"),
            customer=CustomerRecord.from_api(customer_data) if customer_data else None,
        )


@dataclass(frozen=True)
class TagDecision:
    """Result of the tag ladder for one customer tag string."""

    should_update: bool
    new_tags: str
    action: str


@dataclass(frozen=True)
class ProcessedWebhookRecord:
    customer_name: str
    customer_email: str
    order_id: int | None
    webhook_json: str
    action: str
    customer_tags_before: str
    customer_tags_after: str
    dispute_id: int | None
    dispute_amount: Decimal | None
    dispute_currency: str | None
    dispute_reason: str | None
    dispute_status: str | None
    processed_at: datetime


@dataclass(frozen=True)
class ErrorRecord:
    http_code: int
    error_message: str
    error_type: str
    function_name: str
    environment: str
    order_id: int | None = None
    dispute_id: int | None = None
    customer_email: str | None = None
    stack_trace: str | None = None
    request_data: str | None = None


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    FAILURE = "failure"


@dataclass(frozen=True)
class Outcome:
    """Terminal result of processing one chargeback.

    NOT_FOUND is its own kind so the notification suppression for missing
    orders never depends on comparing status codes.
    """

    kind: OutcomeKind
    status_code: int
    message: str

    @property
    def success(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS
