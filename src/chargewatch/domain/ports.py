"""Collaborator protocols used by the chargeback pipeline."""

from typing import Any, Protocol, Sequence

from .models import DisputeEvent, ErrorRecord, OrderRecord, ProcessedWebhookRecord


class CommerceGateway(Protocol):
    """Order lookup and customer tag mutation on the commerce platform."""

    def get_order(self, order_id: int) -> OrderRecord | None:
        """Return the order, or None when it does not exist. Raises on transport failure."""
        ...

    def set_customer_tags(self, customer_id: int, tags: str) -> bool:
        """Replace the customer's tag string. Returns False on failure."""
        ...


class RecordStore(Protocol):
    """Best-effort persistence for processed webhooks and errors."""

    def test_connection(self) -> bool: ...

    def insert_processed_record(self, record: ProcessedWebhookRecord) -> bool: ...

    def insert_error_record(self, record: ErrorRecord) -> bool: ...

    def query(self, sql: str, params: Sequence[Any] | None = None) -> list[dict[str, Any]]:
        """Run a read-only query. Unlike the inserts, this raises on failure."""
        ...


class NotificationSink(Protocol):
    """Chat notification channel. Never raises."""

    def post_event(
        self,
        event: DisputeEvent,
        action: str | None = None,
        customer_name: str | None = None,
        customer_email: str | None = None,
        order_name: str | None = None,
    ) -> bool: ...
