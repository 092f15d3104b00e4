"""Chargeback processing pipeline.

One pipeline instance handles one dispute event:

1. Fetch the order (missing order -> 404, error row, no chat message)
2. Resolve customer identity with placeholders
3. Run the tag ladder and push new tags to the commerce platform
4. Persist the processed-webhook row (best effort)
5. Notify chat
6. Any unexpected exception -> error row + failure notification + 500

Persistence always happens before the notification for the same event.
"""

from __future__ import annotations

import traceback
from datetime import datetime, timezone

from chargewatch.observability.logging import get_logger
from chargewatch.observability.redaction import safe_log_context

from .environment import PRODUCTION
from .models import (
    CUSTOMER_EMAIL_PLACEHOLDER,
    CUSTOMER_NAME_PLACEHOLDER,
    DisputeEvent,
    ErrorRecord,
    Outcome,
    OutcomeKind,
    ProcessedWebhookRecord,
)
from .ports import CommerceGateway, NotificationSink, RecordStore
from .tags import apply_tag_ladder

logger = get_logger(__name__)

FAILURE_ACTION = "Failed to process chargeback"


def persist_error(store: RecordStore, record: ErrorRecord) -> bool:
    """Write an error row if the store is reachable. Never raises.

    Returns:
        True if the row was written.
    """
    try:
        if not store.test_connection():
            logger.warning(
                "record store unavailable - error not persisted",
                extra={"extra_fields": safe_log_context(error_type=record.error_type)},
            )
            return False
        written = store.insert_error_record(record)
    except Exception:
        logger.exception(
            "failed to persist error record",
            extra={"extra_fields": safe_log_context(error_type=record.error_type)},
        )
        return False

    if written:
        logger.info(
            "error record persisted",
            extra={"extra_fields": safe_log_context(error_type=record.error_type)},
        )
    return written


class ChargebackPipeline:
    """Processes a single chargeback event end to end."""

    FUNCTION_NAME = "ChargebackPipeline.process"

    def __init__(
        self,
        gateway: CommerceGateway,
        store: RecordStore,
        notifier: NotificationSink,
        environment: str = PRODUCTION,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._notifier = notifier
        self._environment = environment
        self._store_available: bool | None = None

    def _store_ready(self) -> bool:
        """Check store connectivity once per pipeline instance."""
        if self._store_available is None:
            try:
                self._store_available = bool(self._store.test_connection())
            except Exception:
                logger.exception("record store connectivity check failed")
                self._store_available = False
            if not self._store_available:
                logger.warning("record store unavailable - continuing without persistence")
        return self._store_available

    def _write_error(self, record: ErrorRecord) -> None:
        if not self._store_ready():
            return
        try:
            if not self._store.insert_error_record(record):
                logger.warning("error record not persisted")
        except Exception:
            logger.exception("failed to persist error record")

    def _write_processed(self, record: ProcessedWebhookRecord) -> None:
        if not self._store_ready():
            logger.info(
                "processed webhook (not persisted)",
                extra={
                    "extra_fields": safe_log_context(
                        customer_name=record.customer_name,
                        customer_email=record.customer_email,
                        order_id=record.order_id,
                        action=record.action,
                        tags_before=record.customer_tags_before,
                        tags_after=record.customer_tags_after,
                    )
                },
            )
            return
        try:
            if self._store.insert_processed_record(record):
                logger.info("processed webhook persisted")
            else:
                logger.warning("processed webhook not persisted")
        except Exception:
            logger.exception("failed to persist processed webhook")

    def process(self, event: DisputeEvent) -> Outcome:
        """Run the pipeline for one chargeback event.

        Args:
            event: A dispute already gated to type == "chargeback".

        Returns:
            Outcome with SUCCESS (200), NOT_FOUND (404) or FAILURE (500).
        """
        try:
            return self._process(event)
        except Exception as e:
            return self._fail(event, e)

    def _notify(self, event: DisputeEvent, action: str, *details: str) -> None:
        # Runs after persistence; a notifier error must never reach the failure branch
        try:
            self._notifier.post_event(event, action, *details)
        except Exception:
            logger.exception(
                "notification raised",
                extra={"extra_fields": safe_log_context(dispute_id=event.id)},
            )

    def _process(self, event: DisputeEvent) -> Outcome:
        logger.debug(
            "processing chargeback",
            extra={
                "extra_fields": safe_log_context(
                    dispute_id=event.id,
                    order_id=event.order_id,
                    amount=event.amount,
                    currency=event.currency,
                    reason=event.reason,
                    status=event.status,
                )
            },
        )

        self._store_ready()

        order = self._gateway.get_order(event.order_id)
        if order is None:
            message = f"Order {event.order_id} not found"
            logger.warning(
                "order not found",
                extra={"extra_fields": safe_log_context(order_id=event.order_id)},
            )
            self._write_error(
                ErrorRecord(
                    http_code=404,
                    error_message=message,
                    error_type="OrderNotFound",
                    function_name=self.FUNCTION_NAME,
                    environment=self._environment,
                    order_id=event.order_id,
                    dispute_id=event.id,
                    customer_email=CUSTOMER_EMAIL_PLACEHOLDER,
                )
            )
            # Missing orders are recorded but never escalated to chat
            return Outcome(OutcomeKind.NOT_FOUND, 404, message)

        customer = order.customer
        customer_name = customer.display_name if customer else CUSTOMER_NAME_PLACEHOLDER
        customer_email = (customer.email if customer else None) or CUSTOMER_EMAIL_PLACEHOLDER
        customer_tags = (customer.tags if customer else None) or ""
        order_name = order.name or f"#{event.order_id}"

        logger.debug(
            "customer resolved",
            extra={
                "extra_fields": safe_log_context(
                    customer_name=customer_name,
                    customer_email=customer_email,
                    tags=customer_tags,
                    order_name=order_name,
                )
            },
        )

        decision = apply_tag_ladder(customer_tags)

        final_tags = customer_tags
        if decision.should_update:
            if customer is None:
                logger.warning("order has no customer - tags not updated")
            elif self._gateway.set_customer_tags(customer.id, decision.new_tags):
                final_tags = decision.new_tags
                logger.info(
                    "customer tags updated",
                    extra={"extra_fields": safe_log_context(tags=final_tags)},
                )
            else:
                logger.error(
                    "customer tag update failed",
                    extra={"extra_fields": safe_log_context(customer_id=customer.id)},
                )
        else:
            logger.info("no tag change needed")

        self._write_processed(
            ProcessedWebhookRecord(
                customer_name=customer_name,
                customer_email=customer_email,
                order_id=event.order_id,
                webhook_json=event.to_json(),
                action=decision.action,
                customer_tags_before=customer_tags,
                customer_tags_after=final_tags,
                dispute_id=event.id,
                dispute_amount=event.amount_decimal,
                dispute_currency=event.currency,
                dispute_reason=event.reason,
                dispute_status=event.status,
                processed_at=datetime.now(timezone.utc),
            )
        )

        self._notify(event, decision.action, customer_name, customer_email, order_name)

        logger.info(
            "chargeback processed",
            extra={"extra_fields": safe_log_context(dispute_id=event.id)},
        )
        return Outcome(OutcomeKind.SUCCESS, 200, "Chargeback processed successfully")

    def _recover_customer_email(self, event: DisputeEvent) -> str:
        try:
            order = self._gateway.get_order(event.order_id)
        except Exception:
            logger.warning("could not refetch order for error context")
            return CUSTOMER_EMAIL_PLACEHOLDER
        if order is not None and order.customer is not None and order.customer.email:
            return order.customer.email
        return CUSTOMER_EMAIL_PLACEHOLDER

    def _fail(self, event: DisputeEvent, error: Exception) -> Outcome:
        logger.exception(
            "chargeback processing failed",
            extra={
                "extra_fields": safe_log_context(
                    dispute_id=event.id,
                    error_type=type(error).__name__,
                )
            },
        )

        if self._store_ready():
            self._write_error(
                ErrorRecord(
                    http_code=500,
                    error_message=f"{type(error).__name__}: {error}",
                    error_type="ProcessingError",
                    function_name=self.FUNCTION_NAME,
                    environment=self._environment,
                    order_id=event.order_id,
                    dispute_id=event.id,
                    customer_email=self._recover_customer_email(event),
                    stack_trace=traceback.format_exc(),
                    request_data=event.to_json(),
                )
            )

        self._notify(event, FAILURE_ACTION)

        return Outcome(OutcomeKind.FAILURE, 500, "Internal server error")
