"""Correlation ID management for webhook tracing."""

import uuid
from contextvars import ContextVar, Token

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Shopify delivery id, reused as correlation id when no explicit one is sent
WEBHOOK_ID_HEADER = "X-Shopify-Webhook-Id"


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())


def resolve_correlation_id(headers) -> str:
    """Pick the correlation ID for an inbound request.

    Priority: X-Correlation-ID, then X-Shopify-Webhook-Id, then a new UUID.
    """
    return (
        headers.get(CORRELATION_ID_HEADER)
        or headers.get(WEBHOOK_ID_HEADER)
        or generate_correlation_id()
    )


def get_correlation_id() -> str:
    return correlation_id_var.get()


def set_correlation_id(cid: str) -> Token[str]:
    return correlation_id_var.set(cid)


def reset_correlation_id(token: Token[str]) -> None:
    correlation_id_var.reset(token)
