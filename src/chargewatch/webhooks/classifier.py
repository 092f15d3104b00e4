"""Webhook topic and shop-domain gating."""

from dataclasses import dataclass
from typing import Mapping

from chargewatch.observability.logging import get_logger
from chargewatch.observability.redaction import safe_log_context

TOPIC_HEADER = "X-Shopify-Topic"
SHOP_DOMAIN_HEADER = "X-Shopify-Shop-Domain"

SUPPORTED_TOPICS = frozenset(
    {
        "disputes/create",
        "disputes/update",
        "chargebacks/create",
        "chargebacks/update",
    }
)

logger = get_logger(__name__)


def is_supported_topic(topic: str | None) -> bool:
    """Return True iff topic is one of the dispute/chargeback topics."""
    if not topic:
        logger.warning("topic header missing")
        return False

    if topic in SUPPORTED_TOPICS:
        logger.info(
            "supported webhook topic",
            extra={"extra_fields": safe_log_context(topic=topic)},
        )
        return True

    logger.warning(
        "unsupported webhook topic",
        extra={
            "extra_fields": safe_log_context(
                topic=topic,
                supported=", ".join(sorted(SUPPORTED_TOPICS)),
            )
        },
    )
    return False


def is_expected_domain(expected_domain: str | None, received_domain: str | None) -> bool:
    """Check the sending shop domain.

    Args:
        expected_domain: Configured shop domain. None accepts any sender.
        received_domain: X-Shopify-Shop-Domain header value.

    Returns:
        True if no domain is configured or the header matches exactly.
    """
    if not expected_domain:
        logger.warning("expected shop domain not configured - accepting any")
        return True

    if not received_domain:
        logger.warning("shop domain header missing")
        return False

    if received_domain == expected_domain:
        return True

    logger.warning(
        "shop domain mismatch",
        extra={
            "extra_fields": safe_log_context(
                received=received_domain,
                expected=expected_domain,
            )
        },
    )
    return False


@dataclass(frozen=True)
class WebhookInfo:
    """Informational delivery headers, logged but never trusted."""

    shop_domain: str
    topic: str
    api_version: str
    webhook_id: str
    event_id: str
    triggered_at: str

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "WebhookInfo":
        return cls(
            shop_domain=headers.get(SHOP_DOMAIN_HEADER) or "",
            topic=headers.get(TOPIC_HEADER) or "",
            api_version=headers.get("X-Shopify-API-Version") or "",
            webhook_id=headers.get("X-Shopify-Webhook-Id") or "",
            event_id=headers.get("X-Shopify-Event-Id") or "",
            triggered_at=headers.get("X-Shopify-Triggered-At") or "",
        )
