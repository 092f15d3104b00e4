"""Slack notifications via chat.postMessage (bot token).

Security: the bot token is sent only in the Authorization header, never
logged. Failures are logged and reported as False, never raised.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import requests

from chargewatch.domain.models import DisputeEvent
from chargewatch.observability.logging import get_logger
from chargewatch.observability.redaction import safe_log_context

logger = get_logger(__name__)

POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"

HTTP_TIMEOUT = 10

ATTACHMENT_COLOR = "#36a64f"

DEFAULT_CUSTOMER_NAME = "Customer Name"
DEFAULT_CUSTOMER_EMAIL = "customer@email.com"


class SlackAPIError(Exception):
    """Slack rejected the message or could not be reached."""


def _code_block(*lines: str) -> str:
    return "```\n" + "\n".join(lines) + "\n```"


def build_message(
    event: DisputeEvent,
    shop_domain: str | None,
    action: str | None = None,
    customer_name: str | None = None,
    customer_email: str | None = None,
    order_name: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Build the chat.postMessage text and attachments for a dispute.

    Returns:
        Dict with "text" and "attachments" keys (channel not included).
    """
    customer_name = customer_name or DEFAULT_CUSTOMER_NAME
    customer_email = customer_email or DEFAULT_CUSTOMER_EMAIL
    order_name = order_name or f"#{event.order_id}"
    amount = f"{event.amount} {event.currency}"

    text = (
        f":rotating_light: *New Chargeback Request | {customer_name} | {amount}*"
    )

    order_link = f"<https://{shop_domain}/admin/orders/{event.order_id}|*{order_name}*>"

    attachments: list[dict[str, Any]] = [
        {
            "color": ATTACHMENT_COLOR,
            "text": _code_block(
                f"Order: {order_link}",
                f"Customer: {customer_name}",
                f"Email: {customer_email}",
                f"Amount: {amount}",
            ),
        },
        {
            "color": ATTACHMENT_COLOR,
            "text": _code_block(
                f"Dispute ID: {event.id}",
                f"Type: {event.type}",
                f"Status: {event.status}",
            ),
        },
    ]

    if action:
        attachments.append(
            {"color": ATTACHMENT_COLOR, "text": _code_block(f"Action: {action}")}
        )

    stamp = now or datetime.now(timezone.utc)
    attachments[-1]["footer"] = stamp.strftime("%Y-%m-%d %H:%M:%S UTC")

    return {"text": text, "attachments": attachments}


class SlackNotifier:
    """Notification sink that posts dispute summaries to one Slack channel."""

    def __init__(
        self,
        bot_token: str | None,
        channel_id: str | None,
        shop_domain: str | None = None,
        session: requests.Session | None = None,
        timeout: float = HTTP_TIMEOUT,
    ) -> None:
        self._bot_token = bot_token
        self._channel_id = channel_id
        self._shop_domain = shop_domain
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def is_configured(self) -> bool:
        return bool(self._bot_token and self._channel_id)

    def _send(self, payload: dict[str, Any]) -> None:
        """POST to chat.postMessage.

        Raises:
            SlackAPIError: On transport failure or an ok=false response.
        """
        try:
            response = self._session.post(
                POST_MESSAGE_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self._bot_token}"},
                timeout=self._timeout,
            )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            raise SlackAPIError(f"chat.postMessage failed: {type(e).__name__}") from e

        if not isinstance(body, dict):
            raise SlackAPIError(f"chat.postMessage returned {type(body).__name__}, expected an object")
        if not body.get("ok"):
            raise SlackAPIError(f"chat.postMessage rejected: {body.get('error', 'unknown')}")

    def post_event(
        self,
        event: DisputeEvent,
        action: str | None = None,
        customer_name: str | None = None,
        customer_email: str | None = None,
        order_name: str | None = None,
    ) -> bool:
        """Post a dispute notification.

        Returns:
            True if Slack accepted the message, False otherwise.
        """
        if not self._channel_id:
            logger.warning("slack channel not configured - notification skipped")
            return False

        message = build_message(
            event,
            self._shop_domain,
            action=action,
            customer_name=customer_name,
            customer_email=customer_email,
            order_name=order_name,
        )
        payload = {"channel": self._channel_id, **message}

        try:
            self._send(payload)
        except SlackAPIError as e:
            logger.error(
                "slack notification failed",
                extra={"extra_fields": safe_log_context(dispute_id=event.id, error=str(e))},
            )
            return False

        logger.info(
            "slack notification sent",
            extra={"extra_fields": safe_log_context(dispute_id=event.id)},
        )
        return True

    def close(self) -> None:
        self._session.close()
