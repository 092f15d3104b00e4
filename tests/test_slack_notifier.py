"""Tests for Slack message building and posting (mocked session)."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import requests

from chargewatch.domain.models import DisputeEvent
from chargewatch.slack.notifier import POST_MESSAGE_URL, SlackNotifier, build_message

from helpers import make_dispute_payload

FIXED_NOW = datetime(2026, 10, 17, 12, 30, 0, tzinfo=timezone.utc)


def _event():
    return DisputeEvent.from_payload(make_dispute_payload(order_id=1001))


def _ok_response(body=None):
    response = MagicMock()
    response.json.return_value = body if body is not None else {"ok": True}
    return response


class TestBuildMessage:
    def test_title(self):
        message = build_message(_event(), "shop.myshopify.com", customer_name="Jane Doe", now=FIXED_NOW)
        assert message["text"] == ":rotating_light: *New Chargeback Request | Jane Doe | 11.50 USD*"

    def test_attachments_with_action(self):
        message = build_message(
            _event(),
            "shop.myshopify.com",
            action="Added tag: chargeback_flag1",
            customer_name="Jane Doe",
            customer_email="jane@example.com",
            order_name="#1001",
            now=FIXED_NOW,
        )
        attachments = message["attachments"]
        assert len(attachments) == 3
        assert "<https://shop.myshopify.com/admin/orders/1001|*#1001*>" in attachments[0]["text"]
        assert "jane@example.com" in attachments[0]["text"]
        assert "Dispute ID: 1052608616" in attachments[1]["text"]
        assert "Added tag: chargeback_flag1" in attachments[2]["text"]
        assert attachments[2]["footer"] == "2026-10-17 12:30:00 UTC"
        assert "footer" not in attachments[0]

    def test_defaults_without_action(self):
        message = build_message(_event(), "shop.myshopify.com", now=FIXED_NOW)
        attachments = message["attachments"]
        assert len(attachments) == 2
        assert "Customer Name" in message["text"]
        assert "customer@email.com" in attachments[0]["text"]
        assert "*#1001*" in attachments[0]["text"]
        assert attachments[1]["footer"] == "2026-10-17 12:30:00 UTC"

    def test_empty_event(self):
        message = build_message(DisputeEvent.empty(), None, action="Invalid webhook signature")
        assert "None None" in message["text"]


class TestSlackNotifier:
    def test_post_event(self):
        session = MagicMock()
        session.post.return_value = _ok_response()
        notifier = SlackNotifier("xoxb-token", "C123", "shop.myshopify.com", session=session)

        assert notifier.post_event(_event(), "Added tag: chargeback_flag1") is True

        args, kwargs = session.post.call_args
        assert args == (POST_MESSAGE_URL,)
        assert kwargs["headers"] == {"Authorization": "Bearer xoxb-token"}
        assert kwargs["json"]["channel"] == "C123"
        assert kwargs["json"]["text"].startswith(":rotating_light:")

    def test_no_channel_skips_network(self):
        session = MagicMock()
        notifier = SlackNotifier("xoxb-token", None, session=session)
        assert notifier.is_configured is False
        assert notifier.post_event(_event()) is False
        session.post.assert_not_called()

    def test_slack_error_response(self):
        session = MagicMock()
        session.post.return_value = _ok_response({"ok": False, "error": "channel_not_found"})
        notifier = SlackNotifier("xoxb-token", "C123", session=session)
        assert notifier.post_event(_event()) is False

    def test_http_error(self):
        session = MagicMock()
        response = _ok_response()
        response.raise_for_status.side_effect = requests.HTTPError("500")
        session.post.return_value = response
        assert SlackNotifier("xoxb-token", "C123", session=session).post_event(_event()) is False

    def test_network_error(self):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("down")
        assert SlackNotifier("xoxb-token", "C123", session=session).post_event(_event()) is False

    def test_non_object_reply(self):
        session = MagicMock()
        session.post.return_value = _ok_response(["ok"])
        assert SlackNotifier("xoxb-token", "C123", session=session).post_event(_event()) is False
