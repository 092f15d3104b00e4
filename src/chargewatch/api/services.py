"""Collaborator wiring for the webhook routes.

The app factory builds one ChargebackServices per process (pooled HTTP
sessions and database connections) and stores it on app.state; tests
replace it with fakes.
"""

from __future__ import annotations

from dataclasses import dataclass

from chargewatch.config import Settings
from chargewatch.domain.ports import CommerceGateway, NotificationSink, RecordStore
from chargewatch.infra.db import ConnectionPool
from chargewatch.infra.repositories.webhook_records_repository import PostgresRecordStore
from chargewatch.observability.logging import get_logger
from chargewatch.shopify.client import ShopifyClient
from chargewatch.slack.notifier import SlackNotifier

logger = get_logger(__name__)


@dataclass
class ChargebackServices:
    gateway: CommerceGateway
    store: RecordStore
    notifier: NotificationSink

    def close(self) -> None:
        for component in (self.gateway, self.store, self.notifier):
            close = getattr(component, "close", None)
            if close is not None:
                close()


def build_services(settings: Settings) -> ChargebackServices:
    """Build production collaborators from settings.

    Missing configuration degrades rather than fails: an unconfigured shop
    makes every order lookup come back empty, no DATABASE_URL disables
    persistence, no Slack channel disables notifications.
    """
    if not settings.shopify_configured:
        logger.warning("shopify not configured - order lookups will fail")
    if not settings.database_configured:
        logger.warning("DATABASE_URL not configured - persistence disabled")
    if not settings.slack_channel_id:
        logger.warning("SLACK_CHANNEL_ID not configured - notifications disabled")

    pool = None
    if settings.database_url:
        pool = ConnectionPool(
            settings.database_url,
            db_password=settings.db_password,
            maxconn=settings.db_pool_max,
        )

    return ChargebackServices(
        gateway=ShopifyClient(
            shop_domain=settings.shop_domain or "",
            access_token=settings.shopify_access_token or "",
            api_version=settings.shopify_api_version,
        ),
        store=PostgresRecordStore(pool),
        notifier=SlackNotifier(
            bot_token=settings.slack_bot_token,
            channel_id=settings.slack_channel_id,
            shop_domain=settings.shop_domain,
        ),
    )
