"""Shared pytest fixtures for chargewatch tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from chargewatch.api.factory import create_app  # noqa: E402
from chargewatch.api.services import ChargebackServices  # noqa: E402
from chargewatch.config import Settings  # noqa: E402

from helpers import (  # noqa: E402
    TEST_SECRET,
    TEST_SHOP,
    FakeGateway,
    FakeNotifier,
    FakeStore,
    make_order,
)


@pytest.fixture
def settings():
    return Settings(
        webhook_secret=TEST_SECRET,
        shop_domain=TEST_SHOP,
        shopify_access_token="shpat_test_token",
        slack_bot_token="xoxb-test",
        slack_channel_id="C0TEST",
    )


@pytest.fixture
def gateway():
    return FakeGateway(order=make_order())


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def notifier(store):
    # Shares the store's event log so ordering between writes and posts is visible
    return FakeNotifier(events=store.events)


@pytest.fixture
def services(gateway, store, notifier):
    return ChargebackServices(gateway=gateway, store=store, notifier=notifier)


@pytest.fixture
def client(settings, services):
    app = create_app(settings=settings, services=services)
    return TestClient(app)
