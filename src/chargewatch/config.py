"""Application settings loaded once from the environment.

Settings are read at startup and threaded into each component at
construction. Nothing downstream reads os.environ at call time.

Optional values degrade features instead of failing startup:
- no SHOPIFY_WEBHOOK_SECRET: every signed request is rejected
- no SHOPIFY_SHOP_DOMAIN: any shop domain is accepted
- no SLACK_CHANNEL_ID: notifications are skipped
- no DATABASE_URL: records are logged, not persisted
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

APP_VERSION = "1.0.0"

DEFAULT_SHOPIFY_API_VERSION = "2025-07"
DEFAULT_DB_POOL_MAX = 10

_TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(Exception):
    """Raised when an environment value cannot be parsed."""


@dataclass(frozen=True)
class Settings:
    """Runtime configuration.

    Attributes:
        webhook_secret: Shared secret used to sign inbound webhooks.
        shop_domain: Expected X-Shopify-Shop-Domain (also the Admin API host).
        shopify_access_token: Admin API access token.
        shopify_api_version: Admin API version segment.
        slack_bot_token: Bot token for chat.postMessage.
        slack_channel_id: Channel receiving notifications.
        database_url: psycopg2 DSN or URL.
        db_password: Password injected when the DSN carries none.
        db_pool_max: Maximum pooled database connections.
        log_level: Root level for the JSON logger.
        debug: Verbose diagnostics (payload details, computed digests).
    """

    webhook_secret: str | None = None
    shop_domain: str | None = None
    shopify_access_token: str | None = None
    shopify_api_version: str = DEFAULT_SHOPIFY_API_VERSION
    slack_bot_token: str | None = None
    slack_channel_id: str | None = None
    database_url: str | None = None
    db_password: str | None = None
    db_pool_max: int = DEFAULT_DB_POOL_MAX
    log_level: str = "INFO"
    debug: bool = False

    @property
    def shopify_configured(self) -> bool:
        return bool(self.shop_domain and self.shopify_access_token)

    @property
    def slack_configured(self) -> bool:
        return bool(self.slack_bot_token)

    @property
    def database_configured(self) -> bool:
        return bool(self.database_url)


def _optional(env: Mapping[str, str], key: str) -> str | None:
    value = env.get(key, "").strip()
    return value or None


def _parse_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from e
    if value < 1:
        raise ConfigError(f"{key} must be >= 1, got {value}")
    return value


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from environment variables.

    Args:
        env: Mapping to read from. Defaults to os.environ.

    Returns:
        Frozen Settings instance.

    Raises:
        ConfigError: If a numeric value is malformed.
    """
    if env is None:
        env = os.environ

    return Settings(
        webhook_secret=_optional(env, "SHOPIFY_WEBHOOK_SECRET"),
        shop_domain=_optional(env, "SHOPIFY_SHOP_DOMAIN"),
        shopify_access_token=_optional(env, "SHOPIFY_ACCESS_TOKEN"),
        shopify_api_version=_optional(env, "SHOPIFY_API_VERSION")
        or DEFAULT_SHOPIFY_API_VERSION,
        slack_bot_token=_optional(env, "SLACK_BOT_TOKEN"),
        slack_channel_id=_optional(env, "SLACK_CHANNEL_ID"),
        database_url=_optional(env, "DATABASE_URL"),
        db_password=_optional(env, "DB_PASSWORD"),
        db_pool_max=_parse_int(env, "DB_POOL_MAX", DEFAULT_DB_POOL_MAX),
        log_level=(_optional(env, "LOG_LEVEL") or "INFO").upper(),
        debug=env.get("APP_DEBUG", "").strip().lower() in _TRUTHY,
    )
