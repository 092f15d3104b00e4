"""Shopify Admin REST client for order lookup and customer tag updates.

Security: NEVER log the access token. Customer emails go through
safe_log_context like every other log field.
"""

from __future__ import annotations

from typing import Any

import requests

from chargewatch.domain.models import OrderRecord
from chargewatch.observability.logging import get_logger
from chargewatch.observability.redaction import safe_log_context

logger = get_logger(__name__)

# Timeout for HTTP requests (seconds)
HTTP_TIMEOUT = 10

ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"


class ShopifyAPIError(Exception):
    """Raised for Shopify transport failures and non-404 error responses."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class ShopifyClient:
    """Commerce gateway backed by the Shopify Admin REST API.

    get_order() returns None only for a missing order, a normal negative
    result. Transport failures and other error statuses raise
    ShopifyAPIError so callers treat them as processing failures.
    """

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        api_version: str,
        session: requests.Session | None = None,
        timeout: float = HTTP_TIMEOUT,
    ) -> None:
        self._shop_domain = shop_domain
        self._api_version = api_version
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                ACCESS_TOKEN_HEADER: access_token,
                "Content-Type": "application/json",
            }
        )

    @property
    def base_url(self) -> str:
        return f"https://{self._shop_domain}/admin/api/{self._api_version}"

    def _request(self, method: str, path: str, json: dict | None = None) -> dict[str, Any] | None:
        """Execute a request. Returns parsed JSON, or None on 404.

        Raises:
            ShopifyAPIError: On network errors or any other non-2xx status.
        """
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, json=json, timeout=self._timeout)
        except requests.RequestException as e:
            raise ShopifyAPIError(f"{method} {path} failed: {e}") from e

        if response.status_code == 404:
            return None
        if not response.ok:
            raise ShopifyAPIError(
                f"{method} {path} returned {response.status_code}",
                status_code=response.status_code,
            )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ShopifyAPIError(f"{method} {path} returned invalid JSON") from e

    def get_order(self, order_id: int) -> OrderRecord | None:
        """Fetch an order with its customer.

        Args:
            order_id: Shopify order id.

        Returns:
            OrderRecord, or None if the order does not exist.

        Raises:
            ShopifyAPIError: On transport failures and non-404 error responses.
        """
        try:
            data = self._request("GET", f"/orders/{order_id}.json")
        except ShopifyAPIError as e:
            logger.error(
                "error fetching order",
                extra={
                    "extra_fields": safe_log_context(
                        order_id=order_id,
                        status_code=e.status_code,
                        error=str(e),
                    )
                },
            )
            raise

        if data is None:
            logger.warning(
                "order not found on shopify",
                extra={"extra_fields": safe_log_context(order_id=order_id)},
            )
            return None

        order = data.get("order") if isinstance(data, dict) else None
        if not order:
            return None
        return OrderRecord.from_api(order)

    def set_customer_tags(self, customer_id: int, tags: str) -> bool:
        """Replace a customer's tags.

        Args:
            customer_id: Shopify customer id.
            tags: Full comma-separated tag string to store.

        Returns:
            True if Shopify accepted the update.
        """
        payload = {"customer": {"id": customer_id, "tags": tags}}
        try:
            data = self._request("PUT", f"/customers/{customer_id}.json", json=payload)
        except ShopifyAPIError as e:
            logger.error(
                "error updating customer tags",
                extra={
                    "extra_fields": safe_log_context(
                        customer_id=customer_id,
                        status_code=e.status_code,
                        error=str(e),
                    )
                },
            )
            return False

        if data is None:
            logger.error(
                "customer not found on tag update",
                extra={"extra_fields": safe_log_context(customer_id=customer_id)},
            )
            return False
        return True

    def close(self) -> None:
        self._session.close()
