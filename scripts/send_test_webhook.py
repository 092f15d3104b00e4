"""Send a signed sample chargeback webhook to a running instance.

Usage:
    SHOPIFY_WEBHOOK_SECRET=... uv run python scripts/send_test_webhook.py [base_url] [order_id]

Defaults to http://localhost:8000 and a made-up order id. The shop domain
header comes from SHOPIFY_SHOP_DOMAIN when set.

This script is for local/staging E2E validation only.
"""

from __future__ import annotations

import json
import os
import sys
import uuid
from datetime import datetime, timezone

import requests

from chargewatch.webhooks.signature import SIGNATURE_HEADER, compute_signature

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_ORDER_ID = 450789469


def build_payload(order_id: int) -> dict:
    now = datetime.now(timezone.utc).isoformat()
    return {
        "id": int(uuid.uuid4().int % 10**9),
        "order_id": order_id,
        "type": "chargeback",
        "amount": "11.50",
        "currency": "USD",
        "reason": "fraudulent",
        "network_reason_code": "4837",
        "status": "needs_response",
        "evidence_due_by": now,
        "finalized_on": None,
        "created_at": now,
    }


def main() -> None:
    base_url = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_BASE_URL
    order_id = int(sys.argv[2]) if len(sys.argv) > 2 else DEFAULT_ORDER_ID

    secret = os.environ.get("SHOPIFY_WEBHOOK_SECRET", "")
    if not secret:
        print("ERROR: SHOPIFY_WEBHOOK_SECRET not set")
        sys.exit(1)

    shop_domain = os.environ.get("SHOPIFY_SHOP_DOMAIN", "example.myshopify.com")

    body = json.dumps(build_payload(order_id)).encode("utf-8")
    headers = {
        "Content-Type": "application/json",
        SIGNATURE_HEADER: compute_signature(secret, body),
        "X-Shopify-Topic": "disputes/create",
        "X-Shopify-Shop-Domain": shop_domain,
        "X-Shopify-API-Version": "2025-07",
        "X-Shopify-Webhook-Id": str(uuid.uuid4()),
        "X-Shopify-Triggered-At": datetime.now(timezone.utc).isoformat(),
    }

    url = f"{base_url.rstrip('/')}/webhooks/chargeback"
    print(f"POST {url} (order_id={order_id}) ...")

    try:
        response = requests.post(url, data=body, headers=headers, timeout=30)
    except requests.RequestException as e:
        print(f"ERROR: request failed: {e}")
        sys.exit(1)

    print()
    print("=== Response ===")
    print(f"  status:         {response.status_code}")
    print(f"  correlation_id: {response.headers.get('X-Correlation-ID')}")
    print(f"  body:           {response.text}")

    if response.status_code >= 400:
        sys.exit(1)


if __name__ == "__main__":
    main()
