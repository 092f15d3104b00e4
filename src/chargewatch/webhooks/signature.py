"""Shopify webhook signature verification (HMAC-SHA256, base64).

Shopify signs the raw request body with the app's webhook secret and sends
the base64 digest in X-Shopify-Hmac-Sha256. The digest must be computed over
the exact bytes received, before any JSON parsing.
"""

import base64
import hashlib
import hmac

from chargewatch.observability.logging import get_logger

SIGNATURE_HEADER = "X-Shopify-Hmac-Sha256"

logger = get_logger(__name__)


def compute_signature(secret: str, raw_body: bytes) -> str:
    """Return the base64 HMAC-SHA256 digest of raw_body keyed by secret."""
    digest = hmac.new(
        key=secret.encode("utf-8"),
        msg=raw_body,
        digestmod=hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_webhook_signature(
    secret: str | None,
    raw_body: bytes,
    presented_signature: str | None,
) -> bool:
    """Verify a webhook signature.

    Args:
        secret: Shared webhook secret. None means not configured.
        raw_body: Raw request body bytes.
        presented_signature: X-Shopify-Hmac-Sha256 header value, if any.

    Returns:
        False when no secret is configured (fail closed).
        True when the signature header is absent (unsigned test/replay calls).
        Otherwise True iff the digests match (constant-time comparison).
    """
    if not secret:
        logger.warning("webhook secret not configured - rejecting request")
        return False

    expected = compute_signature(secret, raw_body)

    if not presented_signature:
        logger.warning("signature header missing - accepting unsigned request")
        logger.debug(
            "computed signature for unsigned request",
            extra={"extra_fields": {"expected_signature": expected}},
        )
        return True

    # Compare the textual encodings; decoding first would accept
    # non-canonical base64 variants of the same digest.
    is_valid = hmac.compare_digest(
        presented_signature.strip().encode("utf-8"),
        expected.encode("utf-8"),
    )

    if is_valid:
        logger.info("webhook signature valid")
    else:
        logger.warning("webhook signature mismatch")
        logger.debug(
            "signature mismatch detail",
            extra={
                "extra_fields": {
                    "received_signature": presented_signature,
                    "expected_signature": expected,
                }
            },
        )

    return is_valid
