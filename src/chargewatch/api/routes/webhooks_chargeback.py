"""Shopify dispute webhook route.

Gate order (each rejection writes one error row, best effort):
1. Signature        -> 401 (notifies with an empty event)
2. Topic            -> 400
3. Shop domain      -> 403
4. JSON body        -> 400 (notifies, sanitized body stored)
5. Dispute type     -> 400 (notifies, no Shopify call made)
6. Pipeline         -> 200 / 404 (no notification) / 500

Responses are plain text. Pipeline failures are persisted and notified by
the pipeline itself, never a second time here.
"""

from __future__ import annotations

import traceback

from fastapi import APIRouter, Request, Response
from starlette.datastructures import Headers

from chargewatch.api.services import ChargebackServices
from chargewatch.config import Settings
from chargewatch.domain.chargebacks import ChargebackPipeline, persist_error
from chargewatch.domain.environment import detect_environment
from chargewatch.domain.models import (
    CUSTOMER_EMAIL_PLACEHOLDER,
    DisputeEvent,
    ErrorRecord,
    OutcomeKind,
)
from chargewatch.observability.correlation import get_correlation_id
from chargewatch.observability.logging import get_logger
from chargewatch.observability.redaction import (
    loads_strict_json,
    safe_log_context,
    sanitize_request_data,
)
from chargewatch.webhooks.classifier import (
    SHOP_DOMAIN_HEADER,
    TOPIC_HEADER,
    WebhookInfo,
    is_expected_domain,
    is_supported_topic,
)
from chargewatch.webhooks.signature import SIGNATURE_HEADER, verify_webhook_signature

router = APIRouter(tags=["webhooks"])

logger = get_logger(__name__)

FUNCTION_NAME = "webhooks_chargeback.chargeback_webhook"


def _notify(services: ChargebackServices, event: DisputeEvent, action: str) -> None:
    try:
        services.notifier.post_event(event, action)
    except Exception:
        logger.exception("notification raised")


def _reject(
    services: ChargebackServices,
    *,
    status_code: int,
    body: str,
    error_message: str,
    error_type: str,
    environment: str,
    event: DisputeEvent | None = None,
    request_data: str | None = None,
    notify: bool = False,
) -> Response:
    logger.warning(
        "chargeback webhook rejected",
        extra={
            "extra_fields": safe_log_context(
                correlationId=get_correlation_id(),
                status_code=status_code,
                error_type=error_type,
            )
        },
    )
    persist_error(
        services.store,
        ErrorRecord(
            http_code=status_code,
            error_message=error_message,
            error_type=error_type,
            function_name=FUNCTION_NAME,
            environment=environment,
            dispute_id=event.id if event else None,
            request_data=request_data,
        ),
    )
    if notify:
        _notify(services, event or DisputeEvent.empty(), error_message)
    return Response(status_code=status_code, content=body, media_type="text/plain")


def handle_chargeback_webhook(
    body: bytes,
    headers: Headers,
    settings: Settings,
    services: ChargebackServices,
    environment: str,
) -> Response:
    """Validate one webhook delivery and run the pipeline.

    Args:
        body: Raw request body (signature is computed over these bytes).
        headers: Request headers.
        settings: Application settings.
        services: Gateway, store and notifier.
        environment: Detected deployment environment.

    Returns:
        Plain-text response with the final status code.
    """
    if not verify_webhook_signature(
        settings.webhook_secret, body, headers.get(SIGNATURE_HEADER)
    ):
        return _reject(
            services,
            status_code=401,
            body="Unauthorized",
            error_message="Invalid webhook signature",
            error_type="InvalidSignature",
            environment=environment,
            notify=True,
        )

    if not is_supported_topic(headers.get(TOPIC_HEADER)):
        return _reject(
            services,
            status_code=400,
            body="Unsupported webhook type",
            error_message="Webhook is not a chargeback type",
            error_type="UnsupportedWebhookType",
            environment=environment,
        )

    if not is_expected_domain(settings.shop_domain, headers.get(SHOP_DOMAIN_HEADER)):
        return _reject(
            services,
            status_code=403,
            body="Forbidden",
            error_message="Invalid shop domain",
            error_type="InvalidShopDomain",
            environment=environment,
        )

    info = WebhookInfo.from_headers(headers)
    logger.info(
        "chargeback webhook received",
        extra={
            "extra_fields": safe_log_context(
                correlationId=get_correlation_id(),
                shop=info.shop_domain,
                topic=info.topic,
                api_version=info.api_version,
                webhook_id=info.webhook_id,
                event_id=info.event_id,
                triggered_at=info.triggered_at,
            )
        },
    )

    try:
        payload = loads_strict_json(body)
        if not isinstance(payload, dict):
            raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    except ValueError as e:
        error_message = f"JSON parse error: {e}"
        return _reject(
            services,
            status_code=400,
            body="Invalid JSON",
            error_message=error_message,
            error_type="JSONParseError",
            environment=environment,
            request_data=sanitize_request_data(body.decode("utf-8", errors="replace")),
            notify=True,
        )

    event = DisputeEvent.from_payload(payload)

    if not event.is_chargeback:
        error_message = f"Unsupported dispute type: {event.type}"
        return _reject(
            services,
            status_code=400,
            body="Unsupported dispute type",
            error_message=error_message,
            error_type="UnsupportedDisputeType",
            environment=environment,
            event=event,
            request_data=sanitize_request_data(event.to_json()),
            notify=True,
        )

    pipeline = ChargebackPipeline(
        services.gateway,
        services.store,
        services.notifier,
        environment=environment,
    )
    outcome = pipeline.process(event)

    if outcome.kind is OutcomeKind.SUCCESS:
        return Response(
            status_code=200,
            content="Webhook processed successfully",
            media_type="text/plain",
        )

    logger.warning(
        "chargeback not processed",
        extra={
            "extra_fields": safe_log_context(
                correlationId=get_correlation_id(),
                kind=outcome.kind.value,
                status_code=outcome.status_code,
            )
        },
    )
    return Response(
        status_code=outcome.status_code or 500,
        content=outcome.message or "Internal server error",
        media_type="text/plain",
    )


@router.post("/webhooks/chargeback")
async def chargeback_webhook(request: Request) -> Response:
    """Receive a Shopify dispute webhook."""
    settings: Settings = request.app.state.settings
    services: ChargebackServices = request.app.state.services
    environment = detect_environment(request.headers.get("host"))

    try:
        body = await request.body()
        return handle_chargeback_webhook(
            body, request.headers, settings, services, environment
        )
    except Exception as e:
        logger.exception(
            "chargeback webhook failed",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=get_correlation_id(),
                    error_type=type(e).__name__,
                )
            },
        )
        persist_error(
            services.store,
            ErrorRecord(
                http_code=500,
                error_message=str(e),
                error_type=type(e).__name__,
                function_name=FUNCTION_NAME,
                environment=environment,
                customer_email=CUSTOMER_EMAIL_PLACEHOLDER,
                stack_trace=traceback.format_exc(),
            ),
        )
        _notify(services, DisputeEvent.empty(), f"General error: {e}")
        return Response(
            status_code=500, content="Internal server error", media_type="text/plain"
        )
