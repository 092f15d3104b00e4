"""Operational status surface. Read-only, no side effects."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from chargewatch.api.services import ChargebackServices
from chargewatch.config import APP_VERSION, Settings
from chargewatch.domain.environment import detect_environment
from chargewatch.infra.repositories.metrics_repository import collect_metrics, empty_metrics
from chargewatch.observability.logging import get_logger

router = APIRouter(tags=["status"])

logger = get_logger(__name__)


class ServiceStatus(BaseModel):
    status: str
    domain: str | None = None
    message: str | None = None


class Services(BaseModel):
    database: ServiceStatus = Field(default_factory=lambda: ServiceStatus(status="disconnected"))
    shopify: ServiceStatus = Field(default_factory=lambda: ServiceStatus(status="not_configured"))
    slack: ServiceStatus = Field(default_factory=lambda: ServiceStatus(status="not_configured"))


class Metrics(BaseModel):
    total_chargebacks: int = 0
    chargebacks_today: int = 0
    chargebacks_this_month: int = 0
    errors_today: int = 0
    errors_this_month: int = 0


class Uptime(BaseModel):
    start_time: datetime
    uptime_seconds: int


class StatusResponse(BaseModel):
    status: Literal["running", "degraded"] = "running"
    timestamp: datetime
    version: str = APP_VERSION
    environment: str
    services: Services = Field(default_factory=Services)
    metrics: Metrics = Field(default_factory=Metrics)
    uptime: Uptime


def build_status(
    settings: Settings,
    services: ChargebackServices,
    environment: str,
    started_at: datetime,
) -> StatusResponse:
    now = datetime.now(timezone.utc)
    report = StatusResponse(
        timestamp=now,
        environment=environment,
        uptime=Uptime(
            start_time=started_at,
            uptime_seconds=int((now - started_at).total_seconds()),
        ),
    )

    if settings.shopify_configured:
        report.services.shopify = ServiceStatus(status="configured", domain=settings.shop_domain)
    if settings.slack_configured:
        report.services.slack = ServiceStatus(status="configured")

    try:
        connected = services.store.test_connection()
    except Exception as e:
        logger.warning("status database check raised", exc_info=True)
        report.services.database = ServiceStatus(status="error", message=str(e))
        report.status = "degraded"
        return report

    if connected:
        report.services.database = ServiceStatus(status="connected")
        report.metrics = Metrics(**collect_metrics(services.store))
    else:
        report.services.database = ServiceStatus(status="error", message="connection failed")
        report.metrics = Metrics(**empty_metrics())
        report.status = "degraded"

    return report


@router.get("/status")
def status(request: Request) -> JSONResponse:
    """Report configured services, database health and processing counts."""
    try:
        report = build_status(
            request.app.state.settings,
            request.app.state.services,
            detect_environment(request.headers.get("host")),
            request.app.state.started_at,
        )
    except Exception as e:
        logger.exception("status check failed")
        return JSONResponse(status_code=500, content={"status": "unhealthy", "error": str(e)})

    return JSONResponse(
        content=report.model_dump(mode="json"),
        headers={"Cache-Control": "no-cache"},
    )
