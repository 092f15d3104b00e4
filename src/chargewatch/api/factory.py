"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, Response

from chargewatch.config import APP_VERSION, Settings, load_settings
from chargewatch.observability.correlation import (
    CORRELATION_ID_HEADER,
    reset_correlation_id,
    resolve_correlation_id,
    set_correlation_id,
)
from chargewatch.observability.logging import configure_logging

from .routers import public
from .routes import status, webhooks_chargeback
from .services import ChargebackServices, build_services


def create_app(
    settings: Settings | None = None,
    services: ChargebackServices | None = None,
) -> FastAPI:
    """Create the FastAPI app.

    Args:
        settings: Explicit settings. If None, loaded from the environment.
        services: Prebuilt collaborators (tests inject fakes). If None,
                  production clients are built from settings and closed on
                  shutdown.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = load_settings()

    configure_logging(settings.log_level, settings.debug)

    owns_services = services is None
    if services is None:
        services = build_services(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_services:
            app.state.services.close()

    app = FastAPI(
        title="Chargewatch",
        version=APP_VERSION,
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.services = services
    app.state.started_at = datetime.now(timezone.utc)

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        cid = resolve_correlation_id(request.headers)
        token = set_correlation_id(cid)
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            return response
        finally:
            reset_correlation_id(token)

    app.include_router(public.router)
    app.include_router(status.router)
    app.include_router(webhooks_chargeback.router)

    return app
