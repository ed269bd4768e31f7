"""
FastAPI application factory.

The app owns the engine's lifetime: the lifespan starts the monitor service
(loading monitors and arming their timers) before the first request and
stops it, flushing the store, on shutdown.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pulsewatch import __version__
from pulsewatch.api.dependencies import build_monitor_service, set_monitor_service
from pulsewatch.api.middleware.request_context import RequestContextMiddleware
from pulsewatch.api.routes import health, monitors, stats
from pulsewatch.config.settings import Settings, get_settings
from pulsewatch.monitors.service import MonitorService

logger = structlog.get_logger(__name__)

OPENAPI_TAGS = [
    {"name": "health", "description": "Engine liveness"},
    {"name": "monitors", "description": "Monitor management and forced checks"},
    {"name": "stats", "description": "Aggregate statistics, events and persistence"},
]


def _lifespan(settings: Settings, service: MonitorService | None):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        from pulsewatch.observability.tracing import (
            is_tracing_enabled,
            setup_tracing,
            shutdown_tracing,
        )

        owns_tracing = settings.tracing_enabled and not is_tracing_enabled()
        if owns_tracing:
            setup_tracing(
                service_name=settings.otel_service_name,
                otlp_endpoint=settings.otel_exporter_otlp_endpoint,
                environment=settings.environment,
            )

        monitor_service = service or build_monitor_service()
        await monitor_service.start()
        set_monitor_service(monitor_service)
        logger.info("API ready", monitors=len(monitor_service.registry))

        try:
            yield
        finally:
            logger.info("API shutting down")
            set_monitor_service(None)
            await monitor_service.stop()
            if owns_tracing:
                shutdown_tracing()

    return lifespan


def create_app(service: MonitorService | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        service: Monitor service to serve. When None, one is built from
            environment configuration at startup.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    app = FastAPI(
        title="pulsewatch",
        description=(
            "HTTP uptime monitoring. Every monitor is probed on its own interval "
            "with bounded retries; up/down transitions go to the configured alert "
            "sinks and each monitor keeps a rolling history of its results."
        ),
        version=__version__,
        lifespan=_lifespan(settings, service),
        openapi_tags=OPENAPI_TAGS,
    )

    # Comma-separated CORS_ORIGINS
    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    @app.exception_handler(Exception)
    async def unhandled_exception(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "internal"},
        )

    for router, tag in ((health.router, "health"), (monitors.router, "monitors"), (stats.router, "stats")):
        app.include_router(router, tags=[tag])

    return app
