"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest
from starlette.responses import Response

from cardano_scanner import __version__
from cardano_scanner.api.middleware.cors import setup_cors
from cardano_scanner.api.v1 import v1_router
from cardano_scanner.config.settings import AppConfig
from cardano_scanner.engine.client import ScannerEngine
from cardano_scanner.errors.scanner_errors import ScannerError
from cardano_scanner.metrics.collector import ScannerMetrics
from cardano_scanner.metrics.middleware import PrometheusMiddleware
from cardano_scanner.webhooks.payload import iso_now

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialise the engine on startup and shut it down gracefully on exit."""
    engine: ScannerEngine = app.state.engine
    try:
        await engine.initialize()
        logger.info("Cardano scanner engine initialized")
        yield
    finally:
        await engine.close()
        logger.info("Cardano scanner engine shut down")


def create_app(
    *,
    config: AppConfig | None = None,
    engine: ScannerEngine | None = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        config: Optional AppConfig. If *None*, a default config is created
            from environment variables.
        engine: Optional pre-built (not yet initialized) engine. Its metrics
            instance, if any, backs the HTTP middleware and /metrics.
    """
    if config is None:
        config = engine.config if engine is not None else AppConfig()

    if engine is None:
        metrics = ScannerMetrics() if config.metrics.enabled else None
        engine = ScannerEngine(config, metrics=metrics)
    else:
        metrics = engine.metrics

    app = FastAPI(
        title="cardano-scanner",
        version=__version__,
        description="Cardano address and contract watcher with webhook delivery",
        lifespan=_lifespan,
    )
    app.state.config = config
    app.state.engine = engine
    app.state.metrics = metrics

    # -- Middleware --
    setup_cors(app, config.server.cors_origins)
    if metrics is not None:
        app.add_middleware(PrometheusMiddleware, registry=metrics.registry)

    # -- Error handler --
    @app.exception_handler(ScannerError)
    async def _scanner_error_handler(request: Request, exc: ScannerError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": exc.code, "message": exc.message},
        )

    # -- Base routes --
    @app.get("/health", tags=["base"])
    async def health() -> dict:
        components = await app.state.engine.health_check()
        return {"status": "ok", "timestamp": iso_now(), "components": components}

    @app.get("/metrics", tags=["base"], include_in_schema=False)
    async def metrics_endpoint() -> Response:
        """Prometheus metrics endpoint."""
        registry = app.state.metrics.registry if app.state.metrics is not None else None
        body = generate_latest(registry) if registry else generate_latest()
        return Response(
            content=body,
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    # -- Mount v1 API --
    app.include_router(v1_router)

    return app
