"""
Splenex Quote Router - FastAPI application.

create_app() wires settings, logging, the shared HTTP client, the provider
registry and the aggregation service.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, Sequence

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .aggregator.service import QuoteAggregator
from .api import api_router
from .api.health import router as health_router
from .core.exception_handlers import register_exception_handlers
from .core.logging import cleanup_logging, setup_logging
from .core.middleware import RequestTracingMiddleware
from .core.settings import Settings, get_settings
from .dex import ProviderRegistry, QuoteProvider, build_registry

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    providers: Optional[Sequence[QuoteProvider]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use (global settings when None)
        providers: Pre-built adapters; built from settings when None
        transport: Custom httpx transport for the shared client

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager for startup and shutdown tasks."""
        setup_logging(
            log_level=settings.log_level,
            debug=settings.debug,
            environment=settings.environment,
            log_dir=settings.logs_dir if settings.log_to_file else None,
            retention_days=settings.log_retention_days,
        )
        logger.info(f"Starting {settings.app_name} v{settings.version}")

        client = httpx.AsyncClient(
            timeout=settings.provider_timeout_seconds,
            transport=transport,
            headers={"User-Agent": settings.http_user_agent},
        )
        try:
            if providers is None:
                registry = build_registry(settings, client)
            else:
                registry = ProviderRegistry(providers)

            app.state.settings = settings
            app.state.http_client = client
            app.state.aggregator = QuoteAggregator.from_settings(registry, settings)

            yield
        finally:
            await client.aclose()
            logger.info(f"Shutting down {settings.app_name}")
            cleanup_logging()

    app = FastAPI(
        title=settings.app_name,
        description="Multi-provider swap quote aggregation",
        version=settings.version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Trace-ID", "X-Process-Time"],
    )
    app.add_middleware(RequestTracingMiddleware)

    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")
    app.include_router(health_router)

    @app.get("/")
    async def root() -> dict:
        return {
            "service": settings.app_name,
            "version": settings.version,
            "docs": "/docs",
        }

    return app


__all__ = ["create_app"]
