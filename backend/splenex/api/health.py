"""
Health check endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from .schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Service status, provider count and cache statistics."""
    settings = request.app.state.settings
    aggregator = request.app.state.aggregator
    return HealthResponse(
        status="healthy" if len(aggregator.registry) else "degraded",
        service=settings.app_name,
        version=settings.version,
        environment=settings.environment,
        providers=len(aggregator.registry),
        cache=aggregator.cache.stats(),
    ).to_response()
