"""
Quote aggregation API.

Status codes keep three outcomes apart: 400 for an invalid request, 404 for
a valid request with no usable quote, 500 for an internal fault.

File: backend/splenex/api/quotes.py
"""

from __future__ import annotations

import logging
import time
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from ..aggregator.intent import build_swap_intent
from ..aggregator.models import AggregationResult, SwapIntent
from ..aggregator.service import QuoteAggregator
from ..core.settings import Settings
from .schemas import MultiQuoteResponse, ParallelRoutesResponse, QuoteRequestBody

logger = logging.getLogger(__name__)

router = APIRouter(tags=["quotes"])

NO_ROUTE_MESSAGE = "No viable route found for this swap"


def get_aggregator(request: Request) -> QuoteAggregator:
    """FastAPI dependency returning the process-wide aggregator."""
    return request.app.state.aggregator


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def intent_from_body(body: QuoteRequestBody, settings: Settings) -> SwapIntent:
    """Build a validated intent; raises IntentValidationError on bad input."""
    return build_swap_intent(
        from_chain=body.from_chain,
        to_chain=body.to_chain,
        from_token=body.from_token,
        to_token=body.to_token,
        from_amount=body.from_amount,
        from_address=body.from_address,
        to_address=body.to_address,
        slippage=body.slippage,
        from_token_decimals=body.from_token_decimals,
        to_token_decimals=body.to_token_decimals,
        default_slippage_percent=settings.default_slippage_percent,
        max_slippage_percent=settings.max_slippage_percent,
    )


def _log_result(endpoint: str, result: AggregationResult, started: float) -> None:
    logger.info(
        f"{endpoint} completed",
        extra={
            'provider': result.best.provider if result.best else None,
            'extra_data': {
                'success': result.success,
                'quotes': len(result.quotes),
                'failed': len(result.failed_providers),
                'total_providers': result.total_providers,
                'cached': result.cached,
                'execution_time_ms': round((time.perf_counter() - started) * 1000, 2),
            },
        },
    )


def multi_quote_response(result: AggregationResult) -> JSONResponse:
    if result.success:
        return JSONResponse(status_code=200, content=MultiQuoteResponse.from_result(result).to_response())
    return JSONResponse(
        status_code=404,
        content=MultiQuoteResponse.from_result(result, error=NO_ROUTE_MESSAGE).to_response(),
    )


async def _aggregate(
    body: QuoteRequestBody,
    aggregator: QuoteAggregator,
    settings: Settings,
    endpoint: str,
) -> AggregationResult:
    started = time.perf_counter()
    intent = intent_from_body(body, settings)
    result = await aggregator.aggregate(intent, require_executable=body.require_executable)
    _log_result(endpoint, result, started)
    return result


@router.get("/multi-quote")
async def get_multi_quote(
    from_chain: Optional[str] = Query(None, alias="fromChain"),
    to_chain: Optional[str] = Query(None, alias="toChain"),
    from_token: Optional[str] = Query(None, alias="fromToken"),
    to_token: Optional[str] = Query(None, alias="toToken"),
    from_amount: Optional[str] = Query(None, alias="fromAmount"),
    from_address: Optional[str] = Query(None, alias="fromAddress"),
    to_address: Optional[str] = Query(None, alias="toAddress"),
    slippage: Optional[Decimal] = Query(None),
    from_token_decimals: Optional[str] = Query(None, alias="fromTokenDecimals"),
    to_token_decimals: Optional[str] = Query(None, alias="toTokenDecimals"),
    require_executable: bool = Query(False, alias="requireExecutable"),
    aggregator: QuoteAggregator = Depends(get_aggregator),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """Best quote across all eligible providers, from query parameters."""
    body = QuoteRequestBody(
        from_chain=from_chain,
        to_chain=to_chain,
        from_token=from_token,
        to_token=to_token,
        from_amount=from_amount,
        from_address=from_address,
        to_address=to_address,
        slippage=slippage,
        from_token_decimals=from_token_decimals,
        to_token_decimals=to_token_decimals,
        require_executable=require_executable,
    )
    result = await _aggregate(body, aggregator, settings, "GET /multi-quote")
    return multi_quote_response(result)


@router.post("/multi-quote")
async def post_multi_quote(
    body: QuoteRequestBody,
    aggregator: QuoteAggregator = Depends(get_aggregator),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """Best quote across all eligible providers."""
    result = await _aggregate(body, aggregator, settings, "POST /multi-quote")
    return multi_quote_response(result)


@router.post("/parallel-routes")
async def post_parallel_routes(
    body: QuoteRequestBody,
    aggregator: QuoteAggregator = Depends(get_aggregator),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """Same aggregation as multi-quote, reported as bestRoute/allRoutes."""
    result = await _aggregate(body, aggregator, settings, "POST /parallel-routes")
    if result.success:
        return JSONResponse(status_code=200, content=ParallelRoutesResponse.from_result(result).to_response())
    return JSONResponse(
        status_code=404,
        content=ParallelRoutesResponse.from_result(result, error=NO_ROUTE_MESSAGE).to_response(),
    )


@router.post("/quotes/{provider}")
async def post_provider_quote(
    provider: str,
    body: QuoteRequestBody,
    aggregator: QuoteAggregator = Depends(get_aggregator),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """Quote from one named provider."""
    started = time.perf_counter()
    intent = intent_from_body(body, settings)
    result = await aggregator.quote_from_provider(
        provider, intent, require_executable=body.require_executable
    )
    _log_result(f"POST /quotes/{provider}", result, started)
    return multi_quote_response(result)
