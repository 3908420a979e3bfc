"""GET /v1/stats and DELETE /v1/stats/cache - financial statistics per scope"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.exc import SQLAlchemyError

from fire_gateway.api.v1.schemas import CacheInvalidationResponse, FinancialStatsResponse
from fire_gateway.api.dependencies import get_projection_service, get_request_id, get_scope
from fire_gateway.domain.models import OwnershipScope
from fire_gateway.services.projection import ProjectionService
from fire_gateway.infrastructure.observability.logging import log_stats_computed

router = APIRouter()


@router.get("/stats", response_model=FinancialStatsResponse)
async def get_stats(
    request: Request,
    refresh: bool = Query(False, description="Bypass the stats cache"),
    scope: OwnershipScope = Depends(get_scope),
    service: ProjectionService = Depends(get_projection_service),
):
    """
    Passive income, expenses, debts and net worth in the preferred currency.

    Figures whose currencies could not be converted come back as null and
    the offending codes are listed in unavailable_currencies.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        stats = await service.get_financial_stats(scope, force_refresh=refresh)
    except SQLAlchemyError as e:
        logging.error(f"Database error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    log_stats_computed(
        request_id,
        scope.cache_key,
        stats.passive_income.data_quality.confidence,
        stats.expenses.data_quality.confidence,
        stats.unavailable_currencies,
        duration_ms,
    )
    return FinancialStatsResponse.from_domain(stats)


@router.delete("/stats/cache", response_model=CacheInvalidationResponse)
def invalidate_stats_cache(
    scope: OwnershipScope = Depends(get_scope),
    service: ProjectionService = Depends(get_projection_service),
):
    """Drop cached stats after the scope's records changed"""
    return CacheInvalidationResponse(cleared=service.invalidate_stats_cache(scope))
