"""GET /v1/runway - year-by-year net worth projection"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError

from fire_gateway.api.v1.schemas import RunwayResponse
from fire_gateway.api.dependencies import get_projection_service, get_request_id, get_scope
from fire_gateway.domain.exceptions import RateUnavailableError
from fire_gateway.domain.models import OwnershipScope
from fire_gateway.services.projection import ProjectionService
from fire_gateway.infrastructure.observability.logging import log_runway_projection

router = APIRouter()


@router.get("/runway", response_model=RunwayResponse)
async def get_runway(
    request: Request,
    scope: OwnershipScope = Depends(get_scope),
    service: ProjectionService = Depends(get_projection_service),
):
    """
    Project how long net worth lasts.

    Each year: expenses minus passive income is drawn down, the remainder
    grows at the value-weighted asset growth rate, debt payments stop once
    a debt is paid off. Stops at depletion or after the horizon cap.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        runway = await service.get_runway(scope)
    except RateUnavailableError as e:
        logging.error(f"Exchange rate unavailable: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail=f"Exchange rate unavailable for {e.currency.upper()}")
    except SQLAlchemyError as e:
        logging.error(f"Database error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    log_runway_projection(request_id, scope.cache_key, runway.status, runway.runway_years, duration_ms)
    return RunwayResponse.from_domain(runway)
