"""GET /v1/flow-freedom - passive income coverage of expenses"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError

from fire_gateway.api.v1.schemas import FlowFreedomResponse
from fire_gateway.api.dependencies import get_projection_service, get_request_id, get_scope
from fire_gateway.domain.exceptions import RateUnavailableError
from fire_gateway.domain.models import OwnershipScope
from fire_gateway.services.projection import ProjectionService

router = APIRouter()


@router.get("/flow-freedom", response_model=FlowFreedomResponse)
async def get_flow_freedom(
    request: Request,
    scope: OwnershipScope = Depends(get_scope),
    service: ProjectionService = Depends(get_projection_service),
):
    """Flow Freedom now, once debt-free, and the trend-based time to 100%"""
    request_id = get_request_id(request)

    try:
        result = await service.get_flow_freedom(scope)
    except RateUnavailableError as e:
        logging.error(f"Exchange rate unavailable: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail=f"Exchange rate unavailable for {e.currency.upper()}")
    except SQLAlchemyError as e:
        logging.error(f"Database error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    logging.info(
        "Flow freedom computed",
        extra={
            "request_id": request_id,
            "scope": scope.cache_key,
            "flow_freedom": float(result.flow_freedom),
            "time_to_freedom_status": result.time_to_freedom.status,
        },
    )
    return FlowFreedomResponse.from_domain(result)
