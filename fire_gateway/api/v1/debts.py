"""GET /v1/debts/{debt_id}/schedule - amortization schedule"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError

from fire_gateway.api.v1.schemas import AmortizationResponse
from fire_gateway.api.dependencies import get_projection_service, get_request_id, get_scope
from fire_gateway.domain.exceptions import DebtNotFoundError, NonAmortizingDebtError
from fire_gateway.domain.models import OwnershipScope
from fire_gateway.services.projection import ProjectionService

router = APIRouter()


@router.get("/debts/{debt_id}/schedule", response_model=AmortizationResponse)
def get_debt_schedule(
    debt_id: str,
    request: Request,
    scope: OwnershipScope = Depends(get_scope),
    service: ProjectionService = Depends(get_projection_service),
):
    """
    Month-by-month repayment of a debt from its current balance.

    Returns:
        422 when the monthly payment never covers the interest
    """
    request_id = get_request_id(request)

    try:
        result = service.get_debt_schedule_by_id(scope, debt_id)
    except DebtNotFoundError:
        raise HTTPException(status_code=404, detail="Debt not found")
    except NonAmortizingDebtError as e:
        logging.warning(f"Non-amortizing debt: {e}", extra={"request_id": request_id, "debt_id": debt_id})
        raise HTTPException(status_code=422, detail=str(e))
    except SQLAlchemyError as e:
        logging.error(f"Database error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return AmortizationResponse.from_domain(debt_id, result)
