from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from billing_engine.core.database import get_db
from billing_engine.core.exceptions import NotFoundError, TaxServiceError
from billing_engine.schemas.billing import (
    BillingResult,
    CalculateBillingRequest,
    RolloverRequest,
    RolloverResponse,
)
from billing_engine.services.billing_engine import BillingEngine

router = APIRouter()


@router.post(
    "/calculate",
    response_model=BillingResult,
    summary="Calculate billing",
    responses={
        400: {"description": "No applicable plan or period spans a billing cycle change"},
        404: {"description": "Company not found"},
        502: {"description": "Tax rate service unavailable"},
    },
)
async def calculate_billing(
    data: CalculateBillingRequest,
    db: Session = Depends(get_db),
) -> BillingResult:
    """Compute charges, discounts and the final amount for a billing period."""
    engine = BillingEngine(db)
    try:
        return await engine.calculate_billing(
            company_id=data.company_id,
            start_date=data.start_date,
            end_date=data.end_date,
            billing_cycle_id=data.billing_cycle_id,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except TaxServiceError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.post(
    "/rollover",
    response_model=RolloverResponse,
    summary="Roll over unapproved time",
)
async def rollover_unapproved_time(
    data: RolloverRequest,
    db: Session = Depends(get_db),
) -> RolloverResponse:
    """Move unapproved time entries into the next billing period."""
    engine = BillingEngine(db)
    count = engine.rollover_unapproved_time(
        company_id=data.company_id,
        current_period_end=data.current_period_end,
        next_period_start=data.next_period_start,
    )
    return RolloverResponse(rolled_over=count)
