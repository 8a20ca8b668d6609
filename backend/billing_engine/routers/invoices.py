from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from billing_engine.core.database import get_db
from billing_engine.core.exceptions import NotFoundError, TaxServiceError
from billing_engine.models.invoice import Invoice
from billing_engine.repositories.invoice_repository import InvoiceRepository
from billing_engine.schemas.invoice import (
    GenerateInvoiceRequest,
    InvoiceItemResponse,
    InvoiceResponse,
)
from billing_engine.services.billing_engine import BillingEngine
from billing_engine.services.invoice_generation import InvoiceGenerationService

router = APIRouter()


def _invoice_response(db: Session, invoice: Invoice) -> InvoiceResponse:
    items = InvoiceRepository(db).get_items(invoice.id)
    response = InvoiceResponse.model_validate(invoice)
    return response.model_copy(
        update={"items": [InvoiceItemResponse.model_validate(item) for item in items]}
    )


@router.post(
    "/generate",
    response_model=InvoiceResponse,
    summary="Generate invoice",
    responses={
        400: {"description": "No applicable plan or period spans a billing cycle change"},
        404: {"description": "Company not found"},
    },
)
async def generate_invoice(
    data: GenerateInvoiceRequest,
    db: Session = Depends(get_db),
) -> InvoiceResponse:
    """Generate (or return the existing) invoice for a billing cycle."""
    service = InvoiceGenerationService(db)
    try:
        invoice = await service.generate_invoice(
            company_id=data.company_id,
            period_start=data.start_date,
            period_end=data.end_date,
            billing_cycle_id=data.billing_cycle_id,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except TaxServiceError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return _invoice_response(db, invoice)


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    summary="Get invoice",
    responses={404: {"description": "Invoice not found"}},
)
async def get_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> InvoiceResponse:
    invoice = InvoiceRepository(db).get_by_id(invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return _invoice_response(db, invoice)


@router.post(
    "/{invoice_id}/recalculate",
    response_model=InvoiceResponse,
    summary="Recalculate invoice",
    responses={
        404: {"description": "Invoice not found"},
        502: {"description": "Tax rate service unavailable"},
    },
)
async def recalculate_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> InvoiceResponse:
    """Re-derive item taxes, discount amounts and totals from the invoice items."""
    engine = BillingEngine(db)
    try:
        invoice = await engine.recalculate_invoice(invoice_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except TaxServiceError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return _invoice_response(db, invoice)
