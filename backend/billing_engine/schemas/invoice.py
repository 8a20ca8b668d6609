from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from billing_engine.schemas.billing import CalculateBillingRequest


class InvoiceItemResponse(BaseModel):
    id: UUID
    service_id: UUID | None
    description: str | None
    quantity: Decimal
    unit_price: Decimal
    net_amount: Decimal
    tax_amount: Decimal
    tax_rate: Decimal
    tax_region: str | None
    total_price: Decimal
    is_discount: bool
    discount_type: str | None
    discount_percentage: Decimal | None
    applies_to_item_id: UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}


class InvoiceResponse(BaseModel):
    id: UUID
    invoice_number: str
    company_id: UUID
    billing_cycle_id: UUID | None
    status: str
    billing_period_start: datetime | None
    billing_period_end: datetime | None
    subtotal: Decimal
    tax: Decimal
    total_amount: Decimal
    invoice_date: datetime | None
    due_date: datetime | None
    items: list[InvoiceItemResponse] = []

    model_config = {"from_attributes": True}


class GenerateInvoiceRequest(CalculateBillingRequest):
    pass
