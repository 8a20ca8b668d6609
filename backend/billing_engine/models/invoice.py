from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    UniqueConstraint,
    func,
)

from billing_engine.core.database import Base
from billing_engine.models.shared import UUIDType, generate_uuid, utc_now


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    FINALIZED = "finalized"
    PAID = "paid"
    VOIDED = "voided"


class Invoice(Base):
    __tablename__ = "invoices"
    # At most one invoice per billing-cycle instance per company
    __table_args__ = (
        UniqueConstraint("company_id", "billing_cycle_id", name="uq_invoice_company_cycle"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    tenant = Column(String(100), nullable=False, default="default")
    invoice_number = Column(String(50), unique=True, index=True, nullable=False)
    company_id = Column(
        UUIDType, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    billing_cycle_id = Column(UUIDType, nullable=True, index=True)
    status = Column(String(20), nullable=False, default=InvoiceStatus.DRAFT.value)

    billing_period_start = Column(DateTime(timezone=True), nullable=True)
    billing_period_end = Column(DateTime(timezone=True), nullable=True)

    # Amounts in minor currency units
    subtotal = Column(Numeric(14, 4), nullable=False, default=0)
    tax = Column(Numeric(14, 4), nullable=False, default=0)
    total_amount = Column(Numeric(14, 4), nullable=False, default=0)

    invoice_date = Column(DateTime(timezone=True), nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class InvoiceItem(Base):
    """A line on an invoice.

    Discount items carry ``is_discount=True`` and a negative ``net_amount``;
    their effective amount is also stored in ``unit_price``.
    """

    __tablename__ = "invoice_items"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    service_id = Column(UUIDType, nullable=True)
    description = Column(String(500), nullable=True)
    quantity = Column(Numeric(14, 4), nullable=False, default=1)
    unit_price = Column(Numeric(14, 4), nullable=False, default=0)
    net_amount = Column(Numeric(14, 4), nullable=False, default=0)
    tax_amount = Column(Numeric(14, 4), nullable=False, default=0)
    tax_rate = Column(Numeric(7, 6), nullable=False, default=0)
    tax_region = Column(String(100), nullable=True)
    total_price = Column(Numeric(14, 4), nullable=False, default=0)

    is_manual = Column(Boolean, nullable=False, default=False)
    is_discount = Column(Boolean, nullable=False, default=False)
    discount_type = Column(String(20), nullable=True)
    discount_percentage = Column(Numeric(7, 4), nullable=True)
    applies_to_item_id = Column(UUIDType, nullable=True)

    # Microsecond precision keeps creation order stable for recalculation
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
