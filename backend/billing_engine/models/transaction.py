"""Append-only ledger of monetary changes tied to invoices."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String

from billing_engine.core.database import Base
from billing_engine.models.shared import UUIDType, generate_uuid, utc_now


class TransactionType(str, Enum):
    INVOICE_GENERATED = "invoice_generated"
    INVOICE_ADJUSTMENT = "invoice_adjustment"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    tenant = Column(String(100), nullable=False, default="default")
    company_id = Column(
        UUIDType, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    amount = Column(Numeric(14, 4), nullable=False, default=0)
    type = Column(String(30), nullable=False)
    status = Column(String(20), nullable=False, default=TransactionStatus.COMPLETED.value)
    description = Column(String(500), nullable=True)
    balance_after = Column(Numeric(14, 4), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
