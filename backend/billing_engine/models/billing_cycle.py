from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, func

from billing_engine.core.database import Base
from billing_engine.models.shared import UUIDType, generate_uuid


class BillingCycleType(str, Enum):
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUALLY = "semi-annually"
    ANNUALLY = "annually"


class CompanyBillingCycle(Base):
    """A cadence change for a company, effective from ``effective_date``."""

    __tablename__ = "company_billing_cycles"
    __table_args__ = (
        UniqueConstraint("company_id", "effective_date", name="uq_company_cycle_effective"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    company_id = Column(
        UUIDType, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    tenant = Column(String(100), nullable=False, default="default")
    billing_cycle = Column(String(20), nullable=False, default=BillingCycleType.MONTHLY.value)
    effective_date = Column(DateTime(timezone=True), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
