from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    func,
)

from billing_engine.core.database import Base
from billing_engine.models.shared import UUIDType, generate_uuid


class PlanType(str, Enum):
    FIXED = "Fixed"
    HOURLY = "Hourly"
    USAGE = "Usage"
    BUCKET = "Bucket"


class BillingPlan(Base):
    __tablename__ = "billing_plans"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    plan_name = Column(String(255), nullable=False)
    plan_type = Column(String(20), nullable=False, default=PlanType.FIXED.value)
    billing_frequency = Column(String(20), nullable=False, default="monthly")
    is_custom = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class PlanService(Base):
    """A service offered under a plan, optionally at a custom rate."""

    __tablename__ = "plan_services"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    plan_id = Column(
        UUIDType, ForeignKey("billing_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    service_id = Column(
        UUIDType, ForeignKey("service_catalog.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    quantity = Column(Integer, nullable=False, default=1)
    custom_rate = Column(Numeric(14, 4), nullable=True)


class CompanyBillingPlan(Base):
    """Assignment of a plan to a company for a service category."""

    __tablename__ = "company_billing_plans"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    company_id = Column(
        UUIDType, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    plan_id = Column(
        UUIDType, ForeignKey("billing_plans.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    service_category = Column(UUIDType, nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
