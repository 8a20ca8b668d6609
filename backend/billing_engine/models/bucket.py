"""Bucket plans: a pool of pre-paid hours billed only on overage."""

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, func

from billing_engine.core.database import Base
from billing_engine.models.shared import UUIDType, generate_uuid


class BucketPlan(Base):
    __tablename__ = "bucket_plans"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    plan_id = Column(
        UUIDType, ForeignKey("billing_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    total_hours = Column(Numeric(10, 2), nullable=False, default=0)
    overage_rate = Column(Numeric(14, 4), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class BucketUsage(Base):
    __tablename__ = "bucket_usage"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    bucket_plan_id = Column(
        UUIDType, ForeignKey("bucket_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    company_id = Column(
        UUIDType, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    service_catalog_id = Column(
        UUIDType, ForeignKey("service_catalog.id", ondelete="RESTRICT"), nullable=True
    )
    period_start = Column(DateTime(timezone=True), nullable=False)
    period_end = Column(DateTime(timezone=True), nullable=False)
    hours_used = Column(Numeric(10, 2), nullable=False, default=0)
    overage_hours = Column(Numeric(10, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
