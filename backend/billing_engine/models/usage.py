from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Numeric, func

from billing_engine.core.database import Base
from billing_engine.models.shared import UUIDType, generate_uuid


class UsageRecord(Base):
    __tablename__ = "usage_tracking"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    company_id = Column(
        UUIDType, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    service_id = Column(
        UUIDType, ForeignKey("service_catalog.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    quantity = Column(Numeric(14, 4), nullable=False, default=0)
    usage_date = Column(DateTime(timezone=True), nullable=False)
    invoiced = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
