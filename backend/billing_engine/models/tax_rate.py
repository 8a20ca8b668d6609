from sqlalchemy import Column, DateTime, Numeric, String, func

from billing_engine.core.database import Base
from billing_engine.models.shared import UUIDType, generate_uuid


class TaxRate(Base):
    """Tax rate for a region over ``[start_date, end_date)``; rate is a fraction."""

    __tablename__ = "tax_rates"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    region = Column(String(100), nullable=False, index=True)
    rate = Column(Numeric(7, 6), nullable=False)
    description = Column(String(255), nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
