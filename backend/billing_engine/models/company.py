from sqlalchemy import Boolean, Column, DateTime, String, func

from billing_engine.core.database import Base
from billing_engine.models.shared import UUIDType, generate_uuid


class Company(Base):
    __tablename__ = "companies"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    tenant = Column(String(100), nullable=False, default="default")
    company_name = Column(String(255), nullable=False)
    tax_region = Column(String(100), nullable=True)
    is_tax_exempt = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
