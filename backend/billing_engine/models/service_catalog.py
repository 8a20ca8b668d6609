from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Numeric, String, func

from billing_engine.core.database import Base
from billing_engine.models.shared import UUIDType, generate_uuid


class ServiceType(str, Enum):
    FIXED = "Fixed"
    TIME = "Time"
    USAGE = "Usage"


class ServiceCatalog(Base):
    __tablename__ = "service_catalog"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    service_name = Column(String(255), nullable=False)
    service_type = Column(String(20), nullable=False, default=ServiceType.FIXED.value)
    default_rate = Column(Numeric(14, 4), nullable=False, default=0)
    unit_of_measure = Column(String(50), nullable=True)
    category_id = Column(UUIDType, nullable=True, index=True)

    # Tax settings; tax_rate is a fraction (0.08 == 8%)
    is_taxable = Column(Boolean, nullable=True, default=True)
    tax_rate = Column(Numeric(7, 6), nullable=True)
    tax_region = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
