from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Numeric, String, func

from billing_engine.core.database import Base
from billing_engine.models.shared import UUIDType, generate_uuid


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Discount(Base):
    """A plan discount.

    ``value`` is a fraction for percentage discounts (0.1 == 10%) and an
    amount in minor units for fixed discounts.
    """

    __tablename__ = "discounts"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    discount_name = Column(String(255), nullable=False)
    discount_type = Column(String(20), nullable=False, default=DiscountType.PERCENTAGE.value)
    value = Column(Numeric(14, 4), nullable=False, default=0)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class PlanDiscount(Base):
    __tablename__ = "plan_discounts"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    plan_id = Column(
        UUIDType, ForeignKey("billing_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    company_id = Column(
        UUIDType, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    discount_id = Column(
        UUIDType, ForeignKey("discounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
