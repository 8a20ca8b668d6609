"""Billing calculation schemas.

Charges form a closed union discriminated on ``type``; consumers match on the
concrete class and end with ``assert_never`` so adding a kind is flagged by
the type checker.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from billing_engine.models.discount import DiscountType


class BillingPeriod(BaseModel):
    """A ``[start_date, end_date)`` window."""

    model_config = ConfigDict(frozen=True)

    start_date: datetime
    end_date: datetime

    @model_validator(mode="after")
    def check_order(self) -> "BillingPeriod":
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class ChargeBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    service_id: UUID | None
    service_name: str
    rate: Decimal
    total: Decimal
    tax_rate: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    tax_region: str | None = None


class FixedPriceCharge(ChargeBase):
    type: Literal["fixed"] = "fixed"
    quantity: Decimal


class TimeBasedCharge(ChargeBase):
    type: Literal["time"] = "time"
    user_id: UUID
    entry_id: UUID
    duration: Decimal


class UsageBasedCharge(ChargeBase):
    type: Literal["usage"] = "usage"
    usage_id: UUID
    quantity: Decimal


class BucketCharge(ChargeBase):
    type: Literal["bucket"] = "bucket"
    hours_used: Decimal
    overage_hours: Decimal
    overage_rate: Decimal


BillingCharge = Annotated[
    FixedPriceCharge | TimeBasedCharge | UsageBasedCharge | BucketCharge,
    Field(discriminator="type"),
]


class AppliedDiscount(BaseModel):
    discount_id: UUID
    discount_name: str
    discount_type: DiscountType
    value: Decimal
    amount: Decimal
    start_date: datetime
    end_date: datetime | None = None


class Adjustment(BaseModel):
    description: str
    amount: Decimal


class BillingResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    charges: list[BillingCharge] = Field(default_factory=list)
    total_amount: Decimal = Decimal("0")
    discounts: list[AppliedDiscount] = Field(default_factory=list)
    adjustments: list[Adjustment] = Field(default_factory=list)
    final_amount: Decimal = Decimal("0")

    @classmethod
    def empty(cls) -> "BillingResult":
        return cls()


class CalculateBillingRequest(BaseModel):
    company_id: UUID
    start_date: datetime
    end_date: datetime
    billing_cycle_id: UUID


class RolloverRequest(BaseModel):
    company_id: UUID
    current_period_end: datetime
    next_period_start: datetime


class RolloverResponse(BaseModel):
    rolled_over: int
