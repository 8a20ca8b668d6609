"""Discounts and adjustments applied to a computed billing total."""

from collections.abc import Sequence
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from billing_engine.models.discount import Discount, DiscountType
from billing_engine.repositories.discount_repository import DiscountRepository
from billing_engine.schemas.billing import (
    Adjustment,
    AppliedDiscount,
    BillingCharge,
    BillingPeriod,
    BillingResult,
)
from billing_engine.services.money import to_decimal


class DiscountService:
    def __init__(self, db: Session):
        self.db = db
        self.discount_repo = DiscountRepository(db)

    def apply_discounts_and_adjustments(
        self,
        company_id: UUID,
        period: BillingPeriod,
        charges: Sequence[BillingCharge],
        total_amount: Decimal,
    ) -> BillingResult:
        """Reduce ``total_amount`` by every discount live in the period.

        ``final_amount = total_amount - sum(discount amounts) + sum(adjustments)``.
        """
        discounts = [
            self._apply_discount(discount, total_amount)
            for discount in self.discount_repo.get_active_for_period(
                company_id, period.start_date, period.end_date
            )
        ]
        adjustments = self._fetch_adjustments(company_id)

        final_amount = (
            total_amount
            - sum((d.amount for d in discounts), Decimal("0"))
            + sum((a.amount for a in adjustments), Decimal("0"))
        )
        return BillingResult(
            charges=list(charges),
            total_amount=total_amount,
            discounts=discounts,
            adjustments=adjustments,
            final_amount=final_amount,
        )

    def _apply_discount(self, discount: Discount, total_amount: Decimal) -> AppliedDiscount:
        discount_type = DiscountType(discount.discount_type)
        value = to_decimal(discount.value)
        if discount_type == DiscountType.PERCENTAGE:
            amount = total_amount * value
        else:
            amount = value
        return AppliedDiscount(
            discount_id=discount.id,
            discount_name=str(discount.discount_name),
            discount_type=discount_type,
            value=value,
            amount=amount,
            start_date=discount.start_date,
            end_date=discount.end_date,
        )

    def _fetch_adjustments(self, company_id: UUID) -> list[Adjustment]:
        # Extension point: no adjustment source exists yet.
        return []

