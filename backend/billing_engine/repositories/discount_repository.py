from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from billing_engine.models.discount import Discount, PlanDiscount
from billing_engine.models.plan import CompanyBillingPlan


class DiscountRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_active_for_period(
        self,
        company_id: UUID,
        period_start: datetime,
        period_end: datetime,
    ) -> list[Discount]:
        """Active discounts attached to the company's plans and live in the period."""
        return (
            self.db.query(Discount)
            .join(PlanDiscount, PlanDiscount.discount_id == Discount.id)
            .join(
                CompanyBillingPlan,
                and_(
                    CompanyBillingPlan.plan_id == PlanDiscount.plan_id,
                    CompanyBillingPlan.company_id == PlanDiscount.company_id,
                ),
            )
            .filter(
                CompanyBillingPlan.company_id == company_id,
                Discount.is_active.is_(True),
                Discount.start_date <= period_end,
                or_(Discount.end_date.is_(None), Discount.end_date > period_start),
            )
            .distinct()
            .order_by(Discount.start_date.asc())
            .all()
        )
