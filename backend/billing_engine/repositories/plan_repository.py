from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from billing_engine.models.plan import BillingPlan, CompanyBillingPlan, PlanService, PlanType
from billing_engine.models.service_catalog import ServiceCatalog, ServiceType


@dataclass(frozen=True)
class ActivePlan:
    """A company plan assignment joined with its plan name."""

    company_billing_plan_id: UUID
    company_id: UUID
    plan_id: UUID
    plan_name: str
    service_category: UUID | None
    start_date: datetime
    end_date: datetime | None


@dataclass(frozen=True)
class FixedPlanService:
    service: ServiceCatalog
    quantity: int
    custom_rate: Decimal | None


class PlanRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_active_for_period(
        self,
        company_id: UUID,
        period_start: datetime,
        period_end: datetime,
    ) -> list[ActivePlan]:
        """Active assignments overlapping the period, newest start first."""
        rows = (
            self.db.query(CompanyBillingPlan, BillingPlan.plan_name)
            .join(BillingPlan, CompanyBillingPlan.plan_id == BillingPlan.id)
            .filter(
                CompanyBillingPlan.company_id == company_id,
                CompanyBillingPlan.is_active.is_(True),
                CompanyBillingPlan.start_date <= period_end,
                or_(
                    CompanyBillingPlan.end_date >= period_start,
                    CompanyBillingPlan.end_date.is_(None),
                ),
            )
            .order_by(CompanyBillingPlan.start_date.desc())
            .all()
        )
        return [
            ActivePlan(
                company_billing_plan_id=cbp.id,
                company_id=cbp.company_id,
                plan_id=cbp.plan_id,
                plan_name=str(plan_name),
                service_category=cbp.service_category,
                start_date=cbp.start_date,
                end_date=cbp.end_date,
            )
            for cbp, plan_name in rows
        ]

    def get_fixed_services(self, company_id: UUID, company_billing_plan_id: UUID) -> list[FixedPlanService]:
        """Fixed-type services of a Fixed-type plan assigned to the company."""
        rows = (
            self.db.query(ServiceCatalog, PlanService.quantity, PlanService.custom_rate)
            .join(PlanService, PlanService.service_id == ServiceCatalog.id)
            .join(BillingPlan, BillingPlan.id == PlanService.plan_id)
            .join(CompanyBillingPlan, CompanyBillingPlan.plan_id == BillingPlan.id)
            .filter(
                CompanyBillingPlan.company_id == company_id,
                CompanyBillingPlan.id == company_billing_plan_id,
                ServiceCatalog.service_type == ServiceType.FIXED.value,
                BillingPlan.plan_type == PlanType.FIXED.value,
            )
            .all()
        )
        return [
            FixedPlanService(service=service, quantity=int(quantity), custom_rate=custom_rate)
            for service, quantity, custom_rate in rows
        ]
