from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import and_
from sqlalchemy.orm import Session

from billing_engine.models.plan import PlanService
from billing_engine.models.service_catalog import ServiceCatalog
from billing_engine.models.usage import UsageRecord


@dataclass(frozen=True)
class BillableUsage:
    record: UsageRecord
    service: ServiceCatalog
    custom_rate: Decimal | None


class UsageRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_billable(
        self,
        company_id: UUID,
        plan_id: UUID,
        service_category: UUID | None,
        period_start: datetime,
        period_end: datetime,
    ) -> list[BillableUsage]:
        """Uninvoiced usage for the company's plan category within the period."""
        rows = (
            self.db.query(UsageRecord, ServiceCatalog, PlanService.custom_rate)
            .join(ServiceCatalog, UsageRecord.service_id == ServiceCatalog.id)
            .join(
                PlanService,
                and_(
                    PlanService.service_id == ServiceCatalog.id,
                    PlanService.plan_id == plan_id,
                ),
            )
            .filter(
                UsageRecord.company_id == company_id,
                UsageRecord.invoiced.is_(False),
                UsageRecord.usage_date >= period_start,
                UsageRecord.usage_date < period_end,
                ServiceCatalog.category_id == service_category,
            )
            .order_by(UsageRecord.usage_date.asc())
            .all()
        )
        return [
            BillableUsage(record=record, service=service, custom_rate=custom_rate)
            for record, service, custom_rate in rows
        ]

    def mark_invoiced(self, usage_ids: list[UUID]) -> int:
        if not usage_ids:
            return 0
        count = (
            self.db.query(UsageRecord)
            .filter(UsageRecord.id.in_(usage_ids))
            .update({UsageRecord.invoiced: True}, synchronize_session="fetch")
        )
        return int(count)
