from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from billing_engine.models.billing_cycle import CompanyBillingCycle


class BillingCycleRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_effective(self, company_id: UUID, as_of: datetime) -> CompanyBillingCycle | None:
        """Latest cycle record effective on or before ``as_of``."""
        return (
            self.db.query(CompanyBillingCycle)
            .filter(
                CompanyBillingCycle.company_id == company_id,
                CompanyBillingCycle.effective_date <= as_of,
            )
            .order_by(CompanyBillingCycle.effective_date.desc())
            .first()
        )

    def get_earliest(self, company_id: UUID) -> CompanyBillingCycle | None:
        return (
            self.db.query(CompanyBillingCycle)
            .filter(CompanyBillingCycle.company_id == company_id)
            .order_by(CompanyBillingCycle.effective_date.asc())
            .first()
        )

    def get_changes_until(self, company_id: UUID, until: datetime) -> list[CompanyBillingCycle]:
        """All cycle records effective on or before ``until``, oldest first."""
        return (
            self.db.query(CompanyBillingCycle)
            .filter(
                CompanyBillingCycle.company_id == company_id,
                CompanyBillingCycle.effective_date <= until,
            )
            .order_by(CompanyBillingCycle.effective_date.asc())
            .all()
        )

    def create(
        self,
        company_id: UUID,
        billing_cycle: str,
        effective_date: datetime,
        tenant: str = "default",
    ) -> CompanyBillingCycle:
        cycle = CompanyBillingCycle(
            company_id=company_id,
            billing_cycle=billing_cycle,
            effective_date=effective_date,
            tenant=tenant,
        )
        self.db.add(cycle)
        self.db.commit()
        self.db.refresh(cycle)
        return cycle
