"""Resolution and validation of a company's billing cycle."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from billing_engine.core.config import settings
from billing_engine.core.exceptions import NotFoundError, PeriodSpansCycleChangeError
from billing_engine.models.shared import ensure_utc, utc_now
from billing_engine.repositories.billing_cycle_repository import BillingCycleRepository
from billing_engine.repositories.company_repository import CompanyRepository

logger = logging.getLogger(__name__)


def default_cycle_effective_date() -> datetime:
    return ensure_utc(
        datetime.fromisoformat(settings.DEFAULT_CYCLE_EFFECTIVE_DATE.replace("Z", "+00:00"))
    )


class BillingCycleService:
    def __init__(self, db: Session):
        self.db = db
        self.cycle_repo = BillingCycleRepository(db)
        self.company_repo = CompanyRepository(db)

    def get_billing_cycle(self, company_id: UUID, as_of: datetime | None = None) -> str:
        """Cycle type in effect for the company on ``as_of``.

        A company without any cycle record gets a default monthly cycle. If a
        concurrent request inserts it first, the existing record is re-read.
        """
        as_of = ensure_utc(as_of) if as_of is not None else utc_now()

        cycle = self.cycle_repo.get_effective(company_id, as_of)
        if cycle is not None:
            return str(cycle.billing_cycle)

        # Only later-dated cycles exist
        existing = self.cycle_repo.get_earliest(company_id)
        if existing is not None:
            return str(existing.billing_cycle)

        company = self.company_repo.get_by_id(company_id)
        if company is None:
            raise NotFoundError(f"Company {company_id} not found")

        try:
            created = self.cycle_repo.create(
                company_id=company_id,
                billing_cycle=settings.DEFAULT_BILLING_CYCLE,
                effective_date=default_cycle_effective_date(),
                tenant=str(company.tenant),
            )
        except IntegrityError:
            self.db.rollback()
            existing = self.cycle_repo.get_earliest(company_id)
            if existing is None:
                raise
            logger.info("Default billing cycle for company %s created concurrently", company_id)
            return str(existing.billing_cycle)

        logger.info("Created default %s billing cycle for company %s", created.billing_cycle, company_id)
        return str(created.billing_cycle)

    def validate_billing_period(
        self, company_id: UUID, period_start: datetime, period_end: datetime
    ) -> None:
        """Reject periods that cross a cycle change.

        Raises:
            PeriodSpansCycleChangeError: a change takes effect strictly inside
                ``(period_start, period_end)``.
        """
        period_start = ensure_utc(period_start)
        period_end = ensure_utc(period_end)

        current = None
        for cycle in self.cycle_repo.get_changes_until(company_id, period_end):
            effective = ensure_utc(cycle.effective_date)
            if effective <= period_start:
                current = cycle
            elif period_start < effective < period_end:
                raise PeriodSpansCycleChangeError(
                    "Invoice period cannot span billing cycle change "
                    f"(change effective {effective.isoformat()})"
                )

        if current is None:
            self.get_billing_cycle(company_id, period_start)
