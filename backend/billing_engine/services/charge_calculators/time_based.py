from decimal import Decimal
from uuid import UUID

from billing_engine.models.shared import ensure_utc
from billing_engine.repositories.plan_repository import ActivePlan
from billing_engine.repositories.time_entry_repository import TimeEntryRepository
from billing_engine.schemas.billing import BillingPeriod, TimeBasedCharge
from billing_engine.services.charge_calculators.base import ChargeCalculator
from billing_engine.services.money import ceil_units, rate_or_default, round_half_ceiling

_SECONDS_PER_HOUR = Decimal(3600)


class TimeBasedCalculator(ChargeCalculator):
    """Approved hours: ``rate = ceil(rate)``, ``total = round(hours * rate)``."""

    charge_type = "time"

    async def calculate(
        self, company_id: UUID, period: BillingPeriod, plan: ActivePlan
    ) -> list[TimeBasedCharge]:
        company = self._get_company(company_id)
        entries = TimeEntryRepository(self.db).get_billable(
            company_id=company_id,
            plan_id=plan.plan_id,
            service_category=plan.service_category,
            period_start=period.start_date,
            period_end=period.end_date,
        )

        charges = []
        for billable in entries:
            entry = billable.entry
            elapsed = ensure_utc(entry.end_time) - ensure_utc(entry.start_time)
            duration = Decimal(str(elapsed.total_seconds())) / _SECONDS_PER_HOUR
            rate = ceil_units(rate_or_default(billable.custom_rate, billable.service.default_rate))
            charges.append(
                TimeBasedCharge(
                    service_id=billable.service.id,
                    service_name=str(billable.service.service_name),
                    user_id=entry.user_id,
                    entry_id=entry.id,
                    duration=duration,
                    rate=rate,
                    total=round_half_ceiling(duration * rate),
                    tax_region=billable.service.tax_region or company.tax_region,
                )
            )
        return charges
