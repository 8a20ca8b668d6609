from decimal import Decimal
from uuid import UUID

from billing_engine.repositories.plan_repository import ActivePlan
from billing_engine.repositories.usage_repository import UsageRepository
from billing_engine.schemas.billing import BillingPeriod, UsageBasedCharge
from billing_engine.services.charge_calculators.base import ChargeCalculator
from billing_engine.services.money import ceil_units, rate_or_default, to_decimal


class UsageBasedCalculator(ChargeCalculator):
    """Metered usage: ``rate = ceil(rate)``, ``total = ceil(quantity * rate)``."""

    charge_type = "usage"

    async def calculate(
        self, company_id: UUID, period: BillingPeriod, plan: ActivePlan
    ) -> list[UsageBasedCharge]:
        company = self._get_company(company_id)
        records = UsageRepository(self.db).get_billable(
            company_id=company_id,
            plan_id=plan.plan_id,
            service_category=plan.service_category,
            period_start=period.start_date,
            period_end=period.end_date,
        )

        charges = []
        for billable in records:
            quantity: Decimal = to_decimal(billable.record.quantity)
            rate = ceil_units(rate_or_default(billable.custom_rate, billable.service.default_rate))
            charges.append(
                UsageBasedCharge(
                    service_id=billable.service.id,
                    service_name=str(billable.service.service_name),
                    usage_id=billable.record.id,
                    quantity=quantity,
                    rate=rate,
                    total=ceil_units(quantity * rate),
                    tax_region=billable.service.tax_region or company.tax_region,
                )
            )
        return charges
