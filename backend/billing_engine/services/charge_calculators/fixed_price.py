import logging
from decimal import Decimal
from uuid import UUID

from billing_engine.repositories.plan_repository import ActivePlan, PlanRepository
from billing_engine.schemas.billing import BillingPeriod, FixedPriceCharge
from billing_engine.services.charge_calculators.base import ChargeCalculator
from billing_engine.services.money import rate_or_default, to_decimal

logger = logging.getLogger(__name__)


class FixedPriceCalculator(ChargeCalculator):
    """Flat fees: ``total = rate * quantity``, taxed at the service's rate."""

    charge_type = "fixed"

    async def calculate(
        self, company_id: UUID, period: BillingPeriod, plan: ActivePlan
    ) -> list[FixedPriceCharge]:
        company = self._get_company(company_id)
        plan_services = PlanRepository(self.db).get_fixed_services(
            company_id, plan.company_billing_plan_id
        )

        charges = []
        for plan_service in plan_services:
            service = plan_service.service
            rate = rate_or_default(plan_service.custom_rate, service.default_rate)
            quantity = Decimal(plan_service.quantity)
            total = rate * quantity

            if not company.is_tax_exempt and service.is_taxable is not False:
                tax_rate = to_decimal(service.tax_rate)
                tax_amount = total * tax_rate
            else:
                tax_rate = Decimal("0")
                tax_amount = Decimal("0")

            charges.append(
                FixedPriceCharge(
                    service_id=service.id,
                    service_name=str(service.service_name),
                    quantity=quantity,
                    rate=rate,
                    total=total,
                    tax_rate=tax_rate,
                    tax_amount=tax_amount,
                    tax_region=service.tax_region or company.tax_region,
                )
            )

        logger.debug("Fixed charges for company %s plan %s: %s", company_id, plan.plan_name, charges)
        return charges
