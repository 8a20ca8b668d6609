import logging
from uuid import UUID

from billing_engine.repositories.bucket_repository import BucketRepository
from billing_engine.repositories.plan_repository import ActivePlan
from billing_engine.repositories.service_catalog_repository import ServiceCatalogRepository
from billing_engine.schemas.billing import BillingPeriod, BucketCharge
from billing_engine.services.charge_calculators.base import ChargeCalculator
from billing_engine.services.money import ceil_units, to_decimal

logger = logging.getLogger(__name__)


class BucketOverageCalculator(ChargeCalculator):
    """Overage hours beyond a bucket plan's pool.

    A plan without a bucket definition, or a period without a usage record,
    simply has no overage charge.
    """

    charge_type = "bucket"

    async def calculate(
        self, company_id: UUID, period: BillingPeriod, plan: ActivePlan
    ) -> list[BucketCharge]:
        bucket_repo = BucketRepository(self.db)
        bucket_plan = bucket_repo.get_plan(plan.plan_id)
        if bucket_plan is None:
            return []

        usage = bucket_repo.get_usage_overlapping(
            bucket_plan_id=bucket_plan.id,
            company_id=company_id,
            period_start=period.start_date,
            period_end=period.end_date,
        )
        if usage is None:
            return []

        company = self.company_repo.get_by_id(company_id)
        if company is None:
            return []

        service = None
        if usage.service_catalog_id is not None:
            service = ServiceCatalogRepository(self.db).get_by_id(usage.service_catalog_id)

        tax_region = (service.tax_region if service else None) or company.tax_region
        tax_rate = await self.tax_provider.get_company_tax_rate(tax_region, period.end_date)

        overage_hours = to_decimal(usage.overage_hours)
        overage_rate = ceil_units(bucket_plan.overage_rate)
        total = ceil_units(overage_hours * overage_rate)

        charge = BucketCharge(
            service_id=usage.service_catalog_id,
            service_name=str(service.service_name) if service else "Bucket Plan Hours",
            rate=overage_rate,
            total=total,
            hours_used=to_decimal(usage.hours_used),
            overage_hours=overage_hours,
            overage_rate=overage_rate,
            tax_rate=tax_rate,
            tax_amount=ceil_units(tax_rate * total),
            tax_region=tax_region,
        )
        logger.debug("Bucket charge for company %s: %s", company_id, charge)
        return [charge]
