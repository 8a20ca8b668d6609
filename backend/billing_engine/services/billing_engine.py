"""Billing calculation engine.

Pipeline for ``calculate_billing``: idempotency guard, cycle validation,
plan loading, the four charge calculators per plan (run concurrently),
proration of fixed charges, aggregation, then discounts and adjustments.
``recalculate_invoice`` and ``rollover_unapproved_time`` are separate entry
points sharing the same rounding and tax conventions.
"""

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from typing import assert_never
from uuid import UUID

from sqlalchemy.orm import Session

from billing_engine.core.exceptions import NoApplicablePlanError, NotFoundError
from billing_engine.models.invoice import Invoice
from billing_engine.models.shared import ensure_utc
from billing_engine.repositories.company_repository import CompanyRepository
from billing_engine.repositories.invoice_repository import InvoiceRepository
from billing_engine.repositories.plan_repository import ActivePlan, PlanRepository
from billing_engine.schemas.billing import (
    BillingCharge,
    BillingPeriod,
    BillingResult,
    BucketCharge,
    FixedPriceCharge,
    TimeBasedCharge,
    UsageBasedCharge,
)
from billing_engine.services.billing_cycle_service import BillingCycleService
from billing_engine.services.billing_periods import prorate_fixed_charges
from billing_engine.services.charge_calculators.factory import get_charge_calculators
from billing_engine.services.discount_service import DiscountService
from billing_engine.services.invoice_recalculation import InvoiceRecalculationService
from billing_engine.services.tax_service import TaxRateProvider, get_tax_rate_provider
from billing_engine.services.time_rollover import TimeRolloverService

logger = logging.getLogger(__name__)


def charge_label(charge: BillingCharge) -> str:
    match charge:
        case FixedPriceCharge():
            return "fixed"
        case TimeBasedCharge():
            return "hourly"
        case UsageBasedCharge():
            return "usage"
        case BucketCharge():
            return "bucket"
        case _:
            assert_never(charge)


def sum_totals(charges: Sequence[BillingCharge]) -> Decimal:
    return sum((charge.total for charge in charges), Decimal("0"))


class BillingEngine:
    """Computes what a company owes for a billing period.

    The session and tax rate provider are injected; the engine holds no
    state between requests.
    """

    def __init__(self, db: Session, tax_provider: TaxRateProvider | None = None):
        self.db = db
        self.tax_provider = tax_provider if tax_provider is not None else get_tax_rate_provider(db)
        self.company_repo = CompanyRepository(db)
        self.invoice_repo = InvoiceRepository(db)
        self.plan_repo = PlanRepository(db)
        self.cycle_service = BillingCycleService(db)
        self.discount_service = DiscountService(db)

    def has_existing_invoice_for_cycle(self, company_id: UUID, billing_cycle_id: UUID) -> bool:
        return self.invoice_repo.exists_for_cycle(company_id, billing_cycle_id)

    async def calculate_billing(
        self,
        company_id: UUID,
        start_date: datetime,
        end_date: datetime,
        billing_cycle_id: UUID,
    ) -> BillingResult:
        """Compute every charge owed by a company for ``[start_date, end_date)``.

        Returns an empty result when the billing cycle was already invoiced.

        Raises:
            NotFoundError: the company does not exist.
            PeriodSpansCycleChangeError: a cycle change falls inside the period.
            NoApplicablePlanError: no active plan overlaps the period.
        """
        period = BillingPeriod(start_date=ensure_utc(start_date), end_date=ensure_utc(end_date))

        company = self.company_repo.get_by_id(company_id)
        if company is None:
            raise NotFoundError(f"Company {company_id} not found")

        logger.info(
            "Calculating billing for company %s (%s) from %s to %s",
            company.company_name,
            company_id,
            period.start_date.isoformat(),
            period.end_date.isoformat(),
        )

        if self.has_existing_invoice_for_cycle(company_id, billing_cycle_id):
            logger.info(
                "Company %s already invoiced for billing cycle %s", company_id, billing_cycle_id
            )
            return BillingResult.empty()

        self.cycle_service.validate_billing_period(company_id, period.start_date, period.end_date)

        billing_cycle = self.cycle_service.get_billing_cycle(company_id, period.start_date)
        plans = self.plan_repo.get_active_for_period(company_id, period.start_date, period.end_date)
        if not plans:
            raise NoApplicablePlanError(
                f"No active billing plans found for company {company_id} in the given period"
            )
        logger.info(
            "Found %d active billing plan(s) for company %s, billing cycle %s",
            len(plans),
            company_id,
            billing_cycle,
        )

        charges: list[BillingCharge] = []
        for plan in plans:
            charges.extend(await self._calculate_plan_charges(company_id, period, plan, billing_cycle))

        total_amount = sum_totals(charges)
        result = self.discount_service.apply_discounts_and_adjustments(
            company_id, period, charges, total_amount
        )
        logger.info(
            "Company %s: total %s, %d discount(s), %d adjustment(s), final amount %s",
            company_id,
            result.total_amount,
            len(result.discounts),
            len(result.adjustments),
            result.final_amount,
        )
        return result

    async def _calculate_plan_charges(
        self,
        company_id: UUID,
        period: BillingPeriod,
        plan: ActivePlan,
        billing_cycle: str,
    ) -> list[BillingCharge]:
        logger.info("Processing billing plan %s", plan.plan_name)

        calculators = get_charge_calculators(self.db, self.tax_provider)
        results = await asyncio.gather(
            *(calculator.calculate(company_id, period, plan) for calculator in calculators)
        )
        for calculator, calculated in zip(calculators, results):
            logger.debug(
                "Plan %s: %d %s charge(s)", plan.plan_name, len(calculated), calculator.charge_type
            )

        fixed: list[FixedPriceCharge] = []
        other: list[BillingCharge] = []
        for charge in (c for calculated in results for c in calculated):
            match charge:
                case FixedPriceCharge():
                    fixed.append(charge)
                case TimeBasedCharge() | UsageBasedCharge() | BucketCharge():
                    other.append(charge)
                case _:
                    assert_never(charge)

        prorated = prorate_fixed_charges(fixed, period, plan.start_date, billing_cycle)
        logger.info(
            "Plan %s: fixed charges %s before proration, %s after",
            plan.plan_name,
            sum_totals(fixed),
            sum_totals(prorated),
        )

        plan_charges: list[BillingCharge] = [*prorated, *other]
        for charge in plan_charges:
            logger.debug("%s - %s: %s", charge_label(charge), charge.service_name, charge.total)
        return plan_charges

    async def recalculate_invoice(self, invoice_id: UUID) -> Invoice:
        return await InvoiceRecalculationService(self.db, self.tax_provider).recalculate_invoice(
            invoice_id
        )

    def rollover_unapproved_time(
        self,
        company_id: UUID,
        current_period_end: datetime,
        next_period_start: datetime,
    ) -> int:
        return TimeRolloverService(self.db).rollover_unapproved_time(
            company_id, current_period_end, next_period_start
        )
