"""Billing cycle lengths and proration of fixed charges."""

import calendar as cal
import logging
import math
from datetime import datetime
from decimal import Decimal

from billing_engine.models.billing_cycle import BillingCycleType
from billing_engine.models.shared import ensure_utc
from billing_engine.schemas.billing import BillingPeriod, FixedPriceCharge
from billing_engine.services.money import ceil_units

logger = logging.getLogger(__name__)

# Fixed approximations for the longer cycles; monthly uses the calendar month.
_CYCLE_DAYS = {
    BillingCycleType.WEEKLY.value: 7,
    BillingCycleType.BI_WEEKLY.value: 14,
    BillingCycleType.QUARTERLY.value: 91,
    BillingCycleType.SEMI_ANNUALLY.value: 182,
    BillingCycleType.ANNUALLY.value: 365,
}


def days_in_month(reference: datetime) -> int:
    reference = ensure_utc(reference)
    return cal.monthrange(reference.year, reference.month)[1]


def cycle_length_days(billing_cycle: str, period_start: datetime) -> int:
    """Nominal length of one cycle; unknown cycles count as monthly."""
    days = _CYCLE_DAYS.get(billing_cycle)
    if days is None:
        return days_in_month(period_start)
    return days


def calendar_days_between(end: datetime, start: datetime) -> int:
    """Whole calendar days from ``start`` to ``end`` (UTC dates, not elapsed time)."""
    return (ensure_utc(end).date() - ensure_utc(start).date()).days


def proration_days(
    period: BillingPeriod,
    plan_start_date: datetime,
    billing_cycle: str,
) -> tuple[int, int]:
    """Billed days and nominal cycle length for a period."""
    effective_start = max(ensure_utc(plan_start_date), ensure_utc(period.start_date))
    cycle_length = cycle_length_days(billing_cycle, period.start_date)
    actual_days = calendar_days_between(period.end_date, effective_start)
    logger.debug(
        "Proration: effective start %s, %d of %d days",
        effective_start.isoformat(),
        actual_days,
        cycle_length,
    )
    return actual_days, cycle_length


def prorate_fixed_charges(
    charges: list[FixedPriceCharge],
    period: BillingPeriod,
    plan_start_date: datetime,
    billing_cycle: str,
) -> list[FixedPriceCharge]:
    """Scale fixed charges to the part of the cycle the period covers.

    ``factor = actual_days / cycle_length`` is a binary float and
    ``total = ceil(ceil(total) * factor)``. The inner ceiling lifts a fractional
    total from the rate calculation to a whole unit first. With the float factor
    9 of 31 days on 3100 comes to 901, not 900.
    """
    actual_days, cycle_length = proration_days(period, plan_start_date, billing_cycle)
    factor = actual_days / cycle_length
    prorated = []
    for charge in charges:
        total = Decimal(math.ceil(float(ceil_units(charge.total)) * factor))
        logger.debug("Prorated %s from %s to %s", charge.service_name, charge.total, total)
        prorated.append(charge.model_copy(update={"total": total}))
    return prorated
