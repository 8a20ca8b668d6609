from sqlalchemy.orm import Session

from billing_engine.services.charge_calculators.base import ChargeCalculator
from billing_engine.services.charge_calculators.bucket import BucketOverageCalculator
from billing_engine.services.charge_calculators.fixed_price import FixedPriceCalculator
from billing_engine.services.charge_calculators.time_based import TimeBasedCalculator
from billing_engine.services.charge_calculators.usage_based import UsageBasedCalculator
from billing_engine.services.tax_service import TaxRateProvider

# Order here is the order charges appear in a billing result for each plan.
_CALCULATORS: tuple[type[ChargeCalculator], ...] = (
    FixedPriceCalculator,
    TimeBasedCalculator,
    UsageBasedCalculator,
    BucketOverageCalculator,
)


def get_charge_calculators(db: Session, tax_provider: TaxRateProvider) -> list[ChargeCalculator]:
    return [calculator(db, tax_provider) for calculator in _CALCULATORS]
