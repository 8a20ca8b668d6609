from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import ClassVar
from uuid import UUID

from sqlalchemy.orm import Session

from billing_engine.core.exceptions import NotFoundError
from billing_engine.models.company import Company
from billing_engine.repositories.company_repository import CompanyRepository
from billing_engine.repositories.plan_repository import ActivePlan
from billing_engine.schemas.billing import BillingCharge, BillingPeriod
from billing_engine.services.tax_service import TaxRateProvider


class ChargeCalculator(ABC):
    """Computes one kind of charge for a single plan over a period.

    Calculators never prorate and share no state, so the engine can run all
    of them for a plan concurrently.
    """

    charge_type: ClassVar[str]

    def __init__(self, db: Session, tax_provider: TaxRateProvider):
        self.db = db
        self.tax_provider = tax_provider
        self.company_repo = CompanyRepository(db)

    def _get_company(self, company_id: UUID) -> Company:
        company = self.company_repo.get_by_id(company_id)
        if company is None:
            raise NotFoundError(f"Company {company_id} not found")
        return company

    @abstractmethod
    async def calculate(
        self, company_id: UUID, period: BillingPeriod, plan: ActivePlan
    ) -> Sequence[BillingCharge]: ...
