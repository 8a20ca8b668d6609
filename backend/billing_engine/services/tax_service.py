"""Tax rate lookups consumed by the billing engine.

The engine treats the provider as authoritative and never caches its answers
across requests. Two providers exist: one reading the ``tax_rates`` table and
one calling an external tax service over HTTP.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol
from uuid import UUID

import httpx
from sqlalchemy.orm import Session

from billing_engine.core.config import settings
from billing_engine.core.exceptions import NotFoundError, TaxServiceError
from billing_engine.core.retry import NO_RETRY, RetryPolicy
from billing_engine.repositories.company_repository import CompanyRepository
from billing_engine.repositories.tax_rate_repository import TaxRateRepository
from billing_engine.services.money import to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaxCalculationResult:
    """Tax owed on a net amount and the rate (a fraction) used."""

    tax_amount: Decimal
    tax_rate: Decimal


class TaxRateProvider(Protocol):
    async def calculate_tax(
        self, company_id: UUID, net_amount: Decimal, as_of: datetime
    ) -> TaxCalculationResult: ...

    async def get_company_tax_rate(self, region: str | None, as_of: datetime) -> Decimal: ...


class DatabaseTaxRateProvider:
    """Resolves rates from the ``tax_rates`` table."""

    def __init__(self, db: Session):
        self.db = db
        self.company_repo = CompanyRepository(db)
        self.tax_rate_repo = TaxRateRepository(db)

    async def get_company_tax_rate(self, region: str | None, as_of: datetime) -> Decimal:
        if not region:
            return Decimal("0")
        tax_rate = self.tax_rate_repo.get_effective(region, as_of)
        if tax_rate is None:
            logger.warning("No tax rate configured for region %s as of %s", region, as_of)
            return Decimal("0")
        return to_decimal(tax_rate.rate)

    async def calculate_tax(
        self, company_id: UUID, net_amount: Decimal, as_of: datetime
    ) -> TaxCalculationResult:
        company = self.company_repo.get_by_id(company_id)
        if company is None:
            raise NotFoundError(f"Company {company_id} not found")

        if company.is_tax_exempt:
            return TaxCalculationResult(tax_amount=Decimal("0"), tax_rate=Decimal("0"))

        rate = await self.get_company_tax_rate(company.tax_region, as_of)
        return TaxCalculationResult(tax_amount=to_decimal(net_amount) * rate, tax_rate=rate)


class HttpTaxRateProvider:
    """Client for an external tax rate service.

    Endpoints:
        GET  /rates?region=<region>&date=<iso>      -> {"rate": "0.0825"}
        POST /calculate {company_id, amount, date}  -> {"tax_amount": ..., "tax_rate": ...}

    Retries follow the ``RetryPolicy`` supplied by the caller.
    """

    def __init__(
        self,
        base_url: str,
        retry_policy: RetryPolicy = NO_RETRY,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.retry_policy = retry_policy
        self.timeout = timeout
        self._client = client

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        async def attempt() -> dict[str, Any]:
            if self._client is not None:
                resp = await self._client.request(method, f"{self.base_url}{path}", **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.request(method, f"{self.base_url}{path}", **kwargs)
            resp.raise_for_status()
            body: dict[str, Any] = resp.json()
            return body

        try:
            return await self.retry_policy.run(attempt)
        except httpx.HTTPError as exc:
            logger.warning("Tax service request %s %s failed: %s", method, path, exc)
            raise TaxServiceError(f"Tax service request failed: {exc}") from exc

    async def get_company_tax_rate(self, region: str | None, as_of: datetime) -> Decimal:
        if not region:
            return Decimal("0")
        body = await self._request(
            "GET", "/rates", params={"region": region, "date": as_of.isoformat()}
        )
        return to_decimal(body.get("rate"))

    async def calculate_tax(
        self, company_id: UUID, net_amount: Decimal, as_of: datetime
    ) -> TaxCalculationResult:
        body = await self._request(
            "POST",
            "/calculate",
            json={
                "company_id": str(company_id),
                "amount": str(net_amount),
                "date": as_of.isoformat(),
            },
        )
        return TaxCalculationResult(
            tax_amount=to_decimal(body.get("tax_amount")),
            tax_rate=to_decimal(body.get("tax_rate")),
        )


def get_tax_rate_provider(db: Session) -> TaxRateProvider:
    """Return the configured provider: HTTP when a service URL is set."""
    if settings.tax_service_enabled:
        policy = RetryPolicy(
            max_attempts=settings.TAX_SERVICE_MAX_ATTEMPTS,
            backoff_seconds=settings.TAX_SERVICE_BACKOFF_SECONDS,
            retry_on=(httpx.TransportError, httpx.HTTPStatusError),
        )
        return HttpTaxRateProvider(
            settings.TAX_SERVICE_URL,
            retry_policy=policy,
            timeout=settings.TAX_SERVICE_TIMEOUT_SECONDS,
        )
    return DatabaseTaxRateProvider(db)
