"""Persists a billing result as an invoice for one billing cycle."""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, assert_never
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from billing_engine.core.exceptions import NotFoundError
from billing_engine.models.discount import DiscountType
from billing_engine.models.invoice import Invoice, InvoiceStatus
from billing_engine.models.shared import ensure_utc, utc_now
from billing_engine.models.transaction import TransactionType
from billing_engine.repositories.company_repository import CompanyRepository
from billing_engine.repositories.invoice_repository import InvoiceRepository
from billing_engine.repositories.time_entry_repository import TimeEntryRepository
from billing_engine.repositories.transaction_repository import TransactionRepository
from billing_engine.repositories.usage_repository import UsageRepository
from billing_engine.schemas.billing import (
    AppliedDiscount,
    BillingCharge,
    BucketCharge,
    FixedPriceCharge,
    TimeBasedCharge,
    UsageBasedCharge,
)
from billing_engine.services.billing_engine import BillingEngine
from billing_engine.services.money import round_half_ceiling

logger = logging.getLogger(__name__)

NET_PAYMENT_TERM_DAYS = 30


def _charge_item_fields(charge: BillingCharge) -> dict[str, Any]:
    match charge:
        case FixedPriceCharge() | UsageBasedCharge():
            quantity = charge.quantity
        case TimeBasedCharge():
            quantity = charge.duration
        case BucketCharge():
            quantity = charge.overage_hours
        case _:
            assert_never(charge)

    return {
        "service_id": charge.service_id,
        "description": charge.service_name,
        "quantity": quantity,
        "unit_price": charge.rate,
        "net_amount": charge.total,
        "tax_amount": charge.tax_amount,
        "tax_rate": charge.tax_rate,
        "tax_region": charge.tax_region,
        "total_price": charge.total + charge.tax_amount,
    }


def _discount_item_fields(discount: AppliedDiscount) -> dict[str, Any]:
    net_amount = -round_half_ceiling(discount.amount)
    fields: dict[str, Any] = {
        "description": discount.discount_name,
        "quantity": Decimal("1"),
        "unit_price": net_amount,
        "net_amount": net_amount,
        "total_price": net_amount,
        "is_discount": True,
        "discount_type": discount.discount_type.value,
    }
    if discount.discount_type == DiscountType.PERCENTAGE:
        fields["discount_percentage"] = discount.value * Decimal(100)
    return fields


class InvoiceGenerationService:
    """Generates the single invoice for a company's billing cycle."""

    def __init__(self, db: Session, engine: BillingEngine | None = None):
        self.db = db
        self.engine = engine if engine is not None else BillingEngine(db)
        self.company_repo = CompanyRepository(db)
        self.invoice_repo = InvoiceRepository(db)
        self.time_entry_repo = TimeEntryRepository(db)
        self.usage_repo = UsageRepository(db)
        self.transaction_repo = TransactionRepository(db)

    async def generate_invoice(
        self,
        company_id: UUID,
        period_start: datetime,
        period_end: datetime,
        billing_cycle_id: UUID,
    ) -> Invoice:
        """Calculate billing and persist it as a draft invoice.

        Returns the existing invoice if the cycle was already invoiced,
        including when a concurrent request wins the insert.
        """
        existing = self.invoice_repo.get_for_cycle(company_id, billing_cycle_id)
        if existing is not None:
            return existing

        company = self.company_repo.get_by_id(company_id)
        if company is None:
            raise NotFoundError(f"Company {company_id} not found")

        result = await self.engine.calculate_billing(
            company_id, period_start, period_end, billing_cycle_id
        )

        now = utc_now()
        try:
            invoice = self.invoice_repo.add(
                tenant=company.tenant,
                company_id=company_id,
                billing_cycle_id=billing_cycle_id,
                status=InvoiceStatus.DRAFT.value,
                billing_period_start=ensure_utc(period_start),
                billing_period_end=ensure_utc(period_end),
                invoice_date=now,
                due_date=now + timedelta(days=NET_PAYMENT_TERM_DAYS),
            )
            # Distinct creation timestamps keep item order stable
            created_at = now
            for charge in result.charges:
                self.invoice_repo.add_item(
                    invoice.id, created_at=created_at, **_charge_item_fields(charge)
                )
                created_at += timedelta(microseconds=1)
            for discount in result.discounts:
                self.invoice_repo.add_item(
                    invoice.id, created_at=created_at, **_discount_item_fields(discount)
                )
                created_at += timedelta(microseconds=1)

            self.time_entry_repo.mark_invoiced(
                [c.entry_id for c in result.charges if isinstance(c, TimeBasedCharge)]
            )
            self.usage_repo.mark_invoiced(
                [c.usage_id for c in result.charges if isinstance(c, UsageBasedCharge)]
            )
            self.transaction_repo.add(
                company_id=company_id,
                invoice_id=invoice.id,
                amount=round_half_ceiling(result.final_amount),
                transaction_type=TransactionType.INVOICE_GENERATED,
                description=f"Generated invoice {invoice.invoice_number}",
                tenant=str(company.tenant),
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = self.invoice_repo.get_for_cycle(company_id, billing_cycle_id)
            if existing is None:
                raise
            logger.info(
                "Invoice for company %s cycle %s created concurrently", company_id, billing_cycle_id
            )
            return existing

        logger.info(
            "Generated invoice %s for company %s with %d item(s)",
            invoice.invoice_number,
            company_id,
            len(result.charges) + len(result.discounts),
        )
        return await self.engine.recalculate_invoice(invoice.id)
