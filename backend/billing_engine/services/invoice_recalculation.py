"""Re-derives an invoice's totals from its persisted line items."""

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from billing_engine.core.exceptions import NotFoundError
from billing_engine.models.company import Company
from billing_engine.models.discount import DiscountType
from billing_engine.models.invoice import Invoice, InvoiceItem
from billing_engine.models.shared import utc_now
from billing_engine.models.transaction import TransactionType
from billing_engine.repositories.company_repository import CompanyRepository
from billing_engine.repositories.invoice_repository import InvoiceRepository
from billing_engine.repositories.service_catalog_repository import ServiceCatalogRepository
from billing_engine.repositories.transaction_repository import TransactionRepository
from billing_engine.services.money import round_half_ceiling, to_decimal
from billing_engine.services.tax_service import TaxRateProvider

logger = logging.getLogger(__name__)


class InvoiceRecalculationService:
    """Rewrites item tax, discount amounts and invoice totals in one transaction.

    Regular items are processed before discount items so percentage discounts
    see a stable subtotal. Any failure rolls the whole recalculation back.
    Two recalculations of the same invoice must not run concurrently; callers
    serialize them.
    """

    def __init__(self, db: Session, tax_provider: TaxRateProvider):
        self.db = db
        self.tax_provider = tax_provider
        self.invoice_repo = InvoiceRepository(db)
        self.company_repo = CompanyRepository(db)
        self.service_repo = ServiceCatalogRepository(db)
        self.transaction_repo = TransactionRepository(db)

    async def recalculate_invoice(self, invoice_id: UUID) -> Invoice:
        invoice = self.invoice_repo.get_by_id(invoice_id)
        if invoice is None:
            raise NotFoundError(f"Invoice {invoice_id} not found")

        company = self.company_repo.get_by_id(invoice.company_id)
        if company is None:
            raise NotFoundError(f"Company {invoice.company_id} not found")

        items = self.invoice_repo.get_items(invoice_id)
        logger.info("Recalculating invoice %s (%d items)", invoice_id, len(items))

        try:
            subtotal = Decimal("0")
            total_tax = Decimal("0")

            for item in (i for i in items if not i.is_discount):
                net_amount, tax_amount = await self._recalculate_regular_item(item, company)
                subtotal = round_half_ceiling(subtotal + net_amount)
                total_tax = round_half_ceiling(total_tax + tax_amount)

            for item in (i for i in items if i.is_discount):
                net_amount = self._recalculate_discount_item(item, subtotal)
                subtotal = round_half_ceiling(subtotal + net_amount)

            final_subtotal = round_half_ceiling(subtotal)
            final_tax = round_half_ceiling(total_tax)
            final_total = round_half_ceiling(final_subtotal + final_tax)

            self.invoice_repo.update_totals(invoice, final_subtotal, final_tax, final_total)
            self.transaction_repo.add(
                company_id=invoice.company_id,
                invoice_id=invoice.id,
                amount=final_total,
                transaction_type=TransactionType.INVOICE_ADJUSTMENT,
                description=f"Recalculated invoice {invoice.invoice_number}",
                balance_after=final_total,
                tenant=str(invoice.tenant),
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception("Recalculation of invoice %s failed, rolled back", invoice_id)
            raise

        self.db.refresh(invoice)
        logger.info(
            "Invoice %s recalculated: subtotal %s, tax %s, total %s",
            invoice_id,
            final_subtotal,
            final_tax,
            final_total,
        )
        return invoice

    async def _recalculate_regular_item(
        self, item: InvoiceItem, company: Company
    ) -> tuple[Decimal, Decimal]:
        service = self.service_repo.get_by_id(item.service_id) if item.service_id else None
        net_amount = round_half_ceiling(item.net_amount)
        tax_amount = Decimal("0")
        tax_rate = Decimal("0")

        if not company.is_tax_exempt and (service is None or service.is_taxable is not False):
            result = await self.tax_provider.calculate_tax(company.id, net_amount, utc_now())
            tax_amount = round_half_ceiling(result.tax_amount)
            tax_rate = result.tax_rate

        item.tax_amount = tax_amount  # type: ignore[assignment]
        item.tax_rate = tax_rate  # type: ignore[assignment]
        item.tax_region = (service.tax_region if service else None) or company.tax_region
        item.total_price = net_amount + tax_amount  # type: ignore[assignment]
        self.db.flush()
        return net_amount, tax_amount

    def _recalculate_discount_item(self, item: InvoiceItem, subtotal: Decimal) -> Decimal:
        """Rewrite a discount item and return its (negative) net amount.

        Fixed discounts are forced to ``-abs(net_amount)``, so a fixed discount
        stored as a positive amount is still subtracted.
        """
        normalized = -abs(to_decimal(item.net_amount))

        if item.discount_type == DiscountType.PERCENTAGE.value:
            if item.applies_to_item_id:
                target = self.invoice_repo.get_item(item.applies_to_item_id)
                base = to_decimal(target.net_amount) if target is not None else Decimal("0")
            else:
                base = subtotal
            percentage = to_decimal(item.discount_percentage)
            net_amount = -round_half_ceiling(base * percentage / Decimal(100))
            item.discount_percentage = percentage  # type: ignore[assignment]
        else:
            net_amount = round_half_ceiling(normalized)
            item.discount_percentage = None  # type: ignore[assignment]

        item.net_amount = net_amount  # type: ignore[assignment]
        item.unit_price = net_amount  # type: ignore[assignment]
        item.total_price = net_amount  # type: ignore[assignment]
        item.tax_amount = Decimal("0")  # type: ignore[assignment]
        item.tax_rate = Decimal("0")  # type: ignore[assignment]
        self.db.flush()
        logger.debug(
            "Discount item %s (%s) -> %s", item.id, item.discount_type, net_amount
        )
        return net_amount
