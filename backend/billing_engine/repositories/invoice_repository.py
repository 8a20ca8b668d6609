from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from billing_engine.models.invoice import Invoice, InvoiceItem


class InvoiceRepository:
    def __init__(self, db: Session):
        self.db = db

    def _generate_invoice_number(self) -> str:
        """Generate a unique invoice number."""
        today = datetime.now().strftime("%Y%m%d")
        prefix = f"INV-{today}-"

        result = (
            self.db.query(Invoice.invoice_number)
            .filter(Invoice.invoice_number.like(f"{prefix}%"))
            .order_by(Invoice.invoice_number.desc())
            .first()
        )

        if result:
            # Extract number from INV-YYYYMMDD-XXXX format
            try:
                new_num = int(result[0].split("-")[-1]) + 1
            except (ValueError, IndexError):
                new_num = 1
        else:
            new_num = 1

        return f"{prefix}{new_num:04d}"

    def get_by_id(self, invoice_id: UUID) -> Invoice | None:
        return self.db.query(Invoice).filter(Invoice.id == invoice_id).first()

    def get_for_cycle(self, company_id: UUID, billing_cycle_id: UUID) -> Invoice | None:
        return (
            self.db.query(Invoice)
            .filter(
                Invoice.company_id == company_id,
                Invoice.billing_cycle_id == billing_cycle_id,
            )
            .first()
        )

    def exists_for_cycle(self, company_id: UUID, billing_cycle_id: UUID) -> bool:
        return self.get_for_cycle(company_id, billing_cycle_id) is not None

    def get_items(self, invoice_id: UUID) -> list[InvoiceItem]:
        """Items of an invoice in creation order."""
        return (
            self.db.query(InvoiceItem)
            .filter(InvoiceItem.invoice_id == invoice_id)
            .order_by(InvoiceItem.created_at.asc())
            .all()
        )

    def get_item(self, item_id: UUID) -> InvoiceItem | None:
        return self.db.query(InvoiceItem).filter(InvoiceItem.id == item_id).first()

    def add(self, **fields: Any) -> Invoice:
        """Stage a new invoice without committing."""
        fields.setdefault("invoice_number", self._generate_invoice_number())
        invoice = Invoice(**fields)
        self.db.add(invoice)
        self.db.flush()
        return invoice

    def add_item(self, invoice_id: UUID, **fields: Any) -> InvoiceItem:
        """Stage a new item without committing."""
        item = InvoiceItem(invoice_id=invoice_id, **fields)
        self.db.add(item)
        self.db.flush()
        return item

    def update_totals(
        self,
        invoice: Invoice,
        subtotal: Decimal,
        tax: Decimal,
        total_amount: Decimal,
    ) -> None:
        invoice.subtotal = subtotal  # type: ignore[assignment]
        invoice.tax = tax  # type: ignore[assignment]
        invoice.total_amount = total_amount  # type: ignore[assignment]
        self.db.flush()
