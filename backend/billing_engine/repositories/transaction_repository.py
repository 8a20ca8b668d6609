from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from billing_engine.models.transaction import Transaction, TransactionStatus, TransactionType


class TransactionRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(
        self,
        company_id: UUID,
        invoice_id: UUID | None,
        amount: Decimal,
        transaction_type: TransactionType,
        description: str | None = None,
        balance_after: Decimal | None = None,
        tenant: str = "default",
    ) -> Transaction:
        """Stage a ledger entry; committed with the surrounding unit of work."""
        transaction = Transaction(
            tenant=tenant,
            company_id=company_id,
            invoice_id=invoice_id,
            amount=amount,
            type=transaction_type.value,
            status=TransactionStatus.COMPLETED.value,
            description=description,
            balance_after=balance_after,
        )
        self.db.add(transaction)
        self.db.flush()
        return transaction

    def get_by_invoice_id(self, invoice_id: UUID) -> list[Transaction]:
        return (
            self.db.query(Transaction)
            .filter(Transaction.invoice_id == invoice_id)
            .order_by(Transaction.created_at.asc())
            .all()
        )
