"""Tests for persisting billing results as invoices."""

import uuid
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError

from billing_engine.core.exceptions import NoApplicablePlanError, NotFoundError
from billing_engine.models.invoice import Invoice, InvoiceStatus
from billing_engine.models.time_entry import TimeEntry
from billing_engine.models.transaction import Transaction, TransactionType
from billing_engine.models.usage import UsageRecord
from billing_engine.repositories.invoice_repository import InvoiceRepository
from billing_engine.repositories.transaction_repository import TransactionRepository
from billing_engine.services.billing_engine import BillingEngine
from billing_engine.services.invoice_generation import InvoiceGenerationService
from tests.conftest import (
    add_plan_service,
    assign_plan,
    create_company,
    create_discount,
    create_invoice,
    create_plan,
    create_service,
    create_ticket,
    create_time_entry,
    create_usage,
    dt,
)


@pytest.fixture
def billed_company(db_session):
    """A company with a fixed plan, an hourly plan and one billable entry of each kind."""
    company = create_company(db_session)

    fixed_service = create_service(db_session, "Managed Backup", "Fixed", 10000)
    fixed_plan = create_plan(db_session, "Managed Services", "Fixed")
    add_plan_service(db_session, fixed_plan, fixed_service)
    assign_plan(db_session, company, fixed_plan, dt(2024, 1, 1))

    time_service = create_service(db_session, "Consulting", "Time", 10000)
    usage_service = create_service(db_session, "Storage GB", "Usage", 100)
    hourly_plan = create_plan(db_session, "Consulting Hours", "Hourly")
    add_plan_service(db_session, hourly_plan, time_service)
    add_plan_service(db_session, hourly_plan, usage_service)
    assign_plan(db_session, company, hourly_plan, dt(2024, 2, 1))

    create_time_entry(
        db_session,
        create_ticket(db_session, company),
        time_service,
        dt(2024, 4, 2, 9),
        dt(2024, 4, 2, 11, 30),
    )
    create_usage(db_session, company, usage_service, 50, dt(2024, 4, 10))
    create_discount(db_session, company, fixed_plan, "percentage", "0.1", dt(2024, 1, 1))
    return company


def _service(db, tax_provider):
    return InvoiceGenerationService(db, BillingEngine(db, tax_provider))


class TestGenerateInvoice:
    @pytest.mark.asyncio
    async def test_persists_items_and_recalculated_totals(
        self, db_session, tax_provider, billed_company
    ):
        cycle_id = uuid.uuid4()

        invoice = await _service(db_session, tax_provider).generate_invoice(
            billed_company.id, dt(2024, 4, 1), dt(2024, 5, 1), cycle_id
        )

        assert invoice.status == InvoiceStatus.DRAFT.value
        assert invoice.billing_cycle_id == cycle_id
        assert invoice.invoice_number.startswith("INV-")
        assert invoice.due_date is not None

        items = InvoiceRepository(db_session).get_items(invoice.id)
        regular = [i for i in items if not i.is_discount]
        discounts = [i for i in items if i.is_discount]
        # hourly plan (newer) first: time, usage; then fixed
        assert [i.description for i in regular] == ["Consulting", "Storage GB", "Managed Backup"]
        assert [i.net_amount for i in regular] == [
            Decimal("25000"),
            Decimal("5000"),
            Decimal("10000"),
        ]
        assert regular[0].quantity == Decimal("2.5")
        assert len(discounts) == 1
        assert discounts[0].discount_type == "percentage"
        assert discounts[0].discount_percentage == Decimal("10")
        assert discounts[0].net_amount == Decimal("-4000")

        # subtotal 40000 - 4000, tax 10% of the regular items
        assert invoice.subtotal == Decimal("36000")
        assert invoice.tax == Decimal("4000")
        assert invoice.total_amount == Decimal("40000")

    @pytest.mark.asyncio
    async def test_marks_time_and_usage_invoiced(self, db_session, tax_provider, billed_company):
        await _service(db_session, tax_provider).generate_invoice(
            billed_company.id, dt(2024, 4, 1), dt(2024, 5, 1), uuid.uuid4()
        )

        db_session.expire_all()
        assert all(e.invoiced for e in db_session.query(TimeEntry).all())
        assert all(u.invoiced for u in db_session.query(UsageRecord).all())

    @pytest.mark.asyncio
    async def test_records_ledger_entries(self, db_session, tax_provider, billed_company):
        invoice = await _service(db_session, tax_provider).generate_invoice(
            billed_company.id, dt(2024, 4, 1), dt(2024, 5, 1), uuid.uuid4()
        )

        transactions = TransactionRepository(db_session).get_by_invoice_id(invoice.id)
        assert [t.type for t in transactions] == [
            TransactionType.INVOICE_GENERATED.value,
            TransactionType.INVOICE_ADJUSTMENT.value,
        ]
        assert transactions[0].amount == Decimal("36000")
        assert transactions[1].amount == Decimal("40000")

    @pytest.mark.asyncio
    async def test_same_cycle_returns_existing_invoice(
        self, db_session, tax_provider, billed_company
    ):
        service = _service(db_session, tax_provider)
        cycle_id = uuid.uuid4()

        first = await service.generate_invoice(
            billed_company.id, dt(2024, 4, 1), dt(2024, 5, 1), cycle_id
        )
        second = await service.generate_invoice(
            billed_company.id, dt(2024, 4, 1), dt(2024, 5, 1), cycle_id
        )

        assert second.id == first.id
        assert db_session.query(Invoice).count() == 1

    @pytest.mark.asyncio
    async def test_concurrent_invoice_for_cycle_is_returned(
        self, db_session, tax_provider, billed_company
    ):
        engine = BillingEngine(db_session, tax_provider)
        service = InvoiceGenerationService(db_session, engine)
        cycle_id = uuid.uuid4()
        calculate = engine.calculate_billing
        competing = []

        async def _calculate_then_lose_race(*args):
            result = await calculate(*args)
            competing.append(
                create_invoice(
                    db_session,
                    billed_company,
                    billing_cycle_id=cycle_id,
                    invoice_number="INV-RACE-0001",
                )
            )
            return result

        with patch.object(engine, "calculate_billing", _calculate_then_lose_race):
            invoice = await service.generate_invoice(
                billed_company.id, dt(2024, 4, 1), dt(2024, 5, 1), cycle_id
            )

        assert invoice.id == competing[0].id
        assert invoice.invoice_number == "INV-RACE-0001"
        assert db_session.query(Invoice).count() == 1
        assert InvoiceRepository(db_session).get_items(invoice.id) == []
        assert db_session.query(Transaction).count() == 0
        db_session.expire_all()
        assert not any(e.invoiced for e in db_session.query(TimeEntry).all())
        assert not any(u.invoiced for u in db_session.query(UsageRecord).all())

    @pytest.mark.asyncio
    async def test_integrity_error_without_existing_invoice_is_raised(
        self, db_session, tax_provider, billed_company
    ):
        service = _service(db_session, tax_provider)
        error = IntegrityError("INSERT INTO invoices", {}, Exception("UNIQUE constraint failed"))

        with (
            patch.object(service.invoice_repo, "add", side_effect=error),
            pytest.raises(IntegrityError),
        ):
            await service.generate_invoice(
                billed_company.id, dt(2024, 4, 1), dt(2024, 5, 1), uuid.uuid4()
            )

        assert db_session.query(Invoice).count() == 0
        assert db_session.query(Transaction).count() == 0

    @pytest.mark.asyncio
    async def test_calculation_after_generation_is_empty(
        self, db_session, tax_provider, billed_company
    ):
        cycle_id = uuid.uuid4()
        await _service(db_session, tax_provider).generate_invoice(
            billed_company.id, dt(2024, 4, 1), dt(2024, 5, 1), cycle_id
        )

        result = await BillingEngine(db_session, tax_provider).calculate_billing(
            billed_company.id, dt(2024, 4, 1), dt(2024, 5, 1), cycle_id
        )

        assert result.charges == []
        assert result.total_amount == Decimal("0")
        assert result.final_amount == Decimal("0")

    @pytest.mark.asyncio
    async def test_next_period_does_not_rebill_time_or_usage(
        self, db_session, tax_provider, billed_company
    ):
        service = _service(db_session, tax_provider)
        await service.generate_invoice(
            billed_company.id, dt(2024, 4, 1), dt(2024, 5, 1), uuid.uuid4()
        )

        # Same window under a new cycle id only re-bills the fixed fee
        invoice = await service.generate_invoice(
            billed_company.id, dt(2024, 4, 1), dt(2024, 5, 1), uuid.uuid4()
        )

        items = InvoiceRepository(db_session).get_items(invoice.id)
        assert [i.description for i in items if not i.is_discount] == ["Managed Backup"]

    @pytest.mark.asyncio
    async def test_unknown_company(self, db_session, tax_provider):
        with pytest.raises(NotFoundError):
            await _service(db_session, tax_provider).generate_invoice(
                uuid.uuid4(), dt(2024, 4, 1), dt(2024, 5, 1), uuid.uuid4()
            )

    @pytest.mark.asyncio
    async def test_no_plan_creates_nothing(self, db_session, tax_provider):
        company = create_company(db_session)

        with pytest.raises(NoApplicablePlanError):
            await _service(db_session, tax_provider).generate_invoice(
                company.id, dt(2024, 4, 1), dt(2024, 5, 1), uuid.uuid4()
            )
        assert db_session.query(Invoice).count() == 0
