"""Shared test fixtures and builders for all test modules."""

import contextlib
import uuid
from datetime import UTC, datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import billing_engine.models  # noqa: F401
from billing_engine.core import database as db_module
from billing_engine.core.database import Base, get_db
from billing_engine.models.bucket import BucketPlan, BucketUsage
from billing_engine.models.company import Company
from billing_engine.models.discount import Discount, PlanDiscount
from billing_engine.models.invoice import Invoice, InvoiceItem
from billing_engine.models.plan import BillingPlan, CompanyBillingPlan, PlanService
from billing_engine.models.service_catalog import ServiceCatalog
from billing_engine.models.time_entry import ApprovalStatus, TimeEntry, WorkItemType
from billing_engine.models.usage import UsageRecord
from billing_engine.models.work_item import Project, ProjectTask, Ticket
from billing_engine.services.tax_service import TaxCalculationResult

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

CATEGORY_ID = uuid.UUID("00000000-0000-0000-0000-00000000c0de")


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def db_session():
    """Create a database session for direct service testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


class FakeTaxProvider:
    """Tax provider with a fixed rate, recording every call."""

    def __init__(self, rate: Decimal = Decimal("0.1")):
        self.rate = rate
        self.calculate_calls: list[tuple[uuid.UUID, Decimal, datetime]] = []
        self.rate_calls: list[tuple[str | None, datetime]] = []

    async def calculate_tax(
        self, company_id: uuid.UUID, net_amount: Decimal, as_of: datetime
    ) -> TaxCalculationResult:
        self.calculate_calls.append((company_id, net_amount, as_of))
        return TaxCalculationResult(tax_amount=net_amount * self.rate, tax_rate=self.rate)

    async def get_company_tax_rate(self, region: str | None, as_of: datetime) -> Decimal:
        self.rate_calls.append((region, as_of))
        return self.rate


@pytest.fixture
def tax_provider():
    return FakeTaxProvider()


def dt(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=UTC)


def _save(db: Session, obj):
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def create_company(db: Session, name: str = "Acme Corp", **kwargs) -> Company:
    kwargs.setdefault("tax_region", "US-NY")
    return _save(db, Company(company_name=name, **kwargs))


def create_service(
    db: Session,
    name: str,
    service_type: str,
    default_rate,
    category_id: uuid.UUID | None = CATEGORY_ID,
    **kwargs,
) -> ServiceCatalog:
    return _save(
        db,
        ServiceCatalog(
            service_name=name,
            service_type=service_type,
            default_rate=Decimal(str(default_rate)),
            category_id=category_id,
            **kwargs,
        ),
    )


def create_plan(db: Session, name: str, plan_type: str = "Fixed") -> BillingPlan:
    return _save(db, BillingPlan(plan_name=name, plan_type=plan_type))


def add_plan_service(
    db: Session, plan: BillingPlan, service: ServiceCatalog, quantity: int = 1, custom_rate=None
) -> PlanService:
    return _save(
        db,
        PlanService(
            plan_id=plan.id,
            service_id=service.id,
            quantity=quantity,
            custom_rate=Decimal(str(custom_rate)) if custom_rate is not None else None,
        ),
    )


def assign_plan(
    db: Session,
    company: Company,
    plan: BillingPlan,
    start_date: datetime,
    end_date: datetime | None = None,
    service_category: uuid.UUID | None = CATEGORY_ID,
    is_active: bool = True,
) -> CompanyBillingPlan:
    return _save(
        db,
        CompanyBillingPlan(
            company_id=company.id,
            plan_id=plan.id,
            service_category=service_category,
            start_date=start_date,
            end_date=end_date,
            is_active=is_active,
        ),
    )


def create_ticket(db: Session, company: Company, title: str = "Printer on fire") -> Ticket:
    return _save(db, Ticket(company_id=company.id, title=title))


def create_project_task(db: Session, company: Company, name: str = "Migrate mail") -> ProjectTask:
    project = _save(db, Project(company_id=company.id, project_name="Infrastructure"))
    return _save(db, ProjectTask(project_id=project.id, task_name=name))


def create_time_entry(
    db: Session,
    work_item,
    service: ServiceCatalog,
    start_time: datetime,
    end_time: datetime,
    approval_status: str = ApprovalStatus.APPROVED.value,
    invoiced: bool = False,
) -> TimeEntry:
    work_item_type = (
        WorkItemType.TICKET.value if isinstance(work_item, Ticket) else WorkItemType.PROJECT_TASK.value
    )
    return _save(
        db,
        TimeEntry(
            user_id=uuid.uuid4(),
            work_item_id=work_item.id,
            work_item_type=work_item_type,
            service_id=service.id,
            start_time=start_time,
            end_time=end_time,
            approval_status=approval_status,
            invoiced=invoiced,
        ),
    )


def create_usage(
    db: Session,
    company: Company,
    service: ServiceCatalog,
    quantity,
    usage_date: datetime,
    invoiced: bool = False,
) -> UsageRecord:
    return _save(
        db,
        UsageRecord(
            company_id=company.id,
            service_id=service.id,
            quantity=Decimal(str(quantity)),
            usage_date=usage_date,
            invoiced=invoiced,
        ),
    )


def create_bucket(
    db: Session,
    company: Company,
    plan: BillingPlan,
    service: ServiceCatalog | None,
    overage_rate,
    overage_hours,
    period_start: datetime,
    period_end: datetime,
    hours_used=Decimal("45"),
) -> tuple[BucketPlan, BucketUsage]:
    bucket_plan = _save(
        db,
        BucketPlan(plan_id=plan.id, total_hours=Decimal("40"), overage_rate=Decimal(str(overage_rate))),
    )
    usage = _save(
        db,
        BucketUsage(
            bucket_plan_id=bucket_plan.id,
            company_id=company.id,
            service_catalog_id=service.id if service else None,
            period_start=period_start,
            period_end=period_end,
            hours_used=Decimal(str(hours_used)),
            overage_hours=Decimal(str(overage_hours)),
        ),
    )
    return bucket_plan, usage


def create_discount(
    db: Session,
    company: Company,
    plan: BillingPlan,
    discount_type: str,
    value,
    start_date: datetime,
    end_date: datetime | None = None,
    is_active: bool = True,
    name: str = "Loyalty",
) -> Discount:
    discount = _save(
        db,
        Discount(
            discount_name=name,
            discount_type=discount_type,
            value=Decimal(str(value)),
            start_date=start_date,
            end_date=end_date,
            is_active=is_active,
        ),
    )
    _save(db, PlanDiscount(plan_id=plan.id, company_id=company.id, discount_id=discount.id))
    return discount


def create_invoice(
    db: Session,
    company: Company,
    billing_cycle_id: uuid.UUID | None = None,
    invoice_number: str = "INV-TEST-0001",
) -> Invoice:
    return _save(
        db,
        Invoice(
            company_id=company.id,
            billing_cycle_id=billing_cycle_id,
            invoice_number=invoice_number,
        ),
    )


def create_invoice_item(
    db: Session,
    invoice: Invoice,
    net_amount,
    created_at: datetime,
    service: ServiceCatalog | None = None,
    **kwargs,
) -> InvoiceItem:
    return _save(
        db,
        InvoiceItem(
            invoice_id=invoice.id,
            service_id=service.id if service else None,
            net_amount=Decimal(str(net_amount)),
            created_at=created_at,
            **kwargs,
        ),
    )
