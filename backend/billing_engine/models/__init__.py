from billing_engine.models.billing_cycle import BillingCycleType, CompanyBillingCycle
from billing_engine.models.bucket import BucketPlan, BucketUsage
from billing_engine.models.company import Company
from billing_engine.models.discount import Discount, DiscountType, PlanDiscount
from billing_engine.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from billing_engine.models.plan import BillingPlan, CompanyBillingPlan, PlanService, PlanType
from billing_engine.models.service_catalog import ServiceCatalog, ServiceType
from billing_engine.models.tax_rate import TaxRate
from billing_engine.models.time_entry import ApprovalStatus, TimeEntry, WorkItemType
from billing_engine.models.transaction import Transaction, TransactionStatus, TransactionType
from billing_engine.models.usage import UsageRecord
from billing_engine.models.work_item import Project, ProjectTask, Ticket

__all__ = [
    "ApprovalStatus",
    "BillingCycleType",
    "BillingPlan",
    "BucketPlan",
    "BucketUsage",
    "Company",
    "CompanyBillingCycle",
    "CompanyBillingPlan",
    "Discount",
    "DiscountType",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatus",
    "PlanDiscount",
    "PlanService",
    "PlanType",
    "Project",
    "ProjectTask",
    "ServiceCatalog",
    "ServiceType",
    "TaxRate",
    "Ticket",
    "TimeEntry",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "UsageRecord",
    "WorkItemType",
]
