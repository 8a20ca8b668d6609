from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from billing_engine.models.plan import PlanService
from billing_engine.models.service_catalog import ServiceCatalog
from billing_engine.models.time_entry import (
    UNAPPROVED_STATUSES,
    ApprovalStatus,
    TimeEntry,
    WorkItemType,
)
from billing_engine.models.work_item import Project, ProjectTask, Ticket


@dataclass(frozen=True)
class BillableTimeEntry:
    entry: TimeEntry
    service: ServiceCatalog
    custom_rate: Decimal | None


def _belongs_to_company(company_id: UUID):  # type: ignore[no-untyped-def]
    return or_(
        and_(
            TimeEntry.work_item_type == WorkItemType.PROJECT_TASK.value,
            ProjectTask.id.isnot(None),
            Project.company_id == company_id,
        ),
        and_(
            TimeEntry.work_item_type == WorkItemType.TICKET.value,
            Ticket.id.isnot(None),
            Ticket.company_id == company_id,
        ),
    )


class TimeEntryRepository:
    def __init__(self, db: Session):
        self.db = db

    def _with_work_items(self, query):  # type: ignore[no-untyped-def]
        return (
            query.outerjoin(ProjectTask, TimeEntry.work_item_id == ProjectTask.id)
            .outerjoin(Project, ProjectTask.project_id == Project.id)
            .outerjoin(Ticket, TimeEntry.work_item_id == Ticket.id)
        )

    def get_billable(
        self,
        company_id: UUID,
        plan_id: UUID,
        service_category: UUID | None,
        period_start: datetime,
        period_end: datetime,
    ) -> list[BillableTimeEntry]:
        """Approved, uninvoiced entries for the company within the period."""
        query = (
            self.db.query(TimeEntry, ServiceCatalog, PlanService.custom_rate)
            .join(ServiceCatalog, TimeEntry.service_id == ServiceCatalog.id)
            .join(
                PlanService,
                and_(
                    PlanService.service_id == ServiceCatalog.id,
                    PlanService.plan_id == plan_id,
                ),
            )
        )
        rows = (
            self._with_work_items(query)
            .filter(
                TimeEntry.start_time >= period_start,
                TimeEntry.end_time < period_end,
                TimeEntry.invoiced.is_(False),
                TimeEntry.approval_status == ApprovalStatus.APPROVED.value,
                ServiceCatalog.category_id == service_category,
                _belongs_to_company(company_id),
            )
            .order_by(TimeEntry.start_time.asc())
            .all()
        )
        return [
            BillableTimeEntry(entry=entry, service=service, custom_rate=custom_rate)
            for entry, service, custom_rate in rows
        ]

    def get_unapproved_ending_by(self, company_id: UUID, period_end: datetime) -> list[TimeEntry]:
        query = self.db.query(TimeEntry)
        return (
            self._with_work_items(query)
            .filter(
                TimeEntry.approval_status.in_(UNAPPROVED_STATUSES),
                TimeEntry.end_time <= period_end,
                _belongs_to_company(company_id),
            )
            .order_by(TimeEntry.start_time.asc())
            .all()
        )

    def mark_invoiced(self, entry_ids: list[UUID]) -> int:
        if not entry_ids:
            return 0
        count = (
            self.db.query(TimeEntry)
            .filter(TimeEntry.id.in_(entry_ids))
            .update({TimeEntry.invoiced: True}, synchronize_session="fetch")
        )
        return int(count)
