from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, func

from billing_engine.core.database import Base
from billing_engine.models.shared import UUIDType, generate_uuid


class ApprovalStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    APPROVED = "APPROVED"


UNAPPROVED_STATUSES = (
    ApprovalStatus.DRAFT.value,
    ApprovalStatus.SUBMITTED.value,
    ApprovalStatus.CHANGES_REQUESTED.value,
)


class WorkItemType(str, Enum):
    TICKET = "ticket"
    PROJECT_TASK = "project_task"


class TimeEntry(Base):
    __tablename__ = "time_entries"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(UUIDType, nullable=False, index=True)
    work_item_id = Column(UUIDType, nullable=False, index=True)
    work_item_type = Column(String(20), nullable=False)
    service_id = Column(
        UUIDType, ForeignKey("service_catalog.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    notes = Column(String(1000), nullable=True)
    approval_status = Column(String(20), nullable=False, default=ApprovalStatus.DRAFT.value)
    invoiced = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
