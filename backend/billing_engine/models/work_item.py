"""Work items time can be logged against: tickets and project tasks."""

from sqlalchemy import Column, DateTime, ForeignKey, String, func

from billing_engine.core.database import Base
from billing_engine.models.shared import UUIDType, generate_uuid


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    company_id = Column(
        UUIDType, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    title = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Project(Base):
    __tablename__ = "projects"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    company_id = Column(
        UUIDType, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    project_name = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ProjectTask(Base):
    __tablename__ = "project_tasks"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    project_id = Column(
        UUIDType, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    task_name = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
