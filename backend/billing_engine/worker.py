import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from billing_engine.core.database import SessionLocal
from billing_engine.services.billing_engine import BillingEngine
from billing_engine.tasks import redis_settings

logger = logging.getLogger(__name__)


async def rollover_unapproved_time_task(
    ctx: dict[str, Any],
    company_id: str,
    current_period_end: str,
    next_period_start: str,
) -> int:
    """Background task: shift a company's unapproved time into the next period.

    Returns:
        Number of time entries moved.
    """
    db = SessionLocal()
    try:
        engine = BillingEngine(db)
        count = engine.rollover_unapproved_time(
            company_id=UUID(company_id),
            current_period_end=datetime.fromisoformat(current_period_end),
            next_period_start=datetime.fromisoformat(next_period_start),
        )
        if count > 0:
            logger.info("Rolled over %d time entries for company %s", count, company_id)
        return count
    finally:
        db.close()


async def recalculate_invoice_task(ctx: dict[str, Any], invoice_id: str) -> str:
    """Background task: recalculate an invoice's totals.

    Returns:
        The recalculated total as a string.
    """
    db = SessionLocal()
    try:
        engine = BillingEngine(db)
        invoice = await engine.recalculate_invoice(UUID(invoice_id))
        return str(invoice.total_amount)
    finally:
        db.close()


class WorkerSettings:
    functions = [
        rollover_unapproved_time_task,
        recalculate_invoice_task,
    ]
    redis_settings = redis_settings
