from datetime import datetime
from typing import Any
from uuid import UUID

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job

from billing_engine.core.config import settings

# Redis connection settings
redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)


async def get_redis_pool() -> ArqRedis:
    """Get or create Redis pool for arq"""
    return await create_pool(redis_settings)


async def enqueue_task(task_name: str, *args: Any, **kwargs: Any) -> Job | None:
    """Enqueue a task to the arq worker.

    Returns ``None`` when a job with the same ``_job_id`` is already queued.
    """
    pool = await get_redis_pool()
    try:
        return await pool.enqueue_job(task_name, *args, **kwargs)
    finally:
        await pool.close()


async def enqueue_invoice_recalculation(invoice_id: UUID) -> Job | None:
    """Queue a recalculation; one job per invoice at a time."""
    return await enqueue_task(
        "recalculate_invoice_task",
        str(invoice_id),
        _job_id=f"recalculate:{invoice_id}",
    )


async def enqueue_time_rollover(
    company_id: UUID, current_period_end: datetime, next_period_start: datetime
) -> Job | None:
    return await enqueue_task(
        "rollover_unapproved_time_task",
        str(company_id),
        current_period_end.isoformat(),
        next_period_start.isoformat(),
    )
