"""Enqueue helpers for the arq worker defined in ``billing.worker``."""

import logging
from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job

from billing.core.config import settings

logger = logging.getLogger(__name__)

redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)


async def get_redis_pool() -> ArqRedis:
    return await create_pool(redis_settings)


async def enqueue_task(task_name: str, *args: Any, **kwargs: Any) -> Job | None:
    """Enqueue ``task_name`` on the worker queue.

    Keyword arguments starting with an underscore (``_job_id``, ``_defer_by``)
    are arq job options, everything else is passed to the task.

    Returns:
        The arq job, or None when a job with the same ``_job_id`` is already queued.
    """
    pool = await get_redis_pool()
    try:
        job = await pool.enqueue_job(task_name, *args, **kwargs)
    finally:
        await pool.close()
    if job is None:
        logger.info("Task %s already queued, skipped", task_name)
    return job


async def enqueue_send_pending_invoices(customer_id: str | None = None) -> Job | None:
    """Queue an out-of-schedule reminder sweep, for all customers or just one.

    Repeated requests for the same scope collapse into one queued job.
    """
    return await enqueue_task(
        "send_pending_invoices_task",
        customer_id,
        _job_id=f"send_pending_invoices:{customer_id or 'all'}",
    )
