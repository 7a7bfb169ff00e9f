import logging
from typing import Any
from uuid import UUID

from arq import cron

from billing.core import database
from billing.services.notification_service import PendingInvoiceNotificationService
from billing.tasks import redis_settings

logger = logging.getLogger(__name__)


async def send_pending_invoices_task(ctx: dict[str, Any], customer_id: str | None = None) -> int:
    """Background task: remind customers about issued and partially paid invoices.

    Runs hourly. Each run notifies again; there is no de-duplication against
    earlier runs.

    Args:
        ctx: ARQ worker context.
        customer_id: Optional UUID string restricting the sweep to one customer.

    Returns:
        Number of customers notified.
    """
    with database.session_scope() as db:
        service = PendingInvoiceNotificationService(db)
        result = service.send_pending_invoices(UUID(customer_id) if customer_id else None)
    if result.customers_notified > 0:
        logger.info("Notified %d customers about pending invoices", result.customers_notified)
    return result.customers_notified


class WorkerSettings:
    functions = [send_pending_invoices_task]
    cron_jobs = [
        cron(send_pending_invoices_task, minute={0}),  # hourly
    ]
    redis_settings = redis_settings
