from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from billing.core.database import get_db
from billing.schemas.notification import SendPendingInvoicesRequest, SendPendingInvoicesResponse
from billing.services.notification_service import (
    PendingInvoiceNotificationService,
    PendingInvoicesSweepResult,
)

router = APIRouter()


@router.post(
    "/pending-invoices/send",
    response_model=SendPendingInvoicesResponse,
    summary="Send pending invoice reminders",
)
async def send_pending_invoices(
    data: SendPendingInvoicesRequest | None = Body(default=None),
    db: Session = Depends(get_db),
) -> PendingInvoicesSweepResult:
    """Notify every customer (or one, if ``customer_id`` is given) with an unpaid balance."""
    customer_id = data.customer_id if data else None
    return PendingInvoiceNotificationService(db).send_pending_invoices(customer_id)
