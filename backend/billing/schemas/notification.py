from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel


class SendPendingInvoicesRequest(BaseModel):
    customer_id: UUID | None = None


class PendingInvoicesResult(BaseModel):
    customer_id: UUID
    invoice_count: int
    total_due: int
    currency: str


class SendPendingInvoicesResponse(BaseModel):
    customers_notified: int
    results: list[PendingInvoicesResult]


class CommunicationLogResponse(BaseModel):
    id: UUID
    customer_id: UUID
    type: str
    status: str
    payload: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
