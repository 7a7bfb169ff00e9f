"""Payment schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from billing.schemas.invoice import InvoiceResponse


class PaymentCreate(BaseModel):
    """Schema for applying a payment to an invoice."""

    amount: int = Field(..., gt=0, description="Amount in minor currency units")


class PaymentResponse(BaseModel):
    """Schema for payment response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    invoice_id: UUID
    amount: int
    currency: str
    status: str
    provider: str
    created_at: datetime


class PaymentApplicationResponse(BaseModel):
    payment: PaymentResponse
    invoice: InvoiceResponse
