from datetime import date, datetime
from decimal import Decimal
from typing import Self
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from billing.models.invoice import InvoiceStatus
from billing.services.money import TAX_RATE_PLACES


class InvoiceGenerateRequest(BaseModel):
    customer_id: UUID
    period_from: date
    period_to: date
    tax_rate: Decimal | None = Field(default=None, ge=0, le=1, decimal_places=TAX_RATE_PLACES)
    issue_now: bool = True

    @model_validator(mode="after")
    def check_period(self) -> Self:
        if self.period_from > self.period_to:
            raise ValueError("period_from must be on or before period_to")
        return self


class InvoiceItemResponse(BaseModel):
    id: UUID
    invoice_id: UUID
    charge_id: UUID | None
    description: str
    amount: int
    tax_rate: Decimal
    tax_amount: int
    total: int

    model_config = {"from_attributes": True}


class InvoiceResponse(BaseModel):
    id: UUID
    invoice_number: str
    customer_id: UUID
    status: InvoiceStatus
    period_from: date
    period_to: date
    currency: str
    subtotal: int
    tax_rate: Decimal
    tax_amount: int
    total: int
    amount_paid: int
    issued_at: datetime | None
    due_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class InvoiceDetailResponse(InvoiceResponse):
    items: list[InvoiceItemResponse]
