from datetime import date, datetime
from typing import Any, Self
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from billing.models.charge import ChargeStatus, ChargeType


class ChargeCreate(BaseModel):
    customer_id: UUID
    type: ChargeType
    amount: int
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    description: str | None = Field(default=None, min_length=1)
    service_date: date | None = None
    period_from: date | None = None
    period_to: date | None = None
    metadata: dict[str, Any] | None = None

    @field_validator("currency")
    @classmethod
    def lowercase_currency(cls, value: str | None) -> str | None:
        return value.lower() if value else value

    @model_validator(mode="after")
    def check_period(self) -> Self:
        if self.period_from and self.period_to and self.period_from > self.period_to:
            raise ValueError("period_from must be on or before period_to")
        return self


class ChargeUpdate(BaseModel):
    type: ChargeType | None = None
    amount: int | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    description: str | None = Field(default=None, min_length=1)
    service_date: date | None = None
    period_from: date | None = None
    period_to: date | None = None
    metadata: dict[str, Any] | None = None

    # Omit a field to leave it unchanged; these columns cannot be cleared
    @field_validator("type", "amount", "currency")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value

    @field_validator("currency")
    @classmethod
    def lowercase_currency(cls, value: str) -> str:
        return value.lower()


class ChargeResponse(BaseModel):
    id: UUID
    customer_id: UUID
    invoice_id: UUID | None
    type: str
    amount: int
    currency: str
    description: str | None
    service_date: date | None
    period_from: date | None
    period_to: date | None
    status: ChargeStatus
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="charge_metadata")
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
