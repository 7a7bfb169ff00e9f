from enum import Enum

from sqlalchemy import JSON, BigInteger, Column, Date, DateTime, ForeignKey, String, Text

from billing.core.database import Base
from billing.models.shared import UUIDType, generate_uuid, utc_now


class ChargeType(str, Enum):
    STORAGE = "storage"
    SERVICE = "service"
    DISCOUNT = "discount"
    MANUAL = "manual"


class ChargeStatus(str, Enum):
    UNBILLED = "unbilled"
    BILLED = "billed"
    VOID = "void"


class Charge(Base):
    """A billable amount accrued by a customer, waiting to be invoiced.

    A charge is dated either by a single ``service_date`` or by a
    ``period_from``/``period_to`` range (or both). Charges with neither are
    never picked up by invoice generation.
    """

    __tablename__ = "charges"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True, index=True
    )
    type = Column(String(20), nullable=False)
    # Signed, minor currency units
    amount = Column(BigInteger, nullable=False)
    currency = Column(String(3), nullable=False)
    description = Column(Text, nullable=True)
    service_date = Column(Date, nullable=True)
    period_from = Column(Date, nullable=True)
    period_to = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=ChargeStatus.UNBILLED.value, index=True)
    charge_metadata = Column(JSON, nullable=True)
    # Client-side default keeps creation order deterministic within a transaction
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
