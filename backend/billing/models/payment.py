"""Payment model for tracking invoice payments."""

from enum import Enum

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, String

from billing.core.database import Base
from billing.models.shared import UUIDType, generate_uuid, utc_now


class PaymentStatus(str, Enum):
    """Payment status enum."""

    PENDING = "pending"
    COMPLETE = "complete"
    FAILED = "failed"


class PaymentProvider(str, Enum):
    """Supported payment providers."""

    MOCK = "mock"  # Recorded without calling a gateway


class Payment(Base):
    """Payment model - append-only record of an amount applied to an invoice."""

    __tablename__ = "payments"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    amount = Column(BigInteger, nullable=False)
    currency = Column(String(3), nullable=False)
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    provider = Column(String(50), nullable=False, default=PaymentProvider.MOCK.value)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
