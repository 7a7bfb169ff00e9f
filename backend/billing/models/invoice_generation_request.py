"""InvoiceGenerationRequest model: the idempotency ledger for invoice generation."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, UniqueConstraint

from billing.core.database import Base
from billing.models.shared import UUIDType, generate_uuid, utc_now


class InvoiceGenerationRequest(Base):
    """One row per (customer, period) that invoice generation was asked for.

    The unique constraint serializes concurrent generations for the same key;
    ``invoice_id`` is set once the invoice for the key has been written.
    """

    __tablename__ = "invoice_generation_requests"
    __table_args__ = (
        UniqueConstraint(
            "customer_id",
            "period_from",
            "period_to",
            name="uq_invoice_generation_requests_customer_period",
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    period_from = Column(Date, nullable=False)
    period_to = Column(Date, nullable=False)
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="RESTRICT"), nullable=True
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
