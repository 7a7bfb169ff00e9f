from enum import Enum

from sqlalchemy import BigInteger, Column, Date, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from billing.core.database import Base
from billing.models.shared import UUIDType, generate_uuid, utc_now


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    ISSUED = "issued"
    PAID = "paid"
    PARTIAL = "partial"
    VOID = "void"


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    # Display identifier only; not unique
    invoice_number = Column(String(50), index=True, nullable=False)
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    status = Column(String(20), nullable=False, default=InvoiceStatus.DRAFT.value, index=True)

    # Billing period, inclusive, day granularity
    period_from = Column(Date, nullable=False)
    period_to = Column(Date, nullable=False)

    currency = Column(String(3), nullable=False)

    # Amounts are integer minor units; total == subtotal + tax_amount
    subtotal = Column(BigInteger, nullable=False, default=0)
    tax_rate = Column(Numeric(10, 6), nullable=False)
    tax_amount = Column(BigInteger, nullable=False, default=0)
    total = Column(BigInteger, nullable=False, default=0)
    amount_paid = Column(BigInteger, nullable=False, default=0)

    issued_at = Column(DateTime(timezone=True), nullable=True)
    due_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        order_by="InvoiceItem.position",
        lazy="selectin",
    )

    @property
    def amount_due(self) -> int:
        return int(self.total) - int(self.amount_paid)
