from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Integer, Numeric, Text
from sqlalchemy.orm import relationship

from billing.core.database import Base
from billing.models.shared import UUIDType, generate_uuid, utc_now


class InvoiceItem(Base):
    """A line on an invoice, snapshotted from the charge it was built from.

    ``charge_id`` is a plain trace back to the originating charge; the line
    values do not follow later edits to that charge.
    """

    __tablename__ = "invoice_items"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    charge_id = Column(
        UUIDType, ForeignKey("charges.id", ondelete="SET NULL"), nullable=True, index=True
    )
    position = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=False)
    amount = Column(BigInteger, nullable=False)
    tax_rate = Column(Numeric(10, 6), nullable=False)
    tax_amount = Column(BigInteger, nullable=False)
    total = Column(BigInteger, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    invoice = relationship("Invoice", back_populates="items")
