"""CommunicationLog model: audit trail of outbound customer notifications."""

from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String

from billing.core.database import Base
from billing.models.shared import UUIDType, generate_uuid, utc_now


class CommunicationStatus(str, Enum):
    QUEUED = "queued"
    SENT = "sent"


class CommunicationType(str, Enum):
    PENDING_INVOICES_EMAIL = "pending_invoices_email"


class CommunicationLog(Base):
    __tablename__ = "communication_logs"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    type = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default=CommunicationStatus.QUEUED.value)
    payload = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
