from sqlalchemy import Column, DateTime, String, func

from billing.core.database import Base
from billing.models.shared import UUIDType, generate_uuid


class Customer(Base):
    __tablename__ = "customers"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    # ISO 4217 code, stored lowercase
    currency = Column(String(3), nullable=False, default="usd")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
