from billing.models.charge import Charge, ChargeStatus, ChargeType
from billing.models.communication_log import (
    CommunicationLog,
    CommunicationStatus,
    CommunicationType,
)
from billing.models.customer import Customer
from billing.models.invoice import Invoice, InvoiceStatus
from billing.models.invoice_generation_request import InvoiceGenerationRequest
from billing.models.invoice_item import InvoiceItem
from billing.models.payment import Payment, PaymentProvider, PaymentStatus

__all__ = [
    "Charge",
    "ChargeStatus",
    "ChargeType",
    "CommunicationLog",
    "CommunicationStatus",
    "CommunicationType",
    "Customer",
    "Invoice",
    "InvoiceGenerationRequest",
    "InvoiceItem",
    "InvoiceStatus",
    "Payment",
    "PaymentProvider",
    "PaymentStatus",
]
