from billing.repositories.charge_repository import ChargeRepository
from billing.repositories.communication_log_repository import CommunicationLogRepository
from billing.repositories.customer_repository import CustomerRepository
from billing.repositories.invoice_generation_request_repository import (
    InvoiceGenerationRequestRepository,
)
from billing.repositories.invoice_item_repository import InvoiceItemRepository
from billing.repositories.invoice_repository import InvoiceRepository
from billing.repositories.payment_repository import PaymentRepository

__all__ = [
    "ChargeRepository",
    "CommunicationLogRepository",
    "CustomerRepository",
    "InvoiceGenerationRequestRepository",
    "InvoiceItemRepository",
    "InvoiceRepository",
    "PaymentRepository",
]
