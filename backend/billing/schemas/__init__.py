from billing.schemas.charge import ChargeCreate, ChargeResponse, ChargeUpdate
from billing.schemas.customer import CustomerCreate, CustomerResponse
from billing.schemas.error import ErrorResponse
from billing.schemas.invoice import (
    InvoiceDetailResponse,
    InvoiceGenerateRequest,
    InvoiceItemResponse,
    InvoiceResponse,
)
from billing.schemas.notification import (
    CommunicationLogResponse,
    PendingInvoicesResult,
    SendPendingInvoicesRequest,
    SendPendingInvoicesResponse,
)
from billing.schemas.payment import PaymentApplicationResponse, PaymentCreate, PaymentResponse

__all__ = [
    "ChargeCreate",
    "ChargeResponse",
    "ChargeUpdate",
    "CommunicationLogResponse",
    "CustomerCreate",
    "CustomerResponse",
    "ErrorResponse",
    "InvoiceDetailResponse",
    "InvoiceGenerateRequest",
    "InvoiceItemResponse",
    "InvoiceResponse",
    "PaymentApplicationResponse",
    "PaymentCreate",
    "PaymentResponse",
    "PendingInvoicesResult",
    "SendPendingInvoicesRequest",
    "SendPendingInvoicesResponse",
]
