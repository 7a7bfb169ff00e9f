from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from billing.core.database import get_db
from billing.core.errors import NotFoundError
from billing.models.invoice import Invoice, InvoiceStatus
from billing.models.payment import Payment
from billing.repositories.customer_repository import CustomerRepository
from billing.repositories.invoice_repository import InvoiceRepository
from billing.repositories.payment_repository import PaymentRepository
from billing.schemas.error import ErrorResponse
from billing.schemas.invoice import InvoiceDetailResponse, InvoiceGenerateRequest, InvoiceResponse
from billing.schemas.payment import PaymentApplicationResponse, PaymentCreate, PaymentResponse
from billing.services.invoice_generation import InvoiceGenerationService
from billing.services.payment_service import PaymentService
from billing.services.pdf_service import PdfService

router = APIRouter()


def _get_invoice_or_404(invoice_id: UUID, db: Session) -> Invoice:
    invoice = InvoiceRepository(db).get_by_id(invoice_id)
    if not invoice:
        raise NotFoundError(
            "Invoice not found",
            error_code="INVOICE_NOT_FOUND",
            details={"invoice_id": str(invoice_id)},
        )
    return invoice


@router.post(
    "/generate",
    response_model=InvoiceDetailResponse,
    summary="Generate invoice",
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        404: {"model": ErrorResponse, "description": "Customer not found"},
        422: {"model": ErrorResponse, "description": "No charges to invoice or mixed currencies"},
    },
)
async def generate_invoice(
    data: InvoiceGenerateRequest,
    db: Session = Depends(get_db),
) -> Invoice:
    """Generate an invoice from unbilled charges.

    Idempotent per ``customer_id`` + ``period_from`` + ``period_to``: repeating
    the request returns the invoice created the first time.
    """
    service = InvoiceGenerationService(db)
    return service.generate_invoice(
        customer_id=data.customer_id,
        period_from=data.period_from,
        period_to=data.period_to,
        tax_rate=data.tax_rate,
        issue_now=data.issue_now,
    )


@router.get("/", response_model=list[InvoiceResponse], summary="List invoices")
async def list_invoices(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    customer_id: UUID | None = None,
    status: InvoiceStatus | None = None,
    db: Session = Depends(get_db),
) -> list[Invoice]:
    """List invoices with optional filters."""
    repo = InvoiceRepository(db)
    response.headers["X-Total-Count"] = str(repo.count(customer_id=customer_id, status=status))
    return repo.get_all(skip=skip, limit=limit, customer_id=customer_id, status=status)


@router.get(
    "/{invoice_id}",
    response_model=InvoiceDetailResponse,
    summary="Get invoice",
    responses={404: {"model": ErrorResponse, "description": "Invoice not found"}},
)
async def get_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> Invoice:
    """Get an invoice with its items."""
    return _get_invoice_or_404(invoice_id, db)


@router.get(
    "/{invoice_id}/pdf",
    summary="Download invoice PDF",
    response_class=Response,
    responses={
        200: {"content": {"application/pdf": {}}, "description": "Invoice PDF"},
        404: {"model": ErrorResponse, "description": "Invoice not found"},
    },
)
async def download_invoice_pdf(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> Response:
    """Render an invoice as a PDF attachment."""
    invoice = _get_invoice_or_404(invoice_id, db)
    customer = CustomerRepository(db).get_by_id(UUID(str(invoice.customer_id)))
    if not customer:
        raise NotFoundError(
            "Customer not found",
            error_code="CUSTOMER_NOT_FOUND",
            details={"customer_id": str(invoice.customer_id)},
        )
    pdf_bytes = PdfService().generate_invoice_pdf(invoice, customer)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="invoice_{invoice.invoice_number}.pdf"'
        },
    )


@router.post(
    "/{invoice_id}/payments",
    response_model=PaymentApplicationResponse,
    summary="Pay invoice",
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        404: {"model": ErrorResponse, "description": "Invoice not found"},
        422: {"model": ErrorResponse, "description": "Invoice is void"},
    },
)
async def create_payment(
    invoice_id: UUID,
    data: PaymentCreate,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Record a payment against an invoice and update its status."""
    result = PaymentService(db).apply_payment(invoice_id, data.amount)
    return {"payment": result.payment, "invoice": result.invoice}


@router.get(
    "/{invoice_id}/payments",
    response_model=list[PaymentResponse],
    summary="List invoice payments",
    responses={404: {"model": ErrorResponse, "description": "Invoice not found"}},
)
async def list_invoice_payments(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> list[Payment]:
    _get_invoice_or_404(invoice_id, db)
    return PaymentRepository(db).get_by_invoice_id(invoice_id)
