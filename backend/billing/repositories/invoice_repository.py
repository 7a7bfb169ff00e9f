import secrets
from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from billing.models.invoice import Invoice, InvoiceStatus


def generate_invoice_number(now: datetime | None = None) -> str:
    """Build a display number ``INV-YYYYMMDD-XXXXXX`` (UTC date, random hex suffix).

    Not reserved or unique; the primary key is the invoice identity.
    """
    now = now or datetime.now(UTC)
    return f"INV-{now.strftime('%Y%m%d')}-{secrets.token_hex(3).upper()}"


class InvoiceRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        customer_id: UUID | None = None,
        status: InvoiceStatus | None = None,
    ) -> list[Invoice]:
        query = self.db.query(Invoice)

        if customer_id:
            query = query.filter(Invoice.customer_id == customer_id)
        if status:
            query = query.filter(Invoice.status == status.value)

        return query.order_by(Invoice.created_at.desc()).offset(skip).limit(limit).all()

    def count(self, customer_id: UUID | None = None, status: InvoiceStatus | None = None) -> int:
        query = self.db.query(Invoice)
        if customer_id:
            query = query.filter(Invoice.customer_id == customer_id)
        if status:
            query = query.filter(Invoice.status == status.value)
        return int(query.count())

    def get_by_id(self, invoice_id: UUID, lock: bool = False) -> Invoice | None:
        stmt = select(Invoice).where(Invoice.id == invoice_id)
        if lock:
            stmt = stmt.with_for_update()
        return self.db.execute(
            stmt.execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get_outstanding(self, customer_id: UUID | None = None) -> list[Invoice]:
        """Issued or partially paid invoices, oldest first."""
        query = self.db.query(Invoice).filter(
            Invoice.status.in_([InvoiceStatus.ISSUED.value, InvoiceStatus.PARTIAL.value])
        )
        if customer_id:
            query = query.filter(Invoice.customer_id == customer_id)
        return query.order_by(Invoice.created_at.asc()).all()

    def create(
        self,
        *,
        customer_id: UUID,
        period_from: date,
        period_to: date,
        status: InvoiceStatus,
        currency: str,
        subtotal: int,
        tax_rate: Decimal,
        tax_amount: int,
        total: int,
        issued_at: datetime,
    ) -> Invoice:
        """Create an invoice header. Does not commit."""
        invoice = Invoice(
            invoice_number=generate_invoice_number(issued_at),
            customer_id=customer_id,
            period_from=period_from,
            period_to=period_to,
            status=status.value,
            currency=currency,
            subtotal=subtotal,
            tax_rate=tax_rate,
            tax_amount=tax_amount,
            total=total,
            amount_paid=0,
            issued_at=issued_at,
            due_at=None,
        )
        self.db.add(invoice)
        self.db.flush()
        return invoice

    def apply_payment(self, invoice: Invoice, amount_paid: int, status: InvoiceStatus) -> Invoice:
        """Does not commit."""
        invoice.amount_paid = amount_paid  # type: ignore[assignment]
        invoice.status = status.value  # type: ignore[assignment]
        self.db.flush()
        return invoice
