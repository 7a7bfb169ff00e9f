"""Applies payments to invoices and keeps invoice status in step with them."""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session

from billing.core.errors import NotFoundError, UnprocessableError
from billing.models.invoice import Invoice, InvoiceStatus
from billing.models.payment import Payment, PaymentProvider, PaymentStatus
from billing.repositories.invoice_repository import InvoiceRepository
from billing.repositories.payment_repository import PaymentRepository

logger = logging.getLogger(__name__)


def status_for_amount_paid(
    amount_paid: int, total: int, current: InvoiceStatus
) -> InvoiceStatus:
    if amount_paid >= total:
        return InvoiceStatus.PAID
    if amount_paid > 0:
        return InvoiceStatus.PARTIAL
    return InvoiceStatus.DRAFT if current == InvoiceStatus.DRAFT else InvoiceStatus.ISSUED


@dataclass
class PaymentApplication:
    payment: Payment
    invoice: Invoice


class PaymentService:
    def __init__(self, db: Session):
        self.db = db
        self.invoice_repo = InvoiceRepository(db)
        self.payment_repo = PaymentRepository(db)

    def apply_payment(self, invoice_id: UUID, amount: int) -> PaymentApplication:
        """Record a mock payment against an invoice and recompute its status.

        The invoice row is read under lock and written in the same
        transaction, so concurrent payments cannot lose each other's
        ``amount_paid`` updates. Overpayment is accepted as-is.
        """
        try:
            result = self._apply(invoice_id, amount)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return result

    def _apply(self, invoice_id: UUID, amount: int) -> PaymentApplication:
        invoice = self.invoice_repo.get_by_id(invoice_id, lock=True)
        if not invoice:
            raise NotFoundError(
                "Invoice not found",
                error_code="INVOICE_NOT_FOUND",
                details={"invoice_id": str(invoice_id)},
            )
        if invoice.status == InvoiceStatus.VOID.value:
            raise UnprocessableError(
                "Cannot pay a void invoice",
                error_code="INVOICE_VOID",
                details={"invoice_id": str(invoice_id)},
            )

        payment = self.payment_repo.create(
            invoice_id=invoice_id,
            amount=amount,
            currency=str(invoice.currency),
            status=PaymentStatus.COMPLETE,
            provider=PaymentProvider.MOCK,
        )

        new_paid = int(invoice.amount_paid) + amount
        new_status = status_for_amount_paid(
            new_paid, int(invoice.total), InvoiceStatus(invoice.status)
        )
        self.invoice_repo.apply_payment(invoice, new_paid, new_status)

        logger.info(
            "Applied payment %s of %d to invoice %s: paid %d/%d, status %s",
            payment.id,
            amount,
            invoice_id,
            new_paid,
            invoice.total,
            new_status.value,
        )
        return PaymentApplication(payment=payment, invoice=invoice)
