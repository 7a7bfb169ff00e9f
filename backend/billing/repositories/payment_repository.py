"""Payment repository for data access."""

from uuid import UUID

from sqlalchemy.orm import Session

from billing.models.payment import Payment, PaymentProvider, PaymentStatus


class PaymentRepository:
    """Repository for Payment model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_invoice_id(self, invoice_id: UUID) -> list[Payment]:
        return (
            self.db.query(Payment)
            .filter(Payment.invoice_id == invoice_id)
            .order_by(Payment.created_at.asc())
            .all()
        )

    def create(
        self,
        invoice_id: UUID,
        amount: int,
        currency: str,
        status: PaymentStatus = PaymentStatus.COMPLETE,
        provider: PaymentProvider = PaymentProvider.MOCK,
    ) -> Payment:
        """Record a payment. Does not commit."""
        payment = Payment(
            invoice_id=invoice_id,
            amount=amount,
            currency=currency,
            status=status.value,
            provider=provider.value,
        )
        self.db.add(payment)
        self.db.flush()
        return payment
