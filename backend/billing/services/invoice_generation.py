import logging
from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from billing.core.config import settings
from billing.core.errors import (
    BillingError,
    IntegrityViolationError,
    NotFoundError,
    UnprocessableError,
)
from billing.models.invoice import Invoice, InvoiceStatus
from billing.repositories.charge_repository import ChargeRepository
from billing.repositories.customer_repository import CustomerRepository
from billing.repositories.invoice_generation_request_repository import (
    InvoiceGenerationRequestRepository,
)
from billing.repositories.invoice_item_repository import InvoiceItemRepository
from billing.repositories.invoice_repository import InvoiceRepository
from billing.services.money import allocate_line_taxes, compute_tax, to_rate

logger = logging.getLogger(__name__)


def to_date_only(value: date | datetime | str) -> date:
    """Truncate to a calendar day. Aware datetimes are converted to UTC first."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value) if "T" in value else date.fromisoformat(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date()
    return value


class InvoiceGenerationService:
    """Aggregates a customer's unbilled charges for a period into one invoice.

    Generation is idempotent per (customer, period_from, period_to): the first
    successful call writes the invoice, later calls return it unchanged. All
    writes of a call happen in a single transaction on ``db``; any failure
    rolls every one of them back, ledger claim included.
    """

    def __init__(self, db: Session, default_tax_rate: Decimal | None = None):
        self.db = db
        self.default_tax_rate = (
            default_tax_rate if default_tax_rate is not None else settings.INVOICE_TAX_RATE
        )
        self.customer_repo = CustomerRepository(db)
        self.charge_repo = ChargeRepository(db)
        self.ledger_repo = InvoiceGenerationRequestRepository(db)
        self.invoice_repo = InvoiceRepository(db)
        self.item_repo = InvoiceItemRepository(db)

    def generate_invoice(
        self,
        customer_id: UUID,
        period_from: date | datetime | str,
        period_to: date | datetime | str,
        tax_rate: Decimal | str | None = None,
        issue_now: bool = True,
    ) -> Invoice:
        """Generate (or replay) the invoice for a customer and billing period.

        Args:
            customer_id: The customer to bill
            period_from: First day of the period, inclusive
            period_to: Last day of the period, inclusive
            tax_rate: Override for the configured default rate
            issue_now: Create the invoice as ``issued`` rather than ``draft``

        Returns:
            The invoice with its items loaded

        Raises:
            BillingError: VALIDATION_ERROR for a tax rate finer than the stored scale
            NotFoundError: CUSTOMER_NOT_FOUND
            UnprocessableError: NO_CHARGES_TO_INVOICE, MULTI_CURRENCY_NOT_SUPPORTED
            IntegrityViolationError: IDEMPOTENCY_BROKEN, INVOICE_CREATE_FAILED
        """
        start = to_date_only(period_from)
        end = to_date_only(period_to)
        requested_rate = tax_rate if tax_rate is not None else self.default_tax_rate
        try:
            rate = to_rate(requested_rate)
        except ValueError as e:
            raise BillingError(
                str(e), error_code="VALIDATION_ERROR", details={"tax_rate": str(requested_rate)}
            ) from None

        try:
            invoice = self._generate(customer_id, start, end, rate, issue_now)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return invoice

    def _generate(
        self,
        customer_id: UUID,
        period_from: date,
        period_to: date,
        tax_rate: Decimal,
        issue_now: bool,
    ) -> Invoice:
        customer = self.customer_repo.get_by_id(customer_id)
        if not customer:
            raise NotFoundError(
                "Customer not found",
                error_code="CUSTOMER_NOT_FOUND",
                details={"customer_id": str(customer_id)},
            )

        ledger_row = self.ledger_repo.claim_or_get(customer_id, period_from, period_to)
        if ledger_row.invoice_id is not None:
            existing = self.invoice_repo.get_by_id(UUID(str(ledger_row.invoice_id)))
            if not existing:
                raise IntegrityViolationError(
                    "Idempotency record points to missing invoice",
                    error_code="IDEMPOTENCY_BROKEN",
                    details={"invoice_id": str(ledger_row.invoice_id)},
                )
            logger.info(
                "Invoice %s already generated for customer %s period %s..%s",
                existing.id,
                customer_id,
                period_from,
                period_to,
            )
            return existing

        charges = self.charge_repo.get_unbilled_for_period(customer_id, period_from, period_to)
        if not charges:
            logger.warning(
                "No unbilled charges for customer %s period %s..%s",
                customer_id,
                period_from,
                period_to,
            )
            raise UnprocessableError(
                "No unbilled charges for that customer and period",
                error_code="NO_CHARGES_TO_INVOICE",
                details={
                    "customer_id": str(customer_id),
                    "period_from": period_from.isoformat(),
                    "period_to": period_to.isoformat(),
                },
            )

        currencies = sorted({str(c.currency).lower() for c in charges})
        if len(currencies) > 1:
            logger.warning(
                "Charges for customer %s span currencies %s", customer_id, ", ".join(currencies)
            )
            raise UnprocessableError(
                "Charges contain multiple currencies; cannot generate a single invoice",
                error_code="MULTI_CURRENCY_NOT_SUPPORTED",
                details={"currencies": currencies},
            )
        currency = currencies[0] if currencies else str(customer.currency).lower()

        amounts = [int(c.amount) for c in charges]
        subtotal = sum(amounts)
        tax_amount = compute_tax(subtotal, tax_rate)
        total = subtotal + tax_amount

        invoice = self.invoice_repo.create(
            customer_id=customer_id,
            period_from=period_from,
            period_to=period_to,
            status=InvoiceStatus.ISSUED if issue_now else InvoiceStatus.DRAFT,
            currency=currency,
            subtotal=subtotal,
            tax_rate=tax_rate,
            tax_amount=tax_amount,
            total=total,
            issued_at=datetime.now(UTC),
        )
        invoice_id = UUID(str(invoice.id))

        lines = allocate_line_taxes(amounts, tax_rate, tax_amount)
        self.item_repo.create_bulk(invoice_id, charges, lines, tax_rate)

        self.charge_repo.mark_billed([UUID(str(c.id)) for c in charges], invoice_id)
        self.ledger_repo.resolve(ledger_row, invoice_id)

        created = self.invoice_repo.get_by_id(invoice_id)
        if not created:
            raise IntegrityViolationError(
                "Invoice create failed", error_code="INVOICE_CREATE_FAILED"
            )

        logger.info(
            "Generated invoice %s (%s) for customer %s: %d items, total %d %s",
            created.id,
            created.invoice_number,
            customer_id,
            len(charges),
            total,
            currency,
        )
        return created
