"""Sweep that reminds customers about invoices with an outstanding balance."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session

from billing.core.config import settings
from billing.core.errors import IntegrityViolationError
from billing.models.communication_log import CommunicationType
from billing.models.invoice import Invoice
from billing.repositories.communication_log_repository import CommunicationLogRepository
from billing.repositories.customer_repository import CustomerRepository
from billing.repositories.invoice_repository import InvoiceRepository
from billing.services.notification_sender import NotificationSender

logger = logging.getLogger(__name__)


@dataclass
class CustomerNotificationResult:
    customer_id: UUID
    invoice_count: int
    total_due: int
    currency: str


@dataclass
class PendingInvoicesSweepResult:
    customers_notified: int
    results: list[CustomerNotificationResult]


class PendingInvoiceNotificationService:
    """Sends one aggregated reminder per customer with issued or partial invoices.

    Every run notifies again; the communication log is an audit trail and is
    not consulted to skip customers already reminded.
    """

    def __init__(
        self,
        db: Session,
        sender: NotificationSender | None = None,
        base_url: str | None = None,
    ):
        self.db = db
        self.sender = sender or NotificationSender()
        self.base_url = (base_url or settings.APP_BASE_URL).rstrip("/")
        self.invoice_repo = InvoiceRepository(db)
        self.customer_repo = CustomerRepository(db)
        self.log_repo = CommunicationLogRepository(db)

    def pay_link(self, customer_id: UUID) -> str:
        return f"{self.base_url}/pay?customer_id={customer_id}"

    def send_pending_invoices(self, customer_id: UUID | None = None) -> PendingInvoicesSweepResult:
        invoices = [
            inv
            for inv in self.invoice_repo.get_outstanding(customer_id)
            if int(inv.amount_paid) < int(inv.total)
        ]

        by_customer: dict[UUID, list[Invoice]] = defaultdict(list)
        for inv in invoices:
            by_customer[UUID(str(inv.customer_id))].append(inv)

        results: list[CustomerNotificationResult] = []
        for cust_id, customer_invoices in by_customer.items():
            results.append(self._notify_customer(cust_id, customer_invoices))

        if results:
            logger.info("Sent pending invoice notifications to %d customers", len(results))
        return PendingInvoicesSweepResult(customers_notified=len(results), results=results)

    def _notify_customer(
        self, customer_id: UUID, invoices: list[Invoice]
    ) -> CustomerNotificationResult:
        currency = str(invoices[0].currency)
        total_due = sum(int(inv.total) - int(inv.amount_paid) for inv in invoices)
        payload = {
            "customer_id": str(customer_id),
            "invoice_count": len(invoices),
            "total_due": total_due,
            "currency": currency,
            "pay_link": self.pay_link(customer_id),
            "invoice_ids": [str(inv.id) for inv in invoices],
        }

        log = self.log_repo.create(
            customer_id=customer_id,
            type=CommunicationType.PENDING_INVOICES_EMAIL,
            payload=payload,
        )
        customer = self.customer_repo.get_by_id(customer_id)
        if customer is None:
            raise IntegrityViolationError(
                "Invoice references missing customer",
                details={"customer_id": str(customer_id)},
            )
        self.sender.send(customer, payload)
        self.log_repo.mark_sent(log)
        logger.info(
            "Notified customer %s about %d invoices, %d %s due",
            customer_id,
            len(invoices),
            total_due,
            currency,
        )

        return CustomerNotificationResult(
            customer_id=customer_id,
            invoice_count=len(invoices),
            total_due=total_due,
            currency=currency,
        )
