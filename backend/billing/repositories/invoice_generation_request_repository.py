"""Repository for the invoice generation idempotency ledger."""

from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from billing.models.invoice_generation_request import InvoiceGenerationRequest
from billing.models.shared import generate_uuid, utc_now

_UPSERT_DIALECTS: dict[str, Any] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class InvoiceGenerationRequestRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(
        self, customer_id: UUID, period_from: date, period_to: date, lock: bool = False
    ) -> InvoiceGenerationRequest | None:
        stmt = select(InvoiceGenerationRequest).where(
            InvoiceGenerationRequest.customer_id == customer_id,
            InvoiceGenerationRequest.period_from == period_from,
            InvoiceGenerationRequest.period_to == period_to,
        )
        if lock:
            stmt = stmt.with_for_update()
        return self.db.execute(
            stmt.execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def claim_or_get(
        self, customer_id: UUID, period_from: date, period_to: date
    ) -> InvoiceGenerationRequest:
        """Insert the ledger row for the key, or return the one already there.

        The insert goes through the unique constraint, so a concurrent claim for
        the same key blocks until the other transaction finishes and then reads
        its row. Does not commit.
        """
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        values = {
            "id": generate_uuid(),
            "customer_id": customer_id,
            "period_from": period_from,
            "period_to": period_to,
            "created_at": utc_now(),
            "updated_at": utc_now(),
        }

        if insert is not None:
            self.db.execute(
                insert(InvoiceGenerationRequest)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["customer_id", "period_from", "period_to"])
            )
        else:
            savepoint = self.db.begin_nested()
            try:
                self.db.add(InvoiceGenerationRequest(**values))
                self.db.flush()
                savepoint.commit()
            except IntegrityError:
                savepoint.rollback()

        return self.get(customer_id, period_from, period_to, lock=True)  # type: ignore[return-value]

    def resolve(self, request: InvoiceGenerationRequest, invoice_id: UUID) -> None:
        """Point the ledger row at the invoice produced for it. Does not commit."""
        request.invoice_id = invoice_id  # type: ignore[assignment]
        self.db.flush()
