from datetime import date, datetime, time
from typing import Any
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from billing.models.charge import Charge, ChargeStatus
from billing.models.customer import Customer
from billing.schemas.charge import ChargeCreate, ChargeUpdate


class ChargeRepository:
    def __init__(self, db: Session):
        self.db = db

    def _filtered(
        self,
        customer_id: UUID | None = None,
        status: ChargeStatus | None = None,
        created_from: date | None = None,
        created_to: date | None = None,
    ) -> Any:
        query = self.db.query(Charge)
        if customer_id:
            query = query.filter(Charge.customer_id == customer_id)
        if status:
            query = query.filter(Charge.status == status.value)
        if created_from:
            query = query.filter(Charge.created_at >= datetime.combine(created_from, time.min))
        if created_to:
            query = query.filter(Charge.created_at <= datetime.combine(created_to, time.max))
        return query

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        customer_id: UUID | None = None,
        status: ChargeStatus | None = None,
        created_from: date | None = None,
        created_to: date | None = None,
    ) -> list[Charge]:
        query = self._filtered(customer_id, status, created_from, created_to)
        return query.order_by(Charge.created_at.desc()).offset(skip).limit(limit).all()

    def count(
        self,
        customer_id: UUID | None = None,
        status: ChargeStatus | None = None,
        created_from: date | None = None,
        created_to: date | None = None,
    ) -> int:
        return int(self._filtered(customer_id, status, created_from, created_to).count())

    def get_by_id(self, charge_id: UUID) -> Charge | None:
        return self.db.query(Charge).filter(Charge.id == charge_id).first()

    def get_by_invoice_id(self, invoice_id: UUID) -> list[Charge]:
        return (
            self.db.query(Charge)
            .filter(Charge.invoice_id == invoice_id)
            .order_by(Charge.created_at.asc())
            .all()
        )

    def create(self, data: ChargeCreate, customer: Customer) -> Charge:
        charge = Charge(
            customer_id=customer.id,
            type=data.type.value,
            amount=data.amount,
            currency=(data.currency or str(customer.currency)).lower(),
            description=data.description,
            service_date=data.service_date,
            period_from=data.period_from,
            period_to=data.period_to,
            status=ChargeStatus.UNBILLED.value,
            charge_metadata=data.metadata,
        )
        self.db.add(charge)
        self.db.commit()
        self.db.refresh(charge)
        return charge

    def update(self, charge: Charge, data: ChargeUpdate) -> Charge:
        update_data = data.model_dump(exclude_unset=True)

        if update_data.get("type") is not None:
            update_data["type"] = update_data["type"].value
        if "metadata" in update_data:
            update_data["charge_metadata"] = update_data.pop("metadata")

        for key, value in update_data.items():
            setattr(charge, key, value)

        self.db.commit()
        self.db.refresh(charge)
        return charge

    def void(self, charge: Charge) -> Charge:
        charge.status = ChargeStatus.VOID.value  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(charge)
        return charge

    def get_unbilled_for_period(
        self, customer_id: UUID, period_from: date, period_to: date
    ) -> list[Charge]:
        """Unbilled charges dated inside ``[period_from, period_to]`` (inclusive).

        A charge qualifies when its ``service_date`` falls in the range, or when
        it carries a full ``period_from``/``period_to`` range that overlaps it.
        Rows are locked for the rest of the transaction where the backend
        supports it, and returned oldest first.
        """
        return (
            self.db.query(Charge)
            .filter(
                Charge.customer_id == customer_id,
                Charge.status == ChargeStatus.UNBILLED.value,
                or_(
                    and_(
                        Charge.service_date.isnot(None),
                        Charge.service_date >= period_from,
                        Charge.service_date <= period_to,
                    ),
                    and_(
                        Charge.period_from.isnot(None),
                        Charge.period_to.isnot(None),
                        Charge.period_from <= period_to,
                        Charge.period_to >= period_from,
                    ),
                ),
            )
            .order_by(Charge.created_at.asc(), Charge.id.asc())
            .with_for_update()
            .all()
        )

    def mark_billed(self, charge_ids: list[UUID], invoice_id: UUID) -> int:
        """Bulk-transition unbilled charges to billed. Does not commit."""
        if not charge_ids:
            return 0
        count = (
            self.db.query(Charge)
            .filter(
                Charge.id.in_(charge_ids),
                Charge.status == ChargeStatus.UNBILLED.value,
            )
            .update(
                {
                    Charge.status: ChargeStatus.BILLED.value,
                    Charge.invoice_id: invoice_id,
                },
                synchronize_session="fetch",
            )
        )
        self.db.flush()
        return int(count)
