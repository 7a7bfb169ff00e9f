from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from billing.models.charge import Charge
from billing.models.invoice_item import InvoiceItem
from billing.services.money import LineTax


class InvoiceItemRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_invoice_id(self, invoice_id: UUID) -> list[InvoiceItem]:
        return (
            self.db.query(InvoiceItem)
            .filter(InvoiceItem.invoice_id == invoice_id)
            .order_by(InvoiceItem.position.asc())
            .all()
        )

    def create_bulk(
        self,
        invoice_id: UUID,
        charges: list[Charge],
        lines: list[LineTax],
        tax_rate: Decimal,
    ) -> list[InvoiceItem]:
        """Create one item per charge, in charge order. Does not commit."""
        items = [
            InvoiceItem(
                invoice_id=invoice_id,
                charge_id=charge.id,
                position=position,
                description=charge.description or f"{charge.type} charge",
                amount=line.amount,
                tax_rate=tax_rate,
                tax_amount=line.tax_amount,
                total=line.total,
            )
            for position, (charge, line) in enumerate(zip(charges, lines, strict=True))
        ]
        self.db.add_all(items)
        self.db.flush()
        return items
