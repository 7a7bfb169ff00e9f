from uuid import UUID

from sqlalchemy.orm import Session

from billing.models.customer import Customer
from billing.schemas.customer import CustomerCreate


class CustomerRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self, skip: int = 0, limit: int = 100) -> list[Customer]:
        return (
            self.db.query(Customer)
            .order_by(Customer.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count(self) -> int:
        return self.db.query(Customer).count()

    def get_by_id(self, customer_id: UUID) -> Customer | None:
        return self.db.query(Customer).filter(Customer.id == customer_id).first()

    def create(self, data: CustomerCreate, default_currency: str) -> Customer:
        customer = Customer(
            name=data.name,
            email=data.email,
            phone=data.phone,
            currency=(data.currency or default_currency).lower(),
        )
        self.db.add(customer)
        self.db.commit()
        self.db.refresh(customer)
        return customer
