from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from billing.core.config import settings
from billing.core.database import get_db
from billing.core.errors import NotFoundError
from billing.models.communication_log import CommunicationLog
from billing.models.customer import Customer
from billing.repositories.communication_log_repository import CommunicationLogRepository
from billing.repositories.customer_repository import CustomerRepository
from billing.schemas.customer import CustomerCreate, CustomerResponse
from billing.schemas.error import ErrorResponse
from billing.schemas.notification import CommunicationLogResponse

router = APIRouter()


def get_customer_or_404(customer_id: UUID, db: Session) -> Customer:
    customer = CustomerRepository(db).get_by_id(customer_id)
    if not customer:
        raise NotFoundError(
            "Customer not found",
            error_code="CUSTOMER_NOT_FOUND",
            details={"customer_id": str(customer_id)},
        )
    return customer


@router.post(
    "/",
    response_model=CustomerResponse,
    status_code=201,
    summary="Create customer",
    responses={400: {"model": ErrorResponse, "description": "Validation error"}},
)
async def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
) -> Customer:
    """Create a new customer."""
    repo = CustomerRepository(db)
    return repo.create(data, default_currency=settings.DEFAULT_CURRENCY)


@router.get("/", response_model=list[CustomerResponse], summary="List customers")
async def list_customers(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[Customer]:
    """List all customers with pagination."""
    repo = CustomerRepository(db)
    response.headers["X-Total-Count"] = str(repo.count())
    return repo.get_all(skip=skip, limit=limit)


@router.get(
    "/{customer_id}",
    response_model=CustomerResponse,
    summary="Get customer",
    responses={404: {"model": ErrorResponse, "description": "Customer not found"}},
)
async def get_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
) -> Customer:
    return get_customer_or_404(customer_id, db)


@router.get(
    "/{customer_id}/communications",
    response_model=list[CommunicationLogResponse],
    summary="List customer communications",
    responses={404: {"model": ErrorResponse, "description": "Customer not found"}},
)
async def list_customer_communications(
    customer_id: UUID,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[CommunicationLog]:
    """List notifications logged for a customer, newest first."""
    get_customer_or_404(customer_id, db)
    return CommunicationLogRepository(db).get_by_customer_id(customer_id, skip=skip, limit=limit)
