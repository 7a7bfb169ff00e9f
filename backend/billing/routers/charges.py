from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from billing.core.database import get_db
from billing.core.errors import BillingError, NotFoundError, UnprocessableError
from billing.models.charge import Charge, ChargeStatus
from billing.repositories.charge_repository import ChargeRepository
from billing.routers.customers import get_customer_or_404
from billing.schemas.charge import ChargeCreate, ChargeResponse, ChargeUpdate
from billing.schemas.error import ErrorResponse

router = APIRouter()


def _get_charge_or_404(charge_id: UUID, db: Session) -> Charge:
    charge = ChargeRepository(db).get_by_id(charge_id)
    if not charge:
        raise NotFoundError(
            "Charge not found",
            error_code="CHARGE_NOT_FOUND",
            details={"charge_id": str(charge_id)},
        )
    return charge


def _ensure_unbilled(charge: Charge) -> None:
    """Billed and void charges are frozen."""
    if charge.status == ChargeStatus.VOID.value:
        raise UnprocessableError(
            "Cannot edit a void charge",
            error_code="CHARGE_VOID",
            details={"charge_id": str(charge.id)},
        )
    if charge.status == ChargeStatus.BILLED.value:
        raise UnprocessableError(
            "Cannot change a billed charge",
            error_code="CHARGE_BILLED",
            details={
                "charge_id": str(charge.id),
                "invoice_id": str(charge.invoice_id) if charge.invoice_id else None,
            },
        )


@router.post(
    "/",
    response_model=ChargeResponse,
    status_code=201,
    summary="Create charge",
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        404: {"model": ErrorResponse, "description": "Customer not found"},
    },
)
async def create_charge(
    data: ChargeCreate,
    db: Session = Depends(get_db),
) -> Charge:
    """Record an unbilled charge for a customer."""
    customer = get_customer_or_404(data.customer_id, db)
    return ChargeRepository(db).create(data, customer)


@router.get("/", response_model=list[ChargeResponse], summary="List charges")
async def list_charges(
    response: Response,
    customer_id: UUID | None = None,
    status: ChargeStatus | None = None,
    created_from: date | None = None,
    created_to: date | None = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[Charge]:
    """List charges with optional filters, newest first."""
    repo = ChargeRepository(db)
    response.headers["X-Total-Count"] = str(
        repo.count(customer_id, status, created_from, created_to)
    )
    return repo.get_all(
        skip=skip,
        limit=limit,
        customer_id=customer_id,
        status=status,
        created_from=created_from,
        created_to=created_to,
    )


@router.get(
    "/{charge_id}",
    response_model=ChargeResponse,
    summary="Get charge",
    responses={404: {"model": ErrorResponse, "description": "Charge not found"}},
)
async def get_charge(
    charge_id: UUID,
    db: Session = Depends(get_db),
) -> Charge:
    return _get_charge_or_404(charge_id, db)


@router.patch(
    "/{charge_id}",
    response_model=ChargeResponse,
    summary="Update charge",
    responses={
        404: {"model": ErrorResponse, "description": "Charge not found"},
        422: {"model": ErrorResponse, "description": "Charge is billed or void"},
    },
)
async def update_charge(
    charge_id: UUID,
    data: ChargeUpdate,
    db: Session = Depends(get_db),
) -> Charge:
    """Edit an unbilled charge."""
    charge = _get_charge_or_404(charge_id, db)
    _ensure_unbilled(charge)
    changes = data.model_dump(exclude_unset=True)
    period_from = changes.get("period_from", charge.period_from)
    period_to = changes.get("period_to", charge.period_to)
    if period_from and period_to and period_from > period_to:
        raise BillingError(
            "period_from must be on or before period_to",
            error_code="VALIDATION_ERROR",
            details={"period_from": str(period_from), "period_to": str(period_to)},
        )
    return ChargeRepository(db).update(charge, data)


@router.delete(
    "/{charge_id}",
    response_model=ChargeResponse,
    summary="Void charge",
    responses={
        404: {"model": ErrorResponse, "description": "Charge not found"},
        422: {"model": ErrorResponse, "description": "Charge is already billed"},
    },
)
async def void_charge(
    charge_id: UUID,
    db: Session = Depends(get_db),
) -> Charge:
    """Void an unbilled charge. Charges are never physically deleted."""
    charge = _get_charge_or_404(charge_id, db)
    if charge.status == ChargeStatus.VOID.value:
        return charge
    _ensure_unbilled(charge)
    return ChargeRepository(db).void(charge)
