"""Tests for InvoiceGenerationService."""

from datetime import UTC, date, datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from billing.core.database import Base
from billing.core.errors import (
    BillingError,
    IntegrityViolationError,
    NotFoundError,
    UnprocessableError,
)
from billing.models.charge import Charge, ChargeStatus, ChargeType
from billing.models.customer import Customer
from billing.models.invoice import Invoice, InvoiceStatus
from billing.models.invoice_generation_request import InvoiceGenerationRequest
from billing.models.invoice_item import InvoiceItem
from billing.repositories.invoice_generation_request_repository import (
    InvoiceGenerationRequestRepository,
)
from billing.services.invoice_generation import InvoiceGenerationService, to_date_only
from billing.services.money import compute_tax

PERIOD_FROM = date(2026, 1, 1)
PERIOD_TO = date(2026, 1, 31)
RATE = Decimal("0.15")

_BASE_TIME = datetime(2026, 2, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def customer(db_session):
    c = Customer(name="Acme Storage", email="billing@acme.test", currency="usd")
    db_session.add(c)
    db_session.commit()
    db_session.refresh(c)
    return c


def add_charge(db, customer, amount, seq=0, **kwargs):
    """Insert a charge; ``seq`` orders charges by created_at."""
    values = {
        "type": ChargeType.STORAGE.value,
        "currency": "usd",
        "service_date": date(2026, 1, 15),
        "status": ChargeStatus.UNBILLED.value,
        "created_at": _BASE_TIME + timedelta(seconds=seq),
    }
    values.update(kwargs)
    charge = Charge(customer_id=customer.id, amount=amount, **values)
    db.add(charge)
    db.commit()
    db.refresh(charge)
    return charge


class TestToDateOnly:
    def test_date_passthrough(self):
        assert to_date_only(date(2026, 1, 31)) == date(2026, 1, 31)

    def test_naive_datetime(self):
        assert to_date_only(datetime(2026, 1, 31, 23, 59)) == date(2026, 1, 31)

    def test_aware_datetime_converted_to_utc(self):
        tz = timezone(timedelta(hours=-5))
        # 22:00 at UTC-5 is 03:00 the next day in UTC
        assert to_date_only(datetime(2026, 1, 31, 22, 0, tzinfo=tz)) == date(2026, 2, 1)

    def test_iso_strings(self):
        assert to_date_only("2026-01-15") == date(2026, 1, 15)
        assert to_date_only("2026-01-15T10:30:00+00:00") == date(2026, 1, 15)


class TestGenerateInvoice:
    def test_totals_and_items(self, db_session, customer):
        """Two charges of 1000 and 500 at 15% produce 1500 / 225 / 1725."""
        add_charge(db_session, customer, 1000, seq=0, description="Unit A")
        add_charge(db_session, customer, 500, seq=1, description="Unit B")

        service = InvoiceGenerationService(db_session, default_tax_rate=RATE)
        invoice = service.generate_invoice(customer.id, PERIOD_FROM, PERIOD_TO)

        assert invoice.subtotal == 1500
        assert invoice.tax_amount == 225
        assert invoice.total == 1725
        assert invoice.amount_paid == 0
        assert invoice.currency == "usd"
        assert invoice.status == InvoiceStatus.ISSUED.value
        assert invoice.issued_at is not None
        assert invoice.period_from == PERIOD_FROM
        assert invoice.period_to == PERIOD_TO
        assert Decimal(invoice.tax_rate) == RATE
        assert invoice.invoice_number.startswith("INV-")

        assert [i.description for i in invoice.items] == ["Unit A", "Unit B"]
        assert [i.amount for i in invoice.items] == [1000, 500]
        assert [i.tax_amount for i in invoice.items] == [150, 75]
        assert [i.total for i in invoice.items] == [1150, 575]

    def test_item_sums_match_invoice(self, db_session, customer):
        for seq, amount in enumerate([333, 333, 334, 17, -50]):
            add_charge(db_session, customer, amount, seq=seq)

        invoice = InvoiceGenerationService(db_session, default_tax_rate=RATE).generate_invoice(
            customer.id, PERIOD_FROM, PERIOD_TO
        )

        assert invoice.total == invoice.subtotal + invoice.tax_amount
        assert sum(i.amount for i in invoice.items) == invoice.subtotal
        assert sum(i.tax_amount for i in invoice.items) == invoice.tax_amount
        assert sum(i.total for i in invoice.items) == invoice.total

    def test_rounding_residue_on_first_item(self, db_session, customer):
        """Three 5-unit charges at 10%: lines round to 1 each, the invoice to 2."""
        for seq in range(3):
            add_charge(db_session, customer, 5, seq=seq)

        invoice = InvoiceGenerationService(db_session).generate_invoice(
            customer.id, PERIOD_FROM, PERIOD_TO, tax_rate=Decimal("0.1")
        )

        assert invoice.subtotal == 15
        assert invoice.tax_amount == 2
        assert invoice.total == 17
        assert [i.tax_amount for i in invoice.items] == [0, 1, 1]
        assert [i.total for i in invoice.items] == [5, 6, 6]

    def test_stored_rate_reproduces_tax(self, db_session, customer):
        add_charge(db_session, customer, 10_000_000)

        invoice = InvoiceGenerationService(db_session).generate_invoice(
            customer.id, PERIOD_FROM, PERIOD_TO, tax_rate=Decimal("0.123456")
        )
        invoice_id = invoice.id
        db_session.expire_all()
        stored = db_session.get(Invoice, invoice_id)

        assert Decimal(stored.tax_rate) == Decimal("0.123456")
        assert stored.tax_amount == 1_234_560
        assert compute_tax(stored.subtotal, Decimal(stored.tax_rate)) == stored.tax_amount

    def test_charges_marked_billed(self, db_session, customer):
        c1 = add_charge(db_session, customer, 1000, seq=0)
        c2 = add_charge(db_session, customer, 500, seq=1)

        invoice = InvoiceGenerationService(db_session).generate_invoice(
            customer.id, PERIOD_FROM, PERIOD_TO
        )

        db_session.expire_all()
        for charge in (c1, c2):
            assert charge.status == ChargeStatus.BILLED.value
            assert charge.invoice_id == invoice.id
        assert {i.charge_id for i in invoice.items} == {c1.id, c2.id}

    def test_ledger_row_points_at_invoice(self, db_session, customer):
        add_charge(db_session, customer, 1000)

        invoice = InvoiceGenerationService(db_session).generate_invoice(
            customer.id, PERIOD_FROM, PERIOD_TO
        )

        rows = db_session.query(InvoiceGenerationRequest).all()
        assert len(rows) == 1
        assert rows[0].customer_id == customer.id
        assert rows[0].invoice_id == invoice.id

    def test_uses_configured_default_rate(self, db_session, customer):
        add_charge(db_session, customer, 1000)

        with patch("billing.services.invoice_generation.settings") as mock_settings:
            mock_settings.INVOICE_TAX_RATE = Decimal("0.2")
            invoice = InvoiceGenerationService(db_session).generate_invoice(
                customer.id, PERIOD_FROM, PERIOD_TO
            )

        assert invoice.tax_amount == 200
        assert invoice.total == 1200

    def test_tax_rate_override(self, db_session, customer):
        add_charge(db_session, customer, 1000)

        invoice = InvoiceGenerationService(db_session, default_tax_rate=RATE).generate_invoice(
            customer.id, PERIOD_FROM, PERIOD_TO, tax_rate=Decimal("0")
        )

        assert invoice.tax_amount == 0
        assert invoice.total == 1000
        assert all(i.tax_amount == 0 for i in invoice.items)

    def test_issue_now_false_creates_draft(self, db_session, customer):
        add_charge(db_session, customer, 1000)

        invoice = InvoiceGenerationService(db_session).generate_invoice(
            customer.id, PERIOD_FROM, PERIOD_TO, issue_now=False
        )

        assert invoice.status == InvoiceStatus.DRAFT.value

    def test_accepts_datetimes(self, db_session, customer):
        add_charge(db_session, customer, 1000)

        invoice = InvoiceGenerationService(db_session).generate_invoice(
            customer.id,
            datetime(2026, 1, 1, 8, 30, tzinfo=UTC),
            datetime(2026, 1, 31, 18, 0, tzinfo=UTC),
        )

        assert invoice.period_from == PERIOD_FROM
        assert invoice.period_to == PERIOD_TO

    def test_discount_lowers_subtotal(self, db_session, customer):
        add_charge(db_session, customer, 1000, seq=0)
        add_charge(db_session, customer, -200, seq=1, type=ChargeType.DISCOUNT.value)

        invoice = InvoiceGenerationService(db_session, default_tax_rate=RATE).generate_invoice(
            customer.id, PERIOD_FROM, PERIOD_TO
        )

        assert invoice.subtotal == 800
        assert invoice.tax_amount == 120
        assert invoice.total == 920


class TestIdempotency:
    def test_repeat_returns_same_invoice(self, db_session, customer):
        add_charge(db_session, customer, 1000)
        service = InvoiceGenerationService(db_session)

        first = service.generate_invoice(customer.id, PERIOD_FROM, PERIOD_TO)
        second = service.generate_invoice(customer.id, PERIOD_FROM, PERIOD_TO)

        assert second.id == first.id
        assert second.total == first.total
        assert db_session.query(Invoice).count() == 1
        assert db_session.query(InvoiceGenerationRequest).count() == 1

    def test_replay_ignores_new_charges(self, db_session, customer):
        add_charge(db_session, customer, 1000, seq=0)
        service = InvoiceGenerationService(db_session)
        first = service.generate_invoice(customer.id, PERIOD_FROM, PERIOD_TO)

        late = add_charge(db_session, customer, 700, seq=5)
        replay = service.generate_invoice(customer.id, PERIOD_FROM, PERIOD_TO)

        assert replay.id == first.id
        assert replay.subtotal == 1000
        assert len(replay.items) == 1
        db_session.expire_all()
        assert late.status == ChargeStatus.UNBILLED.value

    def test_replay_with_datetime_key(self, db_session, customer):
        """Datetime arguments normalize to the same key as the plain dates."""
        add_charge(db_session, customer, 1000)
        service = InvoiceGenerationService(db_session)

        first = service.generate_invoice(customer.id, PERIOD_FROM, PERIOD_TO)
        second = service.generate_invoice(
            customer.id,
            datetime(2026, 1, 1, 23, 0, tzinfo=UTC),
            datetime(2026, 1, 31, 1, 0, tzinfo=UTC),
        )

        assert second.id == first.id

    def test_different_period_is_a_new_key(self, db_session, customer):
        add_charge(db_session, customer, 1000, seq=0, service_date=date(2026, 1, 10))
        add_charge(db_session, customer, 400, seq=1, service_date=date(2026, 2, 10))
        service = InvoiceGenerationService(db_session)

        january = service.generate_invoice(customer.id, PERIOD_FROM, PERIOD_TO)
        february = service.generate_invoice(customer.id, date(2026, 2, 1), date(2026, 2, 28))

        assert january.id != february.id
        assert january.subtotal == 1000
        assert february.subtotal == 400

    def test_overlapping_period_does_not_rebill(self, db_session, customer):
        add_charge(db_session, customer, 1000, seq=0, service_date=date(2026, 1, 10))
        service = InvoiceGenerationService(db_session)
        service.generate_invoice(customer.id, PERIOD_FROM, PERIOD_TO)

        with pytest.raises(UnprocessableError) as exc_info:
            service.generate_invoice(customer.id, date(2026, 1, 5), date(2026, 1, 20))

        assert exc_info.value.error_code == "NO_CHARGES_TO_INVOICE"

    def test_ledger_pointing_at_missing_invoice(self, db_session, customer):
        add_charge(db_session, customer, 1000)
        service = InvoiceGenerationService(db_session)
        service.generate_invoice(customer.id, PERIOD_FROM, PERIOD_TO)

        with (
            patch.object(service.invoice_repo, "get_by_id", return_value=None),
            pytest.raises(IntegrityViolationError) as exc_info,
        ):
            service.generate_invoice(customer.id, PERIOD_FROM, PERIOD_TO)

        assert exc_info.value.error_code == "IDEMPOTENCY_BROKEN"
        assert exc_info.value.status_code == 500


class TestGenerationErrors:
    def test_unknown_customer(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            InvoiceGenerationService(db_session).generate_invoice(uuid4(), PERIOD_FROM, PERIOD_TO)

        assert exc_info.value.error_code == "CUSTOMER_NOT_FOUND"
        assert exc_info.value.status_code == 404
        assert db_session.query(InvoiceGenerationRequest).count() == 0

    def test_no_charges(self, db_session, customer):
        with pytest.raises(UnprocessableError) as exc_info:
            InvoiceGenerationService(db_session).generate_invoice(
                customer.id, PERIOD_FROM, PERIOD_TO
            )

        err = exc_info.value
        assert err.error_code == "NO_CHARGES_TO_INVOICE"
        assert err.status_code == 422
        assert err.details == {
            "customer_id": str(customer.id),
            "period_from": "2026-01-01",
            "period_to": "2026-01-31",
        }
        assert db_session.query(Invoice).count() == 0
        assert db_session.query(InvoiceGenerationRequest).count() == 0

    def test_no_charges_then_retry_succeeds(self, db_session, customer):
        """A failed attempt leaves no ledger row, so a later retry can still bill."""
        service = InvoiceGenerationService(db_session)
        with pytest.raises(UnprocessableError):
            service.generate_invoice(customer.id, PERIOD_FROM, PERIOD_TO)

        add_charge(db_session, customer, 1000)
        invoice = service.generate_invoice(customer.id, PERIOD_FROM, PERIOD_TO)

        assert invoice.subtotal == 1000

    def test_multiple_currencies(self, db_session, customer):
        c1 = add_charge(db_session, customer, 1000, seq=0, currency="usd")
        c2 = add_charge(db_session, customer, 500, seq=1, currency="eur")

        with pytest.raises(UnprocessableError) as exc_info:
            InvoiceGenerationService(db_session).generate_invoice(
                customer.id, PERIOD_FROM, PERIOD_TO
            )

        assert exc_info.value.error_code == "MULTI_CURRENCY_NOT_SUPPORTED"
        assert exc_info.value.details == {"currencies": ["eur", "usd"]}

        db_session.expire_all()
        assert c1.status == ChargeStatus.UNBILLED.value
        assert c2.status == ChargeStatus.UNBILLED.value
        assert db_session.query(Invoice).count() == 0
        assert db_session.query(InvoiceGenerationRequest).count() == 0

    def test_failure_after_writes_rolls_back(self, db_session, customer):
        charge = add_charge(db_session, customer, 1000)
        service = InvoiceGenerationService(db_session)

        with (
            patch.object(service.invoice_repo, "get_by_id", return_value=None),
            pytest.raises(IntegrityViolationError) as exc_info,
        ):
            service.generate_invoice(customer.id, PERIOD_FROM, PERIOD_TO)

        assert exc_info.value.error_code == "INVOICE_CREATE_FAILED"
        db_session.expire_all()
        assert charge.status == ChargeStatus.UNBILLED.value
        assert charge.invoice_id is None
        assert db_session.query(Invoice).count() == 0
        assert db_session.query(InvoiceItem).count() == 0
        assert db_session.query(InvoiceGenerationRequest).count() == 0

    def test_tax_rate_finer_than_stored_scale(self, db_session, customer):
        add_charge(db_session, customer, 10_000_000)

        with pytest.raises(BillingError) as exc_info:
            InvoiceGenerationService(db_session).generate_invoice(
                customer.id, PERIOD_FROM, PERIOD_TO, tax_rate=Decimal("0.1234567")
            )

        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == "VALIDATION_ERROR"
        assert exc_info.value.details == {"tax_rate": "0.1234567"}
        assert db_session.query(Invoice).count() == 0
        assert db_session.query(InvoiceGenerationRequest).count() == 0

    def test_void_and_billed_charges_only(self, db_session, customer):
        add_charge(db_session, customer, 1000, status=ChargeStatus.VOID.value)
        add_charge(db_session, customer, 500, status=ChargeStatus.BILLED.value)

        with pytest.raises(UnprocessableError) as exc_info:
            InvoiceGenerationService(db_session).generate_invoice(
                customer.id, PERIOD_FROM, PERIOD_TO
            )

        assert exc_info.value.error_code == "NO_CHARGES_TO_INVOICE"


@pytest.fixture
def file_engine(tmp_path):
    """A file-backed SQLite database, so two sessions hold separate connections."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"timeout": 0.1},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


class TestConcurrentClaims:
    """Two sessions racing on the same customer and period."""

    def test_second_session_waits_then_replays(self, file_engine):
        with Session(file_engine) as setup:
            c = Customer(name="Race Co", currency="usd")
            setup.add(c)
            setup.commit()
            add_charge(setup, c, 1000)
            customer_id = c.id

        session_a = Session(file_engine)
        session_b = Session(file_engine)
        try:
            claimed = InvoiceGenerationRequestRepository(session_a).claim_or_get(
                customer_id, PERIOD_FROM, PERIOD_TO
            )
            assert claimed.invoice_id is None

            # A holds the write lock on the ledger key until it commits
            with pytest.raises(OperationalError):
                InvoiceGenerationService(session_b, default_tax_rate=RATE).generate_invoice(
                    customer_id, PERIOD_FROM, PERIOD_TO
                )

            first = InvoiceGenerationService(session_a, default_tax_rate=RATE).generate_invoice(
                customer_id, PERIOD_FROM, PERIOD_TO
            )
            replay = InvoiceGenerationService(session_b, default_tax_rate=RATE).generate_invoice(
                customer_id, PERIOD_FROM, PERIOD_TO
            )

            first_id = first.id
            assert replay.id == first_id
            assert replay.total == 1150
        finally:
            session_a.close()
            session_b.close()

        with Session(file_engine) as check:
            assert check.query(Invoice).count() == 1
            assert check.query(InvoiceGenerationRequest).count() == 1
            assert check.query(InvoiceItem).count() == 1
            charge = check.query(Charge).one()
            assert charge.status == ChargeStatus.BILLED.value
            assert charge.invoice_id == first_id

    def test_rolled_back_claim_frees_the_key(self, file_engine):
        with Session(file_engine) as setup:
            c = Customer(name="Race Co", currency="usd")
            setup.add(c)
            setup.commit()
            add_charge(setup, c, 1000)
            customer_id = c.id

        with Session(file_engine) as session_a, Session(file_engine) as session_b:
            InvoiceGenerationRequestRepository(session_a).claim_or_get(
                customer_id, PERIOD_FROM, PERIOD_TO
            )
            session_a.rollback()

            invoice = InvoiceGenerationService(session_b, default_tax_rate=RATE).generate_invoice(
                customer_id, PERIOD_FROM, PERIOD_TO
            )

            assert invoice.subtotal == 1000
            assert session_b.query(InvoiceGenerationRequest).count() == 1
