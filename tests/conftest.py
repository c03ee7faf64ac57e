import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["SENDGRID_API_KEY"] = ""

import uuid  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from booking_cancellation.db.session import Base  # noqa: E402
from booking_cancellation.models.user import User  # noqa: E402
from booking_cancellation.models.partner import Partner  # noqa: E402
from booking_cancellation.models.offer import Offer, OfferVariant  # noqa: E402
from booking_cancellation.models.booking import Booking  # noqa: E402
from booking_cancellation.models.loyalty import LoyaltyAccount, LoyaltyTransaction  # noqa: E402,F401
from booking_cancellation.models.email_log import EmailLog  # noqa: E402,F401
from booking_cancellation.models.audit_log import AuditLog  # noqa: E402,F401
from booking_cancellation.services.gateways import CancellationGateways  # noqa: E402

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakePayments:
    def __init__(self, fail: bool = False, fee_cents: int = 0):
        self.fail = fail
        self.fee_cents = fee_cents
        self.refunds: list[dict] = []

    def create_refund(self, charge_ref, reason="requested_by_customer", metadata=None):
        if self.fail:
            raise RuntimeError("processor unavailable")
        self.refunds.append({"charge_ref": charge_ref, "reason": reason, "metadata": metadata or {}})
        return f"re_{len(self.refunds)}"

    def get_charge_fee(self, charge_ref):
        return self.fee_cents


class FakeMailer:
    def __init__(self, fail_for: set[str] | None = None):
        self.fail_for = fail_for or set()
        self.sent: list[dict] = []

    def send(self, to_email, subject, html_body):
        if to_email in self.fail_for or "*" in self.fail_for:
            raise RuntimeError(f"mailbox {to_email} rejected")
        self.sent.append({"to": to_email, "subject": subject, "html": html_body})


class FakeCalendar:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.tokens: list[str] = []
        self.cancelled: list[tuple[str, str]] = []

    def factory(self, token):
        self.tokens.append(token)
        return self

    def cancel_scheduled_event(self, event_id, reason):
        if self.fail:
            raise RuntimeError("calendly 500")
        self.cancelled.append((event_id, reason))
        return {}


@pytest.fixture
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def payments():
    return FakePayments()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def calendar():
    return FakeCalendar()


@pytest.fixture
def gateways(payments, mailer, calendar):
    return CancellationGateways(payments=payments, mailer=mailer, calendar_factory=calendar.factory)


@pytest.fixture
def make_world(db):
    """Build a partner, an offer, a customer and a paid booking; override any field by keyword."""

    def _make(
        policy="flexible",
        booking_type="event",
        event_start_date=None,
        scheduled_at=None,
        booking_date=NOW - timedelta(days=30),
        stock=5,
        with_variant=True,
        payment_intent_id="pi_test_123",
        amount=Decimal("49.90"),
        source="direct",
        calendly_event_id=None,
        calendly_token=None,
        partner_email="partner@studio.test",
        customer_email="member@club.test",
        points_balance=100,
        status="paid",
    ):
        partner = Partner(
            id=str(uuid.uuid4()), business_name="Studio", contact_email=partner_email,
            calendly_token=calendly_token, pending_penalties=Decimal("0"),
        )
        db.add(partner)
        db.flush()
        offer = Offer(
            id=str(uuid.uuid4()), title="Yoga at sunrise", cancellation_policy=policy,
            booking_type=booking_type, event_start_date=event_start_date, partner_id=partner.id,
        )
        db.add(offer)
        db.flush()
        variant = None
        if with_variant:
            variant = OfferVariant(id=str(uuid.uuid4()), offer_id=offer.id, name="Morning", stock=stock)
            db.add(variant)
        customer = User(
            id=str(uuid.uuid4()), email=customer_email, first_name="Alex", last_name="Martin",
            role="customer", is_active=True,
        )
        db.add(customer)
        if points_balance is not None:
            db.add(LoyaltyAccount(user_id=customer.id, points_balance=points_balance, lifetime_points=points_balance))
        booking = Booking(
            id=str(uuid.uuid4()), user_id=customer.id, offer_id=offer.id,
            variant_id=variant.id if variant else None, status=status, source=source,
            scheduled_at=scheduled_at, booking_date=booking_date, payment_intent_id=payment_intent_id,
            amount=amount, customer_email=customer_email, calendly_event_id=calendly_event_id,
        )
        db.add(booking)
        db.commit()
        return {"partner": partner, "offer": offer, "variant": variant, "customer": customer, "booking": booking}

    return _make
