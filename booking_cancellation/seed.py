"""Demo data for local development: one partner, two offers, one customer with bookings."""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from booking_cancellation.db.session import SessionLocal
from booking_cancellation.models.user import User
from booking_cancellation.models.partner import Partner
from booking_cancellation.models.offer import Offer, OfferVariant
from booking_cancellation.models.booking import Booking
from booking_cancellation.models.loyalty import LoyaltyAccount

logger = logging.getLogger(__name__)

DEMO_PARTNER_ID = "00000000-0000-0000-0000-00000000a001"


def ensure_user(db: Session, email: str, role: str, first_name: str, partner_id: str | None = None) -> User:
    u = db.query(User).filter(User.email == email).first()
    if u:
        return u
    u = User(id=str(uuid.uuid4()), email=email, first_name=first_name, role=role, partner_id=partner_id, is_active=True)
    db.add(u)
    db.commit()
    return u


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM partners LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("partners table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        if db.get(Partner, DEMO_PARTNER_ID):
            return

        partner = Partner(id=DEMO_PARTNER_ID, business_name="Demo Studio", contact_email="studio@club.local")
        db.add(partner)
        db.flush()

        now = datetime.now(timezone.utc)
        workshop = Offer(
            id=str(uuid.uuid4()), title="Pottery workshop", cancellation_policy="moderate",
            booking_type="event", event_start_date=now + timedelta(days=20), partner_id=partner.id,
        )
        ebook = Offer(
            id=str(uuid.uuid4()), title="Wellness e-book", cancellation_policy="flexible",
            booking_type="purchase", partner_id=partner.id,
        )
        db.add_all([workshop, ebook])
        db.flush()
        variant = OfferVariant(id=str(uuid.uuid4()), offer_id=workshop.id, name="Evening session", stock=8)
        db.add(variant)
        db.commit()

        ensure_user(db, "partner@club.local", "partner", "Demo", partner_id=partner.id)
        customer = ensure_user(db, "member@club.local", "customer", "Member")
        db.add(LoyaltyAccount(user_id=customer.id, points_balance=120, lifetime_points=120))
        db.add_all([
            Booking(
                id=str(uuid.uuid4()), user_id=customer.id, offer_id=workshop.id, variant_id=variant.id,
                status="paid", payment_intent_id="pi_demo_workshop", amount=Decimal("45.00"),
                customer_email=customer.email,
            ),
            Booking(
                id=str(uuid.uuid4()), user_id=customer.id, offer_id=ebook.id,
                status="paid", payment_intent_id="pi_demo_ebook", amount=Decimal("12.00"),
                customer_email=customer.email,
            ),
        ])
        db.commit()
        logger.info("Seeded demo partner, offers and bookings")
    finally:
        db.close()


if __name__ == "__main__":
    run()
