from datetime import datetime
from decimal import Decimal
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from booking_cancellation.core.exceptions import BookingAlreadyCancelledError, CancellationCommitError
from booking_cancellation.models.booking import Booking
from booking_cancellation.models.offer import Offer
from booking_cancellation.models.partner import Partner

CANCELLED = "cancelled"


def load_booking_context(db: Session, booking_id: str) -> Booking | None:
    """Booking with its offer and the offer's partner, in one query."""
    return db.execute(
        select(Booking)
        .options(joinedload(Booking.offer).joinedload(Offer.partner))
        .where(Booking.id == booking_id)
    ).unique().scalar_one_or_none()


def commit_cancellation(
    db: Session,
    booking_id: str,
    reason: str,
    cancelled_at: datetime,
    cancelled_by_partner: bool = False,
    partner_penalty: tuple[str, Decimal] | None = None,
) -> None:
    """The one authoritative write of a cancellation.

    Only a booking that is not yet cancelled is updated, so of two concurrent
    requests exactly one gets a row back; the other sees BookingAlreadyCancelledError.
    """
    try:
        res = db.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.status != CANCELLED)
            .values(
                status=CANCELLED,
                cancellation_reason=reason,
                cancelled_at=cancelled_at,
                cancelled_by_partner=cancelled_by_partner,
            )
        )
        if res.rowcount != 1:
            db.rollback()
            raise BookingAlreadyCancelledError(booking_id)

        if partner_penalty is not None:
            partner_id, amount = partner_penalty
            db.execute(
                update(Partner)
                .where(Partner.id == partner_id)
                .values(pending_penalties=Partner.pending_penalties + amount)
            )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise CancellationCommitError(f"Could not update booking status: {e}") from e
