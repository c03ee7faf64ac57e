"""Customer-initiated booking cancellation.

Order of work:

1. validate (exists, owned by the requester, not already cancelled)
2. decide refund eligibility from the offer's policy
3. refund, if eligible and the booking holds a real charge
4. commit ``status=cancelled``
5. restore stock, reverse loyalty points, cancel the Calendly event
6. email the customer and the partner

Only steps 1 and 4 can fail the request. A refund outage must never leave a
customer stuck with a booking they cannot cancel, so a failed refund is logged
and reported but the cancellation still goes through. Everything after the
commit runs through ``run_effect`` and is recorded, not raised.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy.orm import Session

from booking_cancellation.core.exceptions import (
    BookingAlreadyCancelledError,
    BookingNotFoundError,
    CancellationError,
    InvalidCancellationRequestError,
    NotBookingOwnerError,
)
from booking_cancellation.models.booking import Booking
from booking_cancellation.models.user import User
from booking_cancellation.services import booking_store
from booking_cancellation.services.audit_service import record_booking_cancellation
from booking_cancellation.services.calendar_sync import cancel_external_event, needs_calendar_sync
from booking_cancellation.services.effects import EffectOutcome, EffectSkipped, run_effect
from booking_cancellation.services.gateways import CancellationGateways, get_gateways
from booking_cancellation.services.inventory_service import increment_variant_stock, is_capacity_limited
from booking_cancellation.services.loyalty_service import InsufficientPointsError, award_points
from booking_cancellation.services.notification_service import (
    NotificationContext,
    NotificationReport,
    notify_cancellation,
    resolve_display_date,
)
from booking_cancellation.services.payment_reversal import reverse_payment
from booking_cancellation.services.refund_policy import RefundDecision, evaluate_booking

logger = logging.getLogger(__name__)


class CancellationState(str, Enum):
    REQUESTED = "requested"
    VALIDATING = "validating"
    VALIDATION_FAILED = "validation_failed"
    ELIGIBLE_REFUND = "eligible_refund"
    NO_REFUND = "no_refund"
    COMMIT_FAILED = "commit_failed"
    COMMITTED = "committed"
    EFFECTS_APPLIED = "effects_applied"
    NOTIFIED = "notified"
    DONE = "done"


@dataclass
class CancellationResult:
    success: bool = False
    state: CancellationState = CancellationState.REQUESTED
    refund_eligible: bool = False
    refund_id: str | None = None
    refund_error: str | None = None
    customer_email_sent: bool = False
    partner_email_sent: bool = False
    email_error: str | None = None
    error: str | None = None
    error_code: str | None = None
    decision: RefundDecision | None = None
    effects: list[EffectOutcome] = field(default_factory=list)

    def effect(self, name: str) -> EffectOutcome | None:
        return next((e for e in self.effects if e.name == name), None)

    def as_response(self) -> dict:
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "refundEligible": self.refund_eligible,
            "refundId": self.refund_id,
            "customerEmailSent": self.customer_email_sent,
            "partnerEmailSent": self.partner_email_sent,
            "emailError": self.email_error,
        }


def cancellation_reason(policy: str, refund_eligible: bool) -> str:
    return f"User requested cancellation. Policy: {policy}. Refund: {'Yes' if refund_eligible else 'No'}"


def _validate(db: Session, booking_id: str, requester: User) -> Booking:
    if not booking_id:
        raise InvalidCancellationRequestError("Booking ID is required")
    booking = booking_store.load_booking_context(db, booking_id)
    if booking is None:
        raise BookingNotFoundError(booking_id)
    if booking.user_id != requester.id:
        raise NotBookingOwnerError()
    if booking.status == booking_store.CANCELLED:
        raise BookingAlreadyCancelledError(booking_id)
    if booking.offer is None:
        raise InvalidCancellationRequestError("Booking has no associated offer")
    return booking


def restore_stock(db: Session, variant_id: str | None) -> None:
    if not is_capacity_limited(db, variant_id):
        raise EffectSkipped("booking holds no capacity-limited variant")
    if not increment_variant_stock(db, variant_id):
        raise EffectSkipped(f"variant {variant_id} could not be restocked")
    logger.info("Stock restored for variant %s", variant_id)


def reverse_loyalty_points(db: Session, user_id: str, amount, offer_title: str, booking_id: str) -> int:
    points = math.floor(amount or 0)
    if points <= 0:
        raise EffectSkipped("nothing to reverse")
    try:
        award_points(db, user_id, -points, f"Cancellation: {offer_title}", {"booking_id": booking_id, "refund": True})
    except InsufficientPointsError as e:
        # Points already spent cannot be clawed back.
        raise EffectSkipped(f"loyalty reversal dropped: {e}") from e
    logger.info("Reverted %s loyalty points for user %s", points, user_id)
    return points


def build_notification_context(booking: Booking, requester: User, decision: RefundDecision, cancelled_at: datetime) -> NotificationContext:
    offer = booking.offer
    partner = offer.partner
    customer_email = requester.email or booking.customer_email or ""
    return NotificationContext(
        booking_id=booking.id,
        offer_title=offer.title or "",
        customer_name=requester.display_name or customer_email or "Customer",
        customer_email=customer_email,
        customer_phone=requester.phone or "",
        partner_email=(partner.contact_email if partner else "") or "",
        display_date=resolve_display_date(booking, offer),
        cancelled_at=cancelled_at,
        policy=decision.policy,
        refund_eligible=decision.eligible,
    )


def cancel_booking(
    db: Session,
    booking_id: str,
    requester: User,
    *,
    gateways: CancellationGateways | None = None,
    now: datetime | None = None,
) -> CancellationResult:
    """Cancel a booking on behalf of its owner. Business-rule failures come back in ``result.error``."""
    gateways = gateways or get_gateways()
    now = now or datetime.now(timezone.utc)
    result = CancellationResult(state=CancellationState.VALIDATING)

    try:
        booking = _validate(db, booking_id, requester)
    except CancellationError as e:
        logger.info("Cancellation of booking %s rejected: %s", booking_id, e.message)
        result.state = CancellationState.VALIDATION_FAILED
        result.error, result.error_code = e.message, e.code
        return result

    offer = booking.offer
    decision = evaluate_booking(booking, now)
    result.decision = decision
    result.refund_eligible = decision.eligible
    result.state = CancellationState.ELIGIBLE_REFUND if decision.eligible else CancellationState.NO_REFUND
    logger.info(
        "Booking %s: policy=%s reference=%s hours_until=%.2f eligible=%s",
        booking.id, decision.policy, decision.reference_date.isoformat(), decision.hours_remaining, decision.eligible,
    )

    if decision.eligible:
        refund = run_effect(
            "refund", reverse_payment, gateways.payments, booking.id, booking.payment_intent_id,
            {"policy": decision.policy},
        )
        result.effects.append(refund)
        if refund.ok:
            result.refund_id = refund.value
        elif refund.status == "failed":
            result.refund_error = refund.detail

    # Snapshot what the effects need; the commit expires the ORM objects.
    user_id, variant_id, amount = booking.user_id, booking.variant_id, booking.amount
    partner = offer.partner
    calendar_sync = needs_calendar_sync(booking)
    event_uri = booking.calendly_event_id
    ctx = build_notification_context(booking, requester, decision, now)

    try:
        booking_store.commit_cancellation(db, booking.id, cancellation_reason(decision.policy, decision.eligible), now)
    except CancellationError as e:
        logger.error("Could not commit cancellation of booking %s: %s", booking.id, e.message)
        result.state = CancellationState.COMMIT_FAILED
        result.error, result.error_code = e.message, e.code
        return result
    result.success = True
    result.state = CancellationState.COMMITTED

    result.effects.append(run_effect(
        "audit", record_booking_cancellation, db, requester.id, booking.id,
        {"policy": decision.policy, "refundEligible": decision.eligible, "refundId": result.refund_id},
        on_error=db.rollback,
    ))
    result.effects.append(run_effect("stock", restore_stock, db, variant_id, on_error=db.rollback))
    if decision.eligible and (amount or 0) > 0:
        result.effects.append(run_effect(
            "loyalty", reverse_loyalty_points, db, user_id, amount, ctx.offer_title, ctx.booking_id,
            on_error=db.rollback,
        ))
    if calendar_sync:
        result.effects.append(run_effect(
            "calendar", cancel_external_event, gateways.calendar_factory, partner, event_uri,
            f"Cancelled by the customer: {decision.policy} policy.",
        ))
    result.state = CancellationState.EFFECTS_APPLIED

    report: NotificationReport = notify_cancellation(db, gateways.mailer, ctx)
    result.customer_email_sent = report.customer_email_sent
    result.partner_email_sent = report.partner_email_sent
    result.email_error = report.email_error
    result.state = CancellationState.NOTIFIED

    logger.info(
        "Booking %s cancelled. Refunded: %s. Emails: customer=%s, partner=%s",
        ctx.booking_id, decision.eligible, report.customer_email_sent, report.partner_email_sent,
    )
    result.state = CancellationState.DONE
    return result


def preview_refund(db: Session, booking_id: str, requester: User, now: datetime | None = None) -> RefundDecision:
    """Eligibility the requester would get if they cancelled now. Raises CancellationError."""
    booking = _validate(db, booking_id, requester)
    return evaluate_booking(booking, now or datetime.now(timezone.utc))
