"""Partner-initiated cancellation: always a full refund, and the partner pays the fees."""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from booking_cancellation.core.config import settings
from booking_cancellation.core.exceptions import (
    BookingAlreadyCancelledError,
    BookingNotFoundError,
    CancellationError,
    InvalidCancellationRequestError,
    NotBookingOwnerError,
)
from booking_cancellation.models.user import User
from booking_cancellation.services import booking_store
from booking_cancellation.services.audit_service import record_booking_cancellation
from booking_cancellation.services.cancellation_service import restore_stock, reverse_loyalty_points
from booking_cancellation.services.effects import EffectOutcome, run_effect
from booking_cancellation.services.gateways import CancellationGateways, get_gateways
from booking_cancellation.services.notification_service import (
    NotificationContext,
    compose_partner_initiated_customer_email,
    compose_partner_initiated_partner_email,
    dispatch,
    resolve_display_date,
)
from booking_cancellation.services.payment_reversal import reverse_payment
from booking_cancellation.services.stripe_client import is_genuine_charge_ref

logger = logging.getLogger(__name__)


@dataclass
class PartnerCancellationResult:
    success: bool = False
    refund_id: str | None = None
    refund_error: str | None = None
    penalty_applied: Decimal = Decimal("0")
    customer_email_sent: bool = False
    partner_email_sent: bool = False
    error: str | None = None
    error_code: str | None = None
    effects: list[EffectOutcome] = field(default_factory=list)

    def as_response(self) -> dict:
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "refundId": self.refund_id,
            "penaltyApplied": float(self.penalty_applied),
            "customerEmailSent": self.customer_email_sent,
            "partnerEmailSent": self.partner_email_sent,
        }


def compute_penalty(payments, charge_ref: str | None) -> Decimal:
    """Processor fee on the original charge plus the fixed management fee, in currency units."""
    fee_cents = 0
    if is_genuine_charge_ref(charge_ref):
        try:
            fee_cents = int(payments.get_charge_fee(charge_ref))
        except Exception as e:
            logger.warning("Could not read processor fee for %s, charging management fee only: %s", charge_ref, e)
    return (Decimal(fee_cents) + Decimal(settings.PARTNER_MANAGEMENT_FEE_CENTS)) / Decimal(100)


def cancel_booking_as_partner(
    db: Session,
    booking_id: str,
    requester: User,
    reason: str,
    *,
    gateways: CancellationGateways | None = None,
    now: datetime | None = None,
) -> PartnerCancellationResult:
    gateways = gateways or get_gateways()
    now = now or datetime.now(timezone.utc)
    result = PartnerCancellationResult()

    try:
        if not booking_id or not (reason or "").strip():
            raise InvalidCancellationRequestError("Missing booking_id or reason")
        booking = booking_store.load_booking_context(db, booking_id)
        if booking is None or booking.offer is None:
            raise BookingNotFoundError(booking_id)
        if not requester.partner_id:
            raise NotBookingOwnerError("Unauthorized: You do not have a partner profile.")
        if requester.partner_id != booking.offer.partner_id:
            raise NotBookingOwnerError("Unauthorized: You are not the partner for this booking.")
        if booking.status == booking_store.CANCELLED:
            raise BookingAlreadyCancelledError(booking_id)
    except CancellationError as e:
        logger.info("Partner cancellation of booking %s rejected: %s", booking_id, e.message)
        result.error, result.error_code = e.message, e.code
        return result

    reason = reason.strip()
    offer = booking.offer
    penalty = compute_penalty(gateways.payments, booking.payment_intent_id)

    refund = run_effect(
        "refund", reverse_payment, gateways.payments, booking.id, booking.payment_intent_id,
        {"cancelled_by_partner": "true", "partner_id": offer.partner_id, "reason": reason},
    )
    result.effects.append(refund)
    if refund.ok:
        result.refund_id = refund.value
    elif refund.status == "failed":
        result.refund_error = refund.detail

    customer = db.get(User, booking.user_id)
    customer_email = (customer.email if customer else "") or booking.customer_email or ""
    ctx = NotificationContext(
        booking_id=booking.id,
        offer_title=offer.title or "",
        customer_name=(customer.display_name if customer else "") or "Customer",
        customer_email=customer_email,
        customer_phone=(customer.phone if customer else "") or "",
        partner_email=requester.email or (offer.partner.contact_email if offer.partner else "") or "",
        display_date=resolve_display_date(booking, offer),
        cancelled_at=now,
        policy=offer.cancellation_policy or "",
        refund_eligible=True,
    )
    user_id, variant_id, amount = booking.user_id, booking.variant_id, booking.amount

    try:
        booking_store.commit_cancellation(
            db, booking.id, reason, now,
            cancelled_by_partner=True,
            partner_penalty=(offer.partner_id, penalty),
        )
    except CancellationError as e:
        logger.error("Could not commit partner cancellation of booking %s: %s", booking.id, e.message)
        result.error, result.error_code = e.message, e.code
        return result
    result.success = True
    result.penalty_applied = penalty

    result.effects.append(run_effect(
        "audit", record_booking_cancellation, db, requester.id, ctx.booking_id,
        {"reason": reason, "penalty": str(penalty), "refundId": result.refund_id},
        by_partner=True, on_error=db.rollback,
    ))
    result.effects.append(run_effect("stock", restore_stock, db, variant_id, on_error=db.rollback))
    if result.refund_id and (amount or 0) > 0:
        result.effects.append(run_effect(
            "loyalty", reverse_loyalty_points, db, user_id, amount, ctx.offer_title, ctx.booking_id,
            on_error=db.rollback,
        ))

    report = dispatch(
        db, gateways.mailer, ctx,
        compose_partner_initiated_customer_email(ctx, reason),
        compose_partner_initiated_partner_email(ctx, reason, penalty),
    )
    result.customer_email_sent = report.customer_email_sent
    result.partner_email_sent = report.partner_email_sent

    logger.info("Booking %s cancelled by partner %s, penalty %s", ctx.booking_id, requester.partner_id, penalty)
    return result
