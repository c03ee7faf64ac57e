"""Time-window refund rules for customer cancellations.

Everything here is pure: callers pass the clock in, nothing touches the
database or the network.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

# Minimum notice before the reference date for a refund, inclusive.
POLICY_WINDOWS: dict[str, timedelta] = {
    "flexible": timedelta(hours=24),
    "moderate": timedelta(days=7),
    "strict": timedelta(days=15),
}

DEFAULT_POLICY = "flexible"
NON_REFUNDABLE = "non_refundable"


@dataclass(frozen=True)
class RefundDecision:
    eligible: bool
    policy: str
    reference_date: datetime
    hours_remaining: float
    days_remaining: float

    def as_dict(self) -> dict:
        return {
            "eligible": self.eligible,
            "policy": self.policy,
            "referenceDate": self.reference_date.isoformat(),
            "hoursRemaining": round(self.hours_remaining, 2),
            "daysRemaining": round(self.days_remaining, 2),
        }


def as_utc(value: datetime) -> datetime:
    """Naive datetimes coming back from the store are UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def effective_policy(cancellation_policy: str | None, booking_type: str | None) -> str:
    # Purchases (instant/digital goods) cannot be walked back whatever the offer says.
    if (booking_type or "event") == "purchase":
        return NON_REFUNDABLE
    return cancellation_policy or DEFAULT_POLICY


def resolve_reference_date(
    scheduled_at: datetime | None,
    event_start_date: datetime | None,
    booking_date: datetime,
) -> datetime:
    """Appointment time, then the offer's fixed event start, then the booking date."""
    for candidate in (scheduled_at, event_start_date, booking_date):
        if candidate is not None:
            return as_utc(candidate)
    raise ValueError("booking has no date to measure the cancellation window against")


def evaluate_refund(
    policy: str | None,
    reference_date: datetime,
    now: datetime,
    booking_type: str | None = "event",
) -> RefundDecision:
    applied = effective_policy(policy, booking_type)
    remaining = as_utc(reference_date) - as_utc(now)
    hours = remaining.total_seconds() / 3600
    window = POLICY_WINDOWS.get(applied)
    # Unknown policy names are treated like non_refundable.
    eligible = window is not None and remaining >= window
    return RefundDecision(
        eligible=eligible,
        policy=applied,
        reference_date=as_utc(reference_date),
        hours_remaining=hours,
        days_remaining=hours / 24,
    )


def evaluate_booking(booking, now: datetime) -> RefundDecision:
    """Evaluate a loaded booking (with its offer) against its own policy."""
    offer = booking.offer
    reference = resolve_reference_date(booking.scheduled_at, offer.event_start_date, booking.booking_date)
    return evaluate_refund(offer.cancellation_policy, reference, now, offer.booking_type)
