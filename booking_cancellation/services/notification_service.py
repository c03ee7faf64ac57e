"""Customer and partner emails sent once a cancellation is committed.

Each recipient is attempted on its own: a bounce for the customer does not stop
the partner notice, and neither can fail the cancellation itself.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from decimal import Decimal
from html import escape
from urllib.parse import quote
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking_cancellation.core.config import settings
from booking_cancellation.services.email_service import deliver_email
from booking_cancellation.services.refund_policy import as_utc

logger = logging.getLogger(__name__)

POLICY_DESCRIPTIONS = {
    "flexible": "Flexible (free cancellation up to 24 hours before the date)",
    "moderate": "Moderate (free cancellation up to 7 days before the date)",
    "strict": "Strict (free cancellation up to 15 days before the date)",
    "non_refundable": "Non-refundable (no refund possible)",
}

CUSTOMER_SUBJECT = "Your booking cancellation is confirmed"
PARTNER_SUBJECT = "Booking cancelled"
PARTNER_INITIATED_CUSTOMER_SUBJECT = "Your session has been cancelled"
PARTNER_INITIATED_PARTNER_SUBJECT = "Cancellation confirmation"


@dataclass(frozen=True)
class DisplayDate:
    """Human-readable date for emails. Not used for any refund calculation."""
    date_text: str
    full_text: str  # date plus time when the booking has a real appointment/event time


@dataclass
class NotificationContext:
    booking_id: str
    offer_title: str
    customer_name: str
    customer_email: str
    customer_phone: str
    partner_email: str
    display_date: DisplayDate
    cancelled_at: datetime
    policy: str
    refund_eligible: bool


@dataclass
class NotificationReport:
    customer_email_sent: bool = False
    partner_email_sent: bool = False
    email_error: str | None = None


def _format_date(value: datetime) -> str:
    return f"{value:%A} {value.day} {value:%B %Y}"


def _display_zone(tz_name: str) -> tzinfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown display timezone %r, showing dates in UTC", tz_name)
        return timezone.utc


def resolve_display_date(booking, offer, tz_name: str | None = None) -> DisplayDate:
    tz = _display_zone(tz_name or settings.DISPLAY_TIMEZONE)
    timed = booking.scheduled_at or offer.event_start_date
    local = as_utc(timed or booking.booking_date).astimezone(tz)
    date_text = _format_date(local)
    full_text = f"{date_text} at {local:%H:%M}" if timed else date_text
    return DisplayDate(date_text=date_text, full_text=full_text)


def policy_description(policy: str) -> str:
    return POLICY_DESCRIPTIONS.get(policy, policy)


def _appeal_link(booking_id: str) -> str:
    subject = quote(f"Cancellation claim {booking_id}")
    return f"mailto:{settings.APPEAL_CONTACT_EMAIL}?subject={subject}"


def refund_paragraph(ctx: NotificationContext) -> str:
    if ctx.refund_eligible:
        return (
            '<p style="color: #27ae60; font-weight: bold;">'
            "All good: a full refund has been initiated to your original payment method.</p>"
        )
    return (
        '<div style="background-color: #fceceb; padding: 15px; border-radius: 8px; margin-top: 20px;">'
        '<p style="color: #c0392b; font-weight: bold;">We are sorry, but this booking cannot be refunded.</p>'
        "<p>To keep supporting our partners we apply the cancellation rules chosen at booking time.</p>"
        '<p style="font-size: 0.9em;"><em>Force majeure (hospitalisation, bereavement, serious accident)?</em><br/>'
        f'<a href="{escape(_appeal_link(ctx.booking_id))}">Submit a claim</a></p>'
        "</div>"
    )


def compose_customer_email(ctx: NotificationContext) -> tuple[str, str]:
    browse = ""
    if settings.CLIENT_BASE_URL:
        browse = (
            f'<p><a href="{escape(settings.CLIENT_BASE_URL.rstrip("/"))}/offers">'
            "Discover other experiences</a></p>"
        )
    html_body = (
        '<div style="font-family: sans-serif; color: #333;">'
        "<h1>Cancellation confirmed</h1>"
        f"<p>Hello {escape(ctx.customer_name)},</p>"
        f"<p>Your booking was <strong>{escape(ctx.offer_title)}</strong> (scheduled for {escape(ctx.display_date.full_text)}).<br/>"
        f"You cancelled on {escape(_format_date(ctx.cancelled_at))}.</p>"
        f"<p><strong>Cancellation policy:</strong> {escape(policy_description(ctx.policy))}</p>"
        f"{refund_paragraph(ctx)}"
        f"{browse}"
        "</div>"
    )
    return CUSTOMER_SUBJECT, html_body


def compose_partner_email(ctx: NotificationContext) -> tuple[str, str]:
    if ctx.customer_email:
        contact = f"({ctx.customer_email})"
    elif ctx.customer_phone:
        contact = f"(phone: {ctx.customer_phone})"
    else:
        contact = "(no contact on file)"
    html_body = (
        '<div style="font-family: sans-serif; color: #333;">'
        "<h1>Booking cancelled</h1>"
        f"<p>Customer <strong>{escape(ctx.customer_name)}</strong> {escape(contact)} cancelled their booking for:</p>"
        "<ul>"
        f"<li><strong>Offer:</strong> {escape(ctx.offer_title)}</li>"
        f"<li><strong>Date:</strong> {escape(ctx.display_date.date_text)}</li>"
        "</ul>"
        "<p>The spot is back in stock and available to other customers.</p>"
        "</div>"
    )
    return PARTNER_SUBJECT, html_body


def compose_partner_initiated_customer_email(ctx: NotificationContext, reason: str) -> tuple[str, str]:
    html_body = (
        '<div style="font-family: sans-serif; color: #333;">'
        "<h1>Your session has been cancelled</h1>"
        f"<p>Hello {escape(ctx.customer_name)},</p>"
        f"<p>We are sorry to let you know that <strong>{escape(ctx.offer_title)}</strong> scheduled for "
        f"<strong>{escape(ctx.display_date.full_text)}</strong> was cancelled by the provider.</p>"
        f"<p><strong>Reason given:</strong> {escape(reason)}</p>"
        "<p>A full refund has been initiated and should appear within 5 to 10 business days.</p>"
        "</div>"
    )
    return PARTNER_INITIATED_CUSTOMER_SUBJECT, html_body


def compose_partner_initiated_partner_email(ctx: NotificationContext, reason: str, penalty: Decimal) -> tuple[str, str]:
    html_body = (
        '<div style="font-family: sans-serif; color: #333;">'
        "<h1>Cancellation confirmation</h1>"
        f"<p>You cancelled <strong>{escape(ctx.offer_title)}</strong> on <strong>{escape(ctx.display_date.date_text)}</strong>.</p>"
        f"<p><strong>Reason:</strong> {escape(reason)}</p>"
        "<h3>Fees</h3>"
        f"<p>Management and transaction fees applied: <strong>{penalty:.2f} EUR</strong>. "
        "This amount has been added to your pending penalties.</p>"
        "</div>"
    )
    return PARTNER_INITIATED_PARTNER_SUBJECT, html_body


def _send_one(db: Session, transport, label: str, to_email: str, subject: str, html_body: str, booking_id: str) -> str | None:
    """Returns None when sent, else the error message. The session is left usable either way."""
    try:
        deliver_email(db, transport, to_email, subject, html_body, related_booking_id=booking_id)
    except Exception as e:
        logger.error("Error sending %s email for booking %s: %s", label, booking_id, e)
        _reset_session(db)
        return str(e)
    logger.info("%s email sent for booking %s", label.capitalize(), booking_id)
    return None


def _reset_session(db: Session) -> None:
    try:
        db.rollback()
    except SQLAlchemyError as e:
        logger.error("Could not roll back session after email failure: %s", e)


def dispatch(db: Session, transport, ctx: NotificationContext, customer_message: tuple[str, str], partner_message: tuple[str, str]) -> NotificationReport:
    report = NotificationReport()

    if ctx.customer_email:
        error = _send_one(db, transport, "customer", ctx.customer_email, *customer_message, ctx.booking_id)
        report.customer_email_sent = error is None
        report.email_error = error
    else:
        logger.warning("No email on file for the customer of booking %s, skipping email", ctx.booking_id)

    if ctx.partner_email:
        error = _send_one(db, transport, "partner", ctx.partner_email, *partner_message, ctx.booking_id)
        report.partner_email_sent = error is None
        if error and report.email_error is None:
            report.email_error = error
    else:
        logger.warning("Partner has no contact email for booking %s, skipping notification", ctx.booking_id)

    return report


def notify_cancellation(db: Session, transport, ctx: NotificationContext) -> NotificationReport:
    return dispatch(db, transport, ctx, compose_customer_email(ctx), compose_partner_email(ctx))
