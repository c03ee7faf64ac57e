from datetime import datetime, timezone
import logging
import re
import smtplib
from email.message import EmailMessage
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import uuid
import requests

from booking_cancellation.core.config import settings
from booking_cancellation.models.email_log import EmailLog

logger = logging.getLogger(__name__)


class EmailDeliveryError(RuntimeError):
    pass


class EmailTransport:
    """send(to, subject, html_body) over SendGrid if configured, otherwise SMTP (MailHog recommended for local)."""

    def send(self, to_email: str, subject: str, html_body: str) -> None:
        send_email(to_email, subject, html_body)


def deliver_email(db: Session, transport, to_email: str, subject: str, html_body: str, related_booking_id: str = "") -> str | None:
    """Log and send one email. Raises EmailDeliveryError on failure; the log row keeps the body for a manual resend.

    A log row that cannot be written does not stop the send. The session is
    rolled back so the next email starts clean, and None is returned instead
    of the log id.
    """
    eid = str(uuid.uuid4())
    try:
        db.add(
            EmailLog(
                id=eid,
                to_email=to_email,
                subject=subject,
                body=html_body,
                status="queued",
                related_booking_id=related_booking_id,
            )
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Could not log email '%s' to %s, sending unlogged: %s", subject, to_email, e)
        eid = None

    try:
        transport.send(to_email, subject, html_body)
    except Exception as e:
        if eid:
            _mark(db, eid, "failed", error=str(e))
        raise EmailDeliveryError(f"could not send '{subject}' to {to_email}: {e}") from e

    if eid:
        _mark(db, eid, "sent")
    return eid


def _mark(db: Session, eid: str, status: str, error: str | None = None) -> None:
    try:
        log = db.get(EmailLog, eid)
        if log:
            log.status = status
            log.error = error
            if status == "sent":
                log.sent_at = datetime.now(timezone.utc)
            db.commit()
    except Exception as e:
        db.rollback()
        logger.warning("Could not update email log %s: %s", eid, e)


def html_to_text(html_body: str) -> str:
    text = re.sub(r"<br\s*/?>|</p>|</li>|</h\d>", "\n", html_body)
    text = re.sub(r"<[^>]+>", "", text)
    return re.sub(r"\n\s*\n+", "\n\n", text).strip()


def send_email(to_email: str, subject: str, html_body: str):
    if settings.SENDGRID_API_KEY:
        _send_via_sendgrid(to_email, subject, html_body)
        return

    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(html_to_text(html_body))
    msg.add_alternative(html_body, subtype="html")

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


def _send_via_sendgrid(to_email: str, subject: str, html_body: str):
    from_email = settings.SENDGRID_FROM_EMAIL or settings.SMTP_FROM
    payload = {
        "personalizations": [{"to": [{"email": to_email}]}],
        "from": {"email": from_email},
        "subject": subject,
        "content": [
            {"type": "text/plain", "value": html_to_text(html_body)},
            {"type": "text/html", "value": html_body},
        ],
    }

    r = requests.post(
        "https://api.sendgrid.com/v3/mail/send",
        json=payload,
        headers={"Authorization": f"Bearer {settings.SENDGRID_API_KEY}"},
        timeout=20,
    )
    if r.status_code >= 400:
        raise EmailDeliveryError(f"SendGrid error {r.status_code}: {r.text}")
