import uuid, json
from sqlalchemy.orm import Session
from booking_cancellation.models.audit_log import AuditLog

BOOKING_ENTITY = "booking"
BOOKING_CANCEL = "booking.cancel"
BOOKING_PARTNER_CANCEL = "booking.partner_cancel"


def log_audit(db: Session, actor_user_id: str, action: str, entity_type: str, entity_id: str, details: dict | None = None) -> AuditLog:
    entry = AuditLog(
        id=str(uuid.uuid4()),
        actor_user_id=actor_user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        # Decimal amounts and datetimes end up in details
        details_json=json.dumps(details or {}, ensure_ascii=False, default=str),
    )
    db.add(entry)
    return entry


def record_booking_cancellation(
    db: Session,
    actor_user_id: str,
    booking_id: str,
    details: dict,
    by_partner: bool = False,
) -> AuditLog:
    """Commit the audit row for a cancellation that has already been persisted."""
    action = BOOKING_PARTNER_CANCEL if by_partner else BOOKING_CANCEL
    entry = log_audit(db, actor_user_id, action, BOOKING_ENTITY, booking_id, details)
    db.commit()
    return entry
