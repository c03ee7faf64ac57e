import logging

from booking_cancellation.services.effects import EffectSkipped
from booking_cancellation.services.stripe_client import is_genuine_charge_ref

logger = logging.getLogger(__name__)


def reverse_payment(payments, booking_id: str, charge_ref: str | None, metadata: dict | None = None) -> str:
    """Refund the full charge behind a booking. Returns the processor's refund id."""
    if not is_genuine_charge_ref(charge_ref):
        raise EffectSkipped(f"no refundable charge on booking {booking_id} (ref={charge_ref!r})")
    refund_id = payments.create_refund(
        charge_ref,
        reason="requested_by_customer",
        metadata={"booking_id": booking_id, **(metadata or {})},
    )
    logger.info("Refund %s created for booking %s", refund_id, booking_id)
    return refund_id
