"""Cancel the Calendly event behind a booking that was created from a Calendly webhook."""
import logging
from dataclasses import dataclass

from booking_cancellation.services.effects import EffectSkipped

logger = logging.getLogger(__name__)

# Invitee URIs look like https://api.calendly.com/scheduled_events/{event_uuid}/invitees/{invitee_uuid}
EVENT_PATH_MARKER = "/scheduled_events/"
CALENDLY_SOURCE = "calendly"


@dataclass(frozen=True)
class CalendlyEventRef:
    event_id: str
    uri: str


def parse_calendly_event_uri(uri) -> CalendlyEventRef | None:
    """Pull the scheduled-event id out of a stored invitee/event URI. None when it can't be found."""
    if not isinstance(uri, str) or EVENT_PATH_MARKER not in uri:
        return None
    tail = uri.split(EVENT_PATH_MARKER, 1)[1]
    event_id = tail.split("/", 1)[0].split("?", 1)[0].strip()
    if not event_id:
        return None
    return CalendlyEventRef(event_id=event_id, uri=uri)


def needs_calendar_sync(booking) -> bool:
    return booking.source == CALENDLY_SOURCE and bool(booking.calendly_event_id)


def cancel_external_event(calendar_factory, partner, event_uri: str, reason: str) -> str:
    """Cancel the partner's Calendly event. Returns the event id that was cancelled."""
    token = getattr(partner, "calendly_token", None) if partner is not None else None
    if not token:
        raise EffectSkipped("partner has no Calendly token")

    ref = parse_calendly_event_uri(event_uri)
    if ref is None:
        raise EffectSkipped(f"could not parse Calendly event id from {event_uri!r}")

    client = calendar_factory(token)
    client.cancel_scheduled_event(ref.event_id, reason)
    logger.info("Calendly event %s cancelled", ref.event_id)
    return ref.event_id
