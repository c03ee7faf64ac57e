import pytest

from booking_cancellation.services.calendar_sync import cancel_external_event, parse_calendly_event_uri
from booking_cancellation.services.effects import EffectSkipped


def test_extracts_event_id_from_invitee_uri():
    ref = parse_calendly_event_uri(
        "https://api.calendly.com/scheduled_events/EVT-123/invitees/INV-456"
    )
    assert ref is not None
    assert ref.event_id == "EVT-123"


def test_extracts_event_id_from_event_uri():
    ref = parse_calendly_event_uri("https://api.calendly.com/scheduled_events/EVT-9")
    assert ref.event_id == "EVT-9"


@pytest.mark.parametrize(
    "uri",
    [
        "https://api.calendly.com/invitees/INV-456",
        "https://api.calendly.com/scheduled_events/",
        "https://api.calendly.com/scheduled_events//invitees/x",
        "",
        None,
        12345,
    ],
)
def test_unparseable_references_yield_none(uri):
    assert parse_calendly_event_uri(uri) is None


class _Partner:
    def __init__(self, token):
        self.calendly_token = token


def test_cancels_with_partner_token(calendar):
    event_id = cancel_external_event(
        calendar.factory, _Partner("tok"), "https://api.calendly.com/scheduled_events/E1/invitees/I1", "bye"
    )
    assert event_id == "E1"
    assert calendar.tokens == ["tok"]
    assert calendar.cancelled == [("E1", "bye")]


def test_missing_token_skips(calendar):
    with pytest.raises(EffectSkipped):
        cancel_external_event(calendar.factory, _Partner(None), "https://x/scheduled_events/E1", "bye")
    assert calendar.cancelled == []


def test_malformed_reference_skips(calendar):
    with pytest.raises(EffectSkipped):
        cancel_external_event(calendar.factory, _Partner("tok"), "not-a-uri", "bye")
    assert calendar.cancelled == []
