import pytest

from booking_cancellation.services import calendly_client
from booking_cancellation.services.calendly_client import CalendlyClient, CalendlyConfig, CalendlyError


class _Resp:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def test_cancel_posts_reason_with_partner_token(monkeypatch):
    calls = []

    def fake_post(url, **kwargs):
        calls.append((url, kwargs))
        return _Resp(201, {"resource": {"canceler_type": "host"}})

    monkeypatch.setattr(calendly_client.requests, "post", fake_post)

    CalendlyClient(CalendlyConfig(), "tok").cancel_scheduled_event("EVT-1", "Cancelled by the customer")

    url, kwargs = calls[0]
    assert url == "https://api.calendly.com/scheduled_events/EVT-1/cancellation"
    assert kwargs["headers"]["Authorization"] == "Bearer tok"
    assert kwargs["json"] == {"reason": "Cancelled by the customer"}


def test_remote_error_raises(monkeypatch):
    monkeypatch.setattr(calendly_client.requests, "post", lambda *a, **k: _Resp(403, text="Permission Denied"))
    with pytest.raises(CalendlyError, match="403"):
        CalendlyClient(CalendlyConfig(), "tok").cancel_scheduled_event("EVT-1", "x")
