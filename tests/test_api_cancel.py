import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from booking_cancellation.api.deps import get_cancellation_gateways
from booking_cancellation.core.security import create_access_token
from booking_cancellation.db.session import get_db
from booking_cancellation.main import app
from booking_cancellation.models.user import User


@pytest.fixture
def client(db, gateways):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_cancellation_gateways] = lambda: gateways
    yield TestClient(app)
    app.dependency_overrides.clear()


def _auth(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def _future(days):
    return datetime.now(timezone.utc) + timedelta(days=days)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_cancel_requires_a_token(client, make_world):
    world = make_world(scheduled_at=_future(10))
    r = client.post(f"/api/v1/bookings/{world['booking'].id}/cancel")
    assert r.status_code == 401


def test_cancel_rejects_a_bad_token(client, make_world):
    world = make_world(scheduled_at=_future(10))
    r = client.post(f"/api/v1/bookings/{world['booking'].id}/cancel", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401


def test_owner_cancels_and_gets_a_refund(client, make_world, payments):
    world = make_world(scheduled_at=_future(10))
    r = client.post(f"/api/v1/bookings/{world['booking'].id}/cancel", headers=_auth(world["customer"]))

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["refundEligible"] is True
    assert body["refundId"] == "re_1"
    assert body["customerEmailSent"] is True
    assert body["partnerEmailSent"] is True
    assert len(payments.refunds) == 1


def test_second_cancel_is_a_business_error_not_an_http_error(client, make_world, payments):
    world = make_world(scheduled_at=_future(10))
    url = f"/api/v1/bookings/{world['booking'].id}/cancel"
    headers = _auth(world["customer"])
    client.post(url, headers=headers)

    r = client.post(url, headers=headers)

    assert r.status_code == 200
    assert r.json()["success"] is False
    assert r.json()["error"] == "Booking is already cancelled"
    assert len(payments.refunds) == 1


def test_refund_preview(client, make_world):
    world = make_world(policy="strict", scheduled_at=_future(3))
    r = client.get(f"/api/v1/bookings/{world['booking'].id}/refund-preview", headers=_auth(world["customer"]))

    assert r.status_code == 200
    assert r.json()["eligible"] is False
    assert r.json()["policy"] == "strict"


def test_refund_preview_for_unknown_booking_is_404(client, make_world):
    world = make_world(scheduled_at=_future(3))
    r = client.get(f"/api/v1/bookings/{uuid.uuid4()}/refund-preview", headers=_auth(world["customer"]))
    assert r.status_code == 404


def test_partner_route_cancels_with_reason(client, db, make_world, mailer):
    world = make_world(scheduled_at=_future(1))
    owner = User(id=str(uuid.uuid4()), email="owner@studio.test", role="partner", partner_id=world["partner"].id, is_active=True)
    db.add(owner)
    db.commit()

    r = client.post(
        f"/api/v1/partner/bookings/{world['booking'].id}/cancel",
        json={"reason": "Studio flooded"},
        headers=_auth(owner),
    )

    assert r.status_code == 200
    assert r.json()["success"] is True
    assert r.json()["penaltyApplied"] == 5.0
