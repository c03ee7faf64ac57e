from datetime import datetime, timedelta, timezone

import pytest

from booking_cancellation.services.refund_policy import (
    effective_policy,
    evaluate_refund,
    resolve_reference_date,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "policy, notice",
    [
        ("flexible", timedelta(hours=24)),
        ("moderate", timedelta(days=7)),
        ("strict", timedelta(days=15)),
    ],
)
def test_window_boundary_is_inclusive(policy, notice):
    assert evaluate_refund(policy, NOW + notice, NOW).eligible is True
    assert evaluate_refund(policy, NOW + notice - timedelta(seconds=1), NOW).eligible is False


@pytest.mark.parametrize("notice", [timedelta(days=365), timedelta(hours=1), timedelta(days=-2)])
def test_non_refundable_is_never_eligible(notice):
    assert evaluate_refund("non_refundable", NOW + notice, NOW).eligible is False


def test_purchase_overrides_flexible_policy():
    decision = evaluate_refund("flexible", NOW + timedelta(days=100), NOW, booking_type="purchase")
    assert decision.eligible is False
    assert decision.policy == "non_refundable"


def test_unknown_policy_is_not_eligible():
    assert evaluate_refund("whenever", NOW + timedelta(days=100), NOW).eligible is False


def test_missing_policy_defaults_to_flexible():
    assert effective_policy(None, "event") == "flexible"
    assert evaluate_refund(None, NOW + timedelta(hours=30), NOW).eligible is True


def test_past_reference_date_is_not_eligible():
    decision = evaluate_refund("flexible", NOW - timedelta(hours=3), NOW)
    assert decision.eligible is False
    assert decision.hours_remaining == pytest.approx(-3)


def test_decision_reports_remaining_time():
    decision = evaluate_refund("strict", NOW + timedelta(days=10), NOW)
    assert decision.eligible is False
    assert decision.hours_remaining == pytest.approx(240)
    assert decision.days_remaining == pytest.approx(10)
    assert decision.reference_date == NOW + timedelta(days=10)


def test_naive_datetimes_are_treated_as_utc():
    naive_ref = datetime(2026, 3, 3, 12, 0)
    decision = evaluate_refund("flexible", naive_ref, NOW)
    assert decision.eligible is True
    assert decision.hours_remaining == pytest.approx(48)


def test_reference_date_precedence():
    scheduled = NOW + timedelta(days=2)
    event_start = NOW + timedelta(days=20)
    booked = NOW - timedelta(days=5)

    assert resolve_reference_date(scheduled, event_start, booked) == scheduled
    assert resolve_reference_date(None, event_start, booked) == event_start
    assert resolve_reference_date(None, None, booked) == booked
