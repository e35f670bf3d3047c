from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from helpers import register_employer, register_seeker

from jobboard.database import SessionLocal
from jobboard.models.billing import Subscription
from jobboard.services.billing_service import (
    PLANS,
    add_one_month,
    compute_proration,
    days_remaining,
    plan_change_error,
    resolve_plan,
)


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_resolve_plan_accepts_ids_and_codes() -> None:
    assert resolve_plan("basic") is PLANS["basic"]
    assert resolve_plan("PREMIUM") is PLANS["premium"]
    assert resolve_plan("enterprise") is None
    assert resolve_plan(None) is None


def test_upgrade_proration_credits_unused_days() -> None:
    proration = compute_proration(PLANS["basic"], PLANS["premium"], NOW + timedelta(days=15), NOW)
    assert proration.prorated_refund == 25.0
    assert proration.additional_amount == 125.0


def test_downgrade_never_charges_a_negative_amount() -> None:
    proration = compute_proration(PLANS["premium"], PLANS["basic"], NOW + timedelta(days=15), NOW)
    assert proration.prorated_refund == 75.0
    assert proration.additional_amount == 0.0


def test_partial_days_round_up_and_expired_periods_refund_nothing() -> None:
    assert days_remaining(NOW + timedelta(days=2, hours=1), NOW) == 3
    proration = compute_proration(PLANS["basic"], PLANS["premium"], NOW - timedelta(days=3), NOW)
    assert proration.prorated_refund == 0.0
    assert proration.additional_amount == 150.0


def test_add_one_month_clamps_to_month_end() -> None:
    assert add_one_month(datetime(2024, 1, 31, tzinfo=timezone.utc)).date().isoformat() == "2024-02-29"
    assert add_one_month(datetime(2025, 12, 15, tzinfo=timezone.utc)).date().isoformat() == "2026-01-15"


@pytest.mark.parametrize(
    "current, new, action, expected",
    [
        ("basic", "basic", "upgrade", "You are already on this plan"),
        ("premium", "basic", "upgrade", "Invalid upgrade path"),
        ("basic", "premium", "downgrade", "Invalid downgrade path"),
        ("basic", "premium", "upgrade", None),
        ("premium", "basic", "downgrade", None),
    ],
)
def test_plan_change_rules(current: str, new: str, action: str, expected) -> None:
    assert plan_change_error(PLANS[current], PLANS[new], action) == expected


def test_subscribe_and_view(client) -> None:
    employer = register_employer(client, email="hr@acme.example")
    assert client.get("/api/employer/subscription", headers=employer).json() is None

    created = client.post("/api/employer/subscription", json={"planId": "basic"}, headers=employer)
    assert created.status_code == 201, created.text

    current = client.get("/api/employer/subscription", headers=employer).json()
    assert current["plan"] == "BASIC"
    assert current["status"] == "ACTIVE"
    assert current["externalReference"].startswith("sub_")

    again = client.post("/api/employer/subscription", json={"planId": "premium"}, headers=employer)
    assert again.status_code == 400
    assert again.json()["detail"] == "You already have an active subscription"

    payments = client.get("/api/employer/payments", headers=employer).json()
    assert [(p["amount"], p["status"]) for p in payments] == [(50.0, "SUCCEEDED")]


def test_invalid_plan_is_rejected(client) -> None:
    employer = register_employer(client, email="hr@acme.example")
    r = client.post("/api/employer/subscription", json={"planId": "gold"}, headers=employer)
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid plan selected"


def test_upgrade_charges_the_difference(client) -> None:
    employer = register_employer(client, email="hr@acme.example")
    client.post("/api/employer/subscription", json={"planId": "basic"}, headers=employer)

    r = client.post("/api/employer/subscription/manage", json={"action": "upgrade", "planId": "premium"}, headers=employer)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["message"] == "Subscription upgraded successfully"
    assert body["subscription"]["plan"] == "PREMIUM"
    assert 0 < body["billing"]["additionalAmount"] < 150
    assert body["billing"]["additionalAmount"] + body["billing"]["proratedRefund"] == pytest.approx(150, abs=0.02)

    payments = client.get("/api/employer/payments", headers=employer).json()
    assert len(payments) == 2

    same = client.post("/api/employer/subscription/manage", json={"action": "upgrade", "planId": "premium"}, headers=employer)
    assert same.status_code == 400
    assert same.json()["detail"] == "You are already on this plan"


def test_plan_change_requires_plan_id(client) -> None:
    employer = register_employer(client, email="hr@acme.example")
    client.post("/api/employer/subscription", json={"planId": "premium"}, headers=employer)
    r = client.post("/api/employer/subscription/manage", json={"action": "downgrade"}, headers=employer)
    assert r.status_code == 400


def test_cancel_and_resume(client) -> None:
    employer = register_employer(client, email="hr@acme.example")
    client.post("/api/employer/subscription", json={"planId": "basic"}, headers=employer)

    not_cancelled = client.post("/api/employer/subscription/manage", json={"action": "resume"}, headers=employer)
    assert not_cancelled.status_code == 400
    assert not_cancelled.json()["detail"] == "Subscription is not cancelled"

    cancelled = client.post("/api/employer/subscription/manage", json={"action": "cancel"}, headers=employer)
    assert cancelled.status_code == 200
    assert cancelled.json()["accessUntil"] is not None
    assert client.get("/api/employer/subscription", headers=employer).json() is None

    twice = client.post("/api/employer/subscription/manage", json={"action": "cancel"}, headers=employer)
    assert twice.status_code == 400

    resumed = client.post("/api/employer/subscription/manage", json={"action": "resume"}, headers=employer)
    assert resumed.status_code == 200
    assert resumed.json()["subscription"]["status"] == "ACTIVE"
    assert resumed.json()["subscription"]["cancelledAt"] is None


def test_resume_after_period_end_is_rejected(client) -> None:
    employer = register_employer(client, email="hr@acme.example")
    client.post("/api/employer/subscription", json={"planId": "basic"}, headers=employer)
    client.post("/api/employer/subscription/manage", json={"action": "cancel"}, headers=employer)
    with SessionLocal() as db:
        subscription = db.query(Subscription).one()
        subscription.ends_at = datetime.now(timezone.utc) - timedelta(days=1)
        db.commit()

    r = client.post("/api/employer/subscription/manage", json={"action": "resume"}, headers=employer)
    assert r.status_code == 400
    assert r.json()["detail"].startswith("Subscription period has ended")


def test_delete_cancels_at_period_end(client) -> None:
    employer = register_employer(client, email="hr@acme.example")
    assert client.delete("/api/employer/subscription", headers=employer).status_code == 404
    client.post("/api/employer/subscription", json={"planId": "basic"}, headers=employer)

    r = client.delete("/api/employer/subscription", headers=employer)
    assert r.status_code == 200
    assert r.json()["immediateRefund"] is False
    current = client.get("/api/employer/subscription", headers=employer).json()
    assert current["status"] == "ACTIVE"
    assert current["cancelledAt"] is not None


def test_overview_reports_usage(client) -> None:
    employer = register_employer(client, email="hr@acme.example")
    client.post("/api/employer/subscription", json={"planId": "premium"}, headers=employer)
    client.post(
        "/api/employer/jobs",
        json={
            "title": "Featured Role",
            "description": "d",
            "location": "Limassol",
            "type": "FULL_TIME",
            "salaryMin": 1000,
            "applicationEmail": "jobs@acme.example",
            "status": "PUBLISHED",
            "featured": True,
        },
        headers=employer,
    )
    overview = client.get("/api/employer/subscription/manage", headers=employer).json()
    assert overview["currentPlan"] == "PREMIUM"
    assert len(overview["subscriptions"]) == 1
    assert overview["usageStats"]["totalJobsPosted"] == 1
    assert overview["usageStats"]["featuredJobsUsed"] == 1


def test_billing_is_for_employers_only(client) -> None:
    seeker = register_seeker(client, email="maria@example.com")
    assert client.post("/api/employer/subscription", json={"planId": "basic"}, headers=seeker).status_code == 403
