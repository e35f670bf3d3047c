from __future__ import annotations

from decimal import Decimal

from helpers import PASSWORD, admin_headers, create_job, register_employer, register_seeker

from jobboard.database import SessionLocal
from jobboard.models.applications import SavedJob
from jobboard.models.audit import AuditLog
from jobboard.models.billing import Payment
from jobboard.models.enums import PaymentStatus
from jobboard.models.jobs import Job
from jobboard.models.user import User


def _user_id(client, headers, email: str) -> int:
    r = client.get("/admin/users", params={"search": email, "include_deleted": "true"}, headers=headers)
    assert r.status_code == 200, r.text
    return r.json()["users"][0]["id"]


def test_admin_routes_require_admin(client) -> None:
    seeker = register_seeker(client, email="maria@example.com")
    assert client.get("/admin/payments", headers=seeker).status_code == 403
    assert client.get("/admin/users/1", headers=seeker).status_code == 403
    assert client.patch("/admin/users/1", json={"action": "delete"}, headers=seeker).status_code == 403
    assert client.get("/admin/gdpr-requests", headers=seeker).status_code == 403


def test_user_search_matches_email_and_name(client) -> None:
    headers = admin_headers(client)
    register_seeker(client, email="maria@example.com", first_name="Maria", last_name="Georgiou")
    register_seeker(client, email="nikos@example.com", first_name="Nikos", last_name="Pappas")

    by_name = client.get("/admin/users", params={"search": "georg"}, headers=headers).json()
    assert [user["email"] for user in by_name["users"]] == ["maria@example.com"]
    by_email = client.get("/admin/users", params={"search": "NIKOS@"}, headers=headers).json()
    assert [user["email"] for user in by_email["users"]] == ["nikos@example.com"]

    paged = client.get("/admin/users", params={"limit": 2}, headers=headers).json()
    assert paged["total"] == 3
    assert paged["total_pages"] == 2


def test_user_detail_includes_activity_counts(client) -> None:
    headers = admin_headers(client)
    employer = register_employer(client, email="hr@acme.example", company_name="Acme Ltd")
    create_job(client, employer)
    create_job(client, employer, title="Second Role")

    r = client.get(f"/admin/users/{_user_id(client, headers, 'hr@acme.example')}", headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["email"] == "hr@acme.example"
    assert body["company_name"] == "Acme Ltd"
    assert body["jobs_posted"] == 2
    assert body["applications_submitted"] == 0

    assert client.get("/admin/users/9999", headers=headers).status_code == 404


def test_soft_delete_blocks_login_and_is_audited(client) -> None:
    headers = admin_headers(client)
    register_seeker(client, email="maria@example.com")
    user_id = _user_id(client, headers, "maria@example.com")

    r = client.patch(f"/admin/users/{user_id}", json={"action": "soft-delete"}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["deleted_at"] is not None

    login = client.post("/auth/login", json={"email": "maria@example.com", "password": PASSWORD})
    assert login.status_code == 401
    again = client.patch(f"/admin/users/{user_id}", json={"action": "soft-delete"}, headers=headers)
    assert again.status_code == 400
    # Soft-deleted accounts stay visible to admins.
    assert client.get(f"/admin/users/{user_id}", headers=headers).json()["deleted_at"] is not None

    with SessionLocal() as db:
        entry = db.query(AuditLog).filter(AuditLog.action == "ADMIN_USER_SOFT_DELETED").one()
        assert entry.entity_id == str(user_id)


def test_hard_delete_removes_employer_and_frees_email(client) -> None:
    headers = admin_headers(client)
    employer = register_employer(client, email="hr@acme.example")
    job_id = create_job(client, employer)
    client.post("/api/employer/subscription", json={"planId": "basic"}, headers=employer)
    seeker = register_seeker(client, email="maria@example.com")
    assert client.post(f"/api/job-seeker/saved-jobs/{job_id}", headers=seeker).status_code == 201
    user_id = _user_id(client, headers, "hr@acme.example")

    r = client.patch(f"/admin/users/{user_id}", json={"action": "delete"}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json() == {"message": "User deleted successfully"}

    with SessionLocal() as db:
        assert db.query(User).filter(User.id == user_id).first() is None
        assert db.query(Job).count() == 0
        assert db.query(Payment).count() == 0
        assert db.query(SavedJob).count() == 0
        registered = db.query(AuditLog).filter(AuditLog.action == "USER_REGISTERED", AuditLog.entity_id == str(user_id))
        assert registered.one().user_id is None

    assert client.get(f"/admin/users/{user_id}", headers=headers).status_code == 404
    register_employer(client, email="hr@acme.example")


def test_manage_user_rejects_bad_requests(client) -> None:
    headers = admin_headers(client)
    register_seeker(client, email="maria@example.com")
    user_id = _user_id(client, headers, "maria@example.com")
    admin_id = _user_id(client, headers, "admin@example.com")

    invalid = client.patch(f"/admin/users/{user_id}", json={"action": "ban"}, headers=headers)
    assert invalid.status_code == 400
    assert invalid.json()["detail"] == "Invalid action"
    assert client.patch("/admin/users/9999", json={"action": "delete"}, headers=headers).status_code == 404
    assert client.patch(f"/admin/users/{admin_id}", json={"action": "delete"}, headers=headers).status_code == 400


def test_payment_listing_with_employer_contact_and_status_filter(client) -> None:
    headers = admin_headers(client)
    employer = register_employer(client, email="hr@acme.example", company_name="Acme Ltd")
    client.post("/api/employer/subscription", json={"planId": "premium"}, headers=employer)
    with SessionLocal() as db:
        employer_id = db.query(Payment).one().employer_id
        db.add(Payment(employer_id=employer_id, amount=Decimal("50.00"), currency="EUR",
                       status=PaymentStatus.FAILED.value, description="Basic plan subscription"))
        db.commit()

    everything = client.get("/admin/payments", headers=headers).json()
    assert everything["total"] == 2
    assert everything["total_pages"] == 1
    payment = next(p for p in everything["payments"] if p["status"] == "SUCCEEDED")
    assert payment["amount"] == 150.0
    assert payment["employer"]["company_name"] == "Acme Ltd"
    assert payment["employer"]["contact"]["email"] == "hr@acme.example"

    failed = client.get("/admin/payments", params={"status": "FAILED"}, headers=headers).json()
    assert [p["amount"] for p in failed["payments"]] == [50.0]
    assert client.get("/admin/payments", params={"status": "LOST"}, headers=headers).status_code == 422


def test_gdpr_request_management_is_gone(client) -> None:
    headers = admin_headers(client)
    listed = client.get("/admin/gdpr-requests", headers=headers)
    assert listed.status_code == 410
    assert listed.json()["detail"] == "GDPR request management deprecated"
    assert client.patch("/admin/gdpr-requests/1", json={}, headers=headers).status_code == 410
