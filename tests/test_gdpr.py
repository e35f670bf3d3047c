from __future__ import annotations

import csv
import io

from helpers import PASSWORD, create_job, register_employer, register_seeker

from jobboard.database import SessionLocal
from jobboard.models.audit import AuditLog, ConsentLog
from jobboard.models.job_alert import JobAlert
from jobboard.models.user import User
from jobboard.services.gdpr_service import export_to_csv


def test_consent_updates_flag_and_is_logged(client) -> None:
    seeker = register_seeker(client, email="maria@example.com")
    r = client.post("/api/gdpr/consent", json={"type": "MARKETING", "action": "GRANTED"}, headers=seeker)
    assert r.status_code == 200
    assert r.json()["message"] == "Consent granted successfully"
    assert r.json()["consentType"] == "MARKETING"

    client.post("/api/gdpr/consent", json={"type": "COOKIES", "action": "REVOKED"}, headers=seeker)

    with SessionLocal() as db:
        user = db.query(User).filter(User.email == "maria@example.com").one()
        assert user.marketing_consent is True
        logs = db.query(ConsentLog).filter(ConsentLog.user_id == user.id).order_by(ConsentLog.id).all()
        assert [(log.consent_type, log.action) for log in logs] == [("MARKETING", "GRANTED"), ("COOKIES", "REVOKED")]
        audit = [log.action for log in db.query(AuditLog).filter(AuditLog.user_id == user.id)]
        assert "CONSENT_GRANTED" in audit
        assert "CONSENT_REVOKED" in audit


def test_unknown_consent_type_is_a_validation_error(client) -> None:
    seeker = register_seeker(client, email="maria@example.com")
    r = client.post("/api/gdpr/consent", json={"type": "TELEPATHY", "action": "GRANTED"}, headers=seeker)
    assert r.status_code == 422


def test_json_export_contains_profile_and_history(client) -> None:
    employer = register_employer(client, email="hr@acme.example")
    job_id = create_job(client, employer, title="Data Analyst")
    seeker = register_seeker(client, email="maria@example.com", skills=("SQL",))
    client.post(f"/api/jobs/{job_id}/apply", json={}, headers=seeker)
    client.post("/api/job-seeker/job-alerts", json={"title": "Analyst"}, headers=seeker)
    client.put("/api/job-seeker/profile", json={"cvUrl": "https://files.example/cv.pdf"}, headers=seeker)

    r = client.post("/api/gdpr/data-export", headers=seeker)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["userEmail"] == "maria@example.com"
    profile = body["data"]["jobSeekerProfile"]
    assert profile["skills"] == [{"name": "SQL", "level": 3}]
    assert profile["applications"][0]["jobTitle"] == "Data Analyst"
    assert profile["jobAlerts"][0]["title"] == "Analyst"
    assert profile["cvUrl"] == "[CV FILE PRESENT]"
    assert body["dataSummary"]["jobSeekerProfile"] is True
    assert body["dataSummary"]["employerProfile"] is False
    assert body["dataSummary"]["auditLogs"] >= 3

    with SessionLocal() as db:
        assert db.query(AuditLog).filter(AuditLog.action == "DATA_EXPORT").count() == 1


def test_csv_export_is_an_attachment(client) -> None:
    employer = register_employer(client, email="hr@acme.example")
    r = client.post("/api/gdpr/data-export", json={"format": "csv"}, headers=employer)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "attachment" in r.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(r.text)))
    assert rows[0] == ["section", "field", "value"]
    assert ["basicInfo", "email", "hr@acme.example"] in rows
    assert ["employerProfile", "companyName", "Acme Ltd"] in rows


def test_export_to_csv_flattens_nested_values() -> None:
    text = export_to_csv({"profile": {"skills": [{"name": "SQL"}], "tags": []}, "count": 2})
    rows = list(csv.reader(io.StringIO(text)))
    assert rows[1:] == [
        ["profile", "skills[0].name", "SQL"],
        ["profile", "tags", ""],
        ["count", "", "2"],
    ]


def test_account_deletion_anonymises_and_blocks_access(client) -> None:
    seeker = register_seeker(client, email="maria@example.com", phone="+35799000000")
    client.post("/api/job-seeker/job-alerts", json={"title": "Developer"}, headers=seeker)

    r = client.post("/api/gdpr/account-deletion", headers=seeker)
    assert r.status_code == 200
    assert r.json()["message"] == "Account deleted successfully"

    assert client.get("/users/me", headers=seeker).status_code == 401
    login = client.post("/auth/login", json={"email": "maria@example.com", "password": PASSWORD})
    assert login.status_code == 401

    with SessionLocal() as db:
        user = db.query(User).one()
        assert user.deleted_at is not None
        assert user.email == f"deleted-{user.id}@deleted.invalid"
        assert user.job_seeker.first_name == "Deleted"
        assert user.job_seeker.phone is None
        assert db.query(JobAlert).filter(JobAlert.active.is_(True)).count() == 0
        assert db.query(AuditLog).filter(AuditLog.action == "ACCOUNT_DELETED").count() == 1


def test_deleted_email_can_register_again(client) -> None:
    seeker = register_seeker(client, email="maria@example.com")
    client.post("/api/gdpr/account-deletion", headers=seeker)
    register_seeker(client, email="maria@example.com")
