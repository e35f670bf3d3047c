from __future__ import annotations

from typing import Any


PASSWORD = "SecretPass123"
SERVICE_TOKEN = "test-service-token"


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def service_headers() -> dict[str, str]:
    return {"X-Service-Token": SERVICE_TOKEN}


def login(client, *, email: str, password: str = PASSWORD) -> dict[str, str]:
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return bearer(r.json()["access_token"])


def register_seeker(
    client,
    *,
    email: str,
    first_name: str = "Maria",
    last_name: str = "Georgiou",
    location: str = "Limassol",
    phone: str | None = None,
    skills: tuple[str, ...] = (),
) -> dict[str, str]:
    r = client.post(
        "/auth/register/job-seeker",
        json={
            "email": email,
            "password": PASSWORD,
            "first_name": first_name,
            "last_name": last_name,
            "location": location,
            "phone": phone,
        },
    )
    assert r.status_code == 201, r.text
    headers = login(client, email=email)
    for name in skills:
        added = client.post("/api/job-seeker/skills", json={"name": name}, headers=headers)
        assert added.status_code == 201, added.text
    return headers


def register_employer(
    client,
    *,
    email: str,
    company_name: str = "Acme Ltd",
    industry: str | None = "Technology",
) -> dict[str, str]:
    r = client.post(
        "/auth/register/employer",
        json={"email": email, "password": PASSWORD, "company_name": company_name, "industry": industry},
    )
    assert r.status_code == 201, r.text
    return login(client, email=email)


def admin_headers(client) -> dict[str, str]:
    # admin@example.com is on the ADMIN_EMAILS allowlist set by conftest.
    return register_seeker(client, email="admin@example.com", first_name="Ada", last_name="Admin")


def job_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "title": "Software Developer",
        "description": "Build and maintain web applications.",
        "location": "Limassol",
        "type": "FULL_TIME",
        "salaryMin": 30000,
        "salaryMax": 45000,
        "applicationEmail": "jobs@acme.example",
        "status": "PUBLISHED",
        "skills": [],
    }
    payload.update(overrides)
    return payload


def create_job(client, headers: dict[str, str], **overrides: Any) -> int:
    r = client.post("/api/employer/jobs", json=job_payload(**overrides), headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["jobId"]
