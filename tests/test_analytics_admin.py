from __future__ import annotations

from helpers import admin_headers, create_job, register_employer, register_seeker


def _apply(client, seeker, job_id: int) -> int:
    r = client.post(f"/api/jobs/{job_id}/apply", json={}, headers=seeker)
    assert r.status_code == 201, r.text
    return r.json()["applicationId"]


def test_employer_analytics_funnel_and_top_jobs(client) -> None:
    employer = register_employer(client, email="hr@acme.example")
    popular = create_job(client, employer, title="Popular Role")
    quiet = create_job(client, employer, title="Quiet Role")
    maria = register_seeker(client, email="maria@example.com")
    nikos = register_seeker(client, email="nikos@example.com", first_name="Nikos")

    first = _apply(client, maria, popular)
    _apply(client, nikos, popular)
    _apply(client, maria, quiet)
    client.patch(f"/api/applications/{first}/status", json={"status": "VIEWED"}, headers=employer)
    client.patch(f"/api/applications/{first}/status", json={"status": "SHORTLISTED"}, headers=employer)

    r = client.get("/api/employer/analytics", headers=employer)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["days"] == 30
    assert body["totalApplications"] == 3
    assert {item["status"]: item["count"] for item in body["applicationsByStatus"]} == {"APPLIED": 2, "SHORTLISTED": 1}
    assert sum(item["count"] for item in body["applicationsByDay"]) == 3
    assert [(job["jobId"], job["applications"]) for job in body["topPerformingJobs"]] == [(popular, 2), (quiet, 1)]
    assert body["averageResponseTimeHours"] is not None
    assert body["conversionFunnel"] == {
        "applied": 3,
        "viewed": 1,
        "shortlisted": 1,
        "interview": 0,
        "offered": 0,
        "hired": 0,
    }

    scoped = client.get("/api/employer/analytics", params={"jobId": quiet}, headers=employer).json()
    assert scoped["totalApplications"] == 1


def test_analytics_for_foreign_job_is_not_found(client) -> None:
    acme = register_employer(client, email="hr@acme.example")
    globex = register_employer(client, email="hr@globex.example", company_name="Globex")
    job_id = create_job(client, acme)
    r = client.get("/api/employer/analytics", params={"jobId": job_id}, headers=globex)
    assert r.status_code == 404


def test_employer_stats(client) -> None:
    employer = register_employer(client, email="hr@acme.example")
    live = create_job(client, employer)
    create_job(client, employer, status="DRAFT")
    seeker = register_seeker(client, email="maria@example.com")
    _apply(client, seeker, live)

    stats = client.get("/api/employer/stats", headers=employer).json()
    assert stats["totalJobs"] == 2
    assert stats["activeJobs"] == 1
    assert stats["totalApplications"] == 1
    assert stats["pendingApplications"] == 1


def test_admin_stats_counts_users_jobs_and_revenue(client) -> None:
    headers = admin_headers(client)
    employer = register_employer(client, email="hr@acme.example")
    create_job(client, employer)
    client.post("/api/employer/subscription", json={"planId": "premium"}, headers=employer)

    r = client.get("/admin/stats", headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["users_total"] == 2
    roles = {item["key"]: item["count"] for item in body["users_by_role"]}
    assert roles["JOB_SEEKER"] == 1
    assert roles["EMPLOYER"] == 1
    statuses = {item["key"]: item["count"] for item in body["jobs_by_status"]}
    assert statuses["PUBLISHED"] == 1
    assert body["active_subscriptions"] == 1
    assert body["revenue_total"] == 150.0
    assert len(body["signups_series"]) == 14
    assert body["signups_series"][-1]["count"] == 2


def test_admin_user_listing_hides_deleted_accounts(client) -> None:
    headers = admin_headers(client)
    seeker = register_seeker(client, email="maria@example.com")
    register_employer(client, email="hr@acme.example")
    client.post("/api/gdpr/account-deletion", headers=seeker)

    visible = client.get("/admin/users", headers=headers).json()
    assert visible["total"] == 2
    employers = client.get("/admin/users", params={"role": "EMPLOYER"}, headers=headers).json()
    assert [user["email"] for user in employers["users"]] == ["hr@acme.example"]
    everyone = client.get("/admin/users", params={"include_deleted": "true"}, headers=headers).json()
    assert everyone["total"] == 3
