from __future__ import annotations

import asyncio
import threading
from datetime import timedelta, timezone
from typing import Any

from helpers import admin_headers, create_job, register_employer, register_seeker, service_headers

from jobboard.database import SessionLocal
from jobboard.models.jobs import Job
from jobboard.routers.dependencies import get_notification_dispatcher
from jobboard.services import alert_matcher
from jobboard.services.alert_matcher import (
    AlertCriteria,
    CandidateJob,
    build_alert_email,
    build_notification_payloads,
    find_matching_jobs,
    job_matches_alert,
    process_job_alerts,
)
from jobboard.services.notification_dispatcher import NotificationDeliveryError, NotificationDispatcher
from jobboard.utils.clock import utc_now


class RecordingDispatcher(NotificationDispatcher):
    def __init__(self, fail_types: tuple[str, ...] = ()) -> None:
        self.fail_types = set(fail_types)
        self.sent: list[dict[str, Any]] = []

    async def send(self, payload: dict[str, Any]) -> dict[str, Any]:
        if payload["type"] in self.fail_types:
            raise NotificationDeliveryError(f"Failed to send {payload['type'].lower()} notification")
        self.sent.append(payload)
        return {"success": True}


def _job(**overrides: Any) -> CandidateJob:
    values: dict[str, Any] = {
        "id": 1,
        "title": "Senior Frontend Developer",
        "description": "React single page applications",
        "location": "Limassol",
        "type": "FULL_TIME",
        "company_name": "Acme Ltd",
    }
    values.update(overrides)
    return CandidateJob(**values)


def _alert(**overrides: Any) -> AlertCriteria:
    values: dict[str, Any] = {"id": 7, "owner_email": "maria@example.com", "owner_first_name": "Maria"}
    values.update(overrides)
    return AlertCriteria(**values)


def _use_dispatcher(client, dispatcher: NotificationDispatcher) -> None:
    client.app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher


def _create_alert(client, headers, **fields: Any) -> int:
    body = {"title": "Developer", "emailAlerts": True, "smsAlerts": False}
    body.update(fields)
    r = client.post("/api/job-seeker/job-alerts", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["id"]


def _process(client) -> dict[str, Any]:
    r = client.post("/api/job-alerts/process", headers=service_headers())
    assert r.status_code == 200, r.text
    return r.json()


def test_title_filter_is_case_insensitive_substring() -> None:
    alert = _alert(title="developer")
    assert job_matches_alert(alert, _job(title="Senior Frontend Developer"))
    assert not job_matches_alert(alert, _job(title="Marketing Intern"))


def test_salary_ranges_only_need_to_overlap() -> None:
    alert = _alert(salary_min=40000)
    assert not job_matches_alert(alert, _job(salary_min=30000, salary_max=35000))
    assert job_matches_alert(alert, _job(salary_min=45000, salary_max=65000))
    # An unknown job bound never rejects.
    assert job_matches_alert(alert, _job(salary_min=None, salary_max=None))

    capped = _alert(salary_max=50000)
    assert not job_matches_alert(capped, _job(salary_min=60000, salary_max=80000))
    assert job_matches_alert(capped, _job(salary_min=45000, salary_max=80000))


def test_zero_and_empty_filters_count_as_unset() -> None:
    alert = _alert(title="", location="", industry="", salary_min=0, salary_max=0)
    assert job_matches_alert(alert, _job(title="Anything", salary_min=1, salary_max=2))


def test_industry_matches_employer_industry_or_descriptions() -> None:
    alert = _alert(industry="fintech")
    assert job_matches_alert(alert, _job(employer_industry="FinTech"))
    assert job_matches_alert(alert, _job(employer_description="A growing fintech startup"))
    assert job_matches_alert(alert, _job(description="Payments platform for fintech clients"))
    assert not job_matches_alert(alert, _job(employer_industry="Hospitality"))


def test_job_type_must_match_exactly() -> None:
    alert = _alert(job_type="PART_TIME")
    assert not job_matches_alert(alert, _job(type="FULL_TIME"))
    assert job_matches_alert(alert, _job(type="PART_TIME"))


def test_owner_skills_require_an_overlap_with_job_skills() -> None:
    alert = _alert(owner_skills=("JavaScript",))
    hotel = _job(id=1, title="Front Desk", skills=("Hotel Management",))
    web = _job(id=2, title="Web Developer", skills=("JavaScript", "React"))
    assert [job.id for job in find_matching_jobs(alert, [hotel, web])] == [2]

    # Seekers without skills are not filtered on skills.
    assert len(find_matching_jobs(_alert(), [hotel, web])) == 2


def test_skill_overlap_uses_substrings_both_ways() -> None:
    alert = _alert(owner_skills=("Java",))
    assert job_matches_alert(alert, _job(skills=("JavaScript",)))
    assert job_matches_alert(_alert(owner_skills=("React Native",)), _job(skills=("react",)))


def test_alert_email_lists_jobs_and_reasons() -> None:
    alert = _alert(title="Developer", location="Limassol")
    jobs = [
        _job(id=3, salary_min=40000, salary_max=50000, featured=True),
        _job(id=4, title="Backend Developer", urgent=True),
    ]
    subject, body = build_alert_email(alert, jobs)
    assert subject == "New Job Matches - 2 positions found"
    assert "Hello Maria," in body
    assert "1. Senior Frontend Developer at Acme Ltd" in body
    assert "Salary: €40,000 - €50,000" in body
    assert "http://testserver/jobs/4" in body
    assert 'Title matches "Developer"' in body
    assert 'Location preference for "Limassol"' in body


def test_sms_payload_falls_back_to_account_email_without_phone() -> None:
    alert = _alert(email_alerts=False, sms_alerts=True, owner_phone=None)
    payloads = build_notification_payloads(alert, [_job()])
    assert len(payloads) == 1
    assert payloads[0]["type"] == "SMS"
    assert payloads[0]["recipient"] == "maria@example.com"
    assert payloads[0]["template"] == "JOB_ALERT_SMS"


def test_disabled_channels_produce_no_payloads() -> None:
    alert = _alert(email_alerts=False, sms_alerts=False)
    assert build_notification_payloads(alert, [_job()]) == []


def test_process_without_alerts_reports_nothing_to_do(client) -> None:
    dispatcher = RecordingDispatcher()
    _use_dispatcher(client, dispatcher)

    body = _process(client)
    assert body == {
        "success": True,
        "message": "No active job alerts to process",
        "processed": 0,
        "notificationsSent": 0,
        "details": [],
    }
    assert dispatcher.sent == []


def test_process_skips_expired_jobs_whatever_the_offset(client) -> None:
    dispatcher = RecordingDispatcher()
    _use_dispatcher(client, dispatcher)
    employer = register_employer(client, email="hr@acme.example")
    an_hour_ago = utc_now() - timedelta(hours=1)
    in_two_hours = utc_now() + timedelta(hours=2)
    cyprus = timezone(timedelta(hours=3))
    create_job(client, employer, title="Expired UTC Developer", expiresAt=an_hour_ago.isoformat())
    create_job(client, employer, title="Expired Local Developer", expiresAt=an_hour_ago.astimezone(cyprus).isoformat())
    create_job(client, employer, title="Open Local Developer", expiresAt=in_two_hours.astimezone(cyprus).isoformat())
    seeker = register_seeker(client, email="maria@example.com")
    _create_alert(client, seeker, title="Developer")

    body = _process(client)
    assert body["details"][0]["matchingJobsCount"] == 1
    assert [job["title"] for job in dispatcher.sent[0]["data"]["jobs"]] == ["Open Local Developer"]


def test_process_notifies_only_for_matching_titles(client) -> None:
    dispatcher = RecordingDispatcher()
    _use_dispatcher(client, dispatcher)
    employer = register_employer(client, email="hr@acme.example")
    create_job(client, employer, title="Marketing Intern", type="INTERNSHIP")
    create_job(client, employer, title="Senior Frontend Developer")
    seeker = register_seeker(client, email="maria@example.com")
    alert_id = _create_alert(client, seeker, title="Developer")

    body = _process(client)
    assert body["message"] == "Job alerts processed successfully"
    assert body["processed"] == 1
    assert body["notificationsSent"] == 1
    assert body["details"] == [
        {
            "alertId": alert_id,
            "jobSeekerEmail": "maria@example.com",
            "matchingJobsCount": 1,
            "notificationsSent": 1,
        }
    ]

    (email,) = dispatcher.sent
    assert email["type"] == "EMAIL"
    assert email["recipient"] == "maria@example.com"
    assert email["subject"] == "New Job Matches - 1 positions found"
    assert [job["title"] for job in email["data"]["jobs"]] == ["Senior Frontend Developer"]


def test_process_applies_salary_overlap(client) -> None:
    dispatcher = RecordingDispatcher()
    _use_dispatcher(client, dispatcher)
    employer = register_employer(client, email="hr@acme.example")
    create_job(client, employer, title="Junior Engineer", salaryMin=30000, salaryMax=35000)
    create_job(client, employer, title="Lead Engineer", salaryMin=45000, salaryMax=65000)
    seeker = register_seeker(client, email="maria@example.com")
    _create_alert(client, seeker, title="Engineer", salaryMin=40000)

    body = _process(client)
    assert body["details"][0]["matchingJobsCount"] == 1
    assert [job["title"] for job in dispatcher.sent[0]["data"]["jobs"]] == ["Lead Engineer"]


def test_process_requires_skill_overlap_when_seeker_has_skills(client) -> None:
    dispatcher = RecordingDispatcher()
    _use_dispatcher(client, dispatcher)
    employer = register_employer(client, email="hr@acme.example")
    create_job(client, employer, title="Hospitality Developer", skills=["Hotel Management"])
    create_job(client, employer, title="Frontend Developer", skills=["JavaScript", "React"])
    seeker = register_seeker(client, email="maria@example.com", skills=("JavaScript",))
    _create_alert(client, seeker, title="Developer")

    body = _process(client)
    assert body["details"][0]["matchingJobsCount"] == 1
    assert [job["title"] for job in dispatcher.sent[0]["data"]["jobs"]] == ["Frontend Developer"]


def test_process_ignores_jobs_published_outside_the_window(client) -> None:
    dispatcher = RecordingDispatcher()
    _use_dispatcher(client, dispatcher)
    employer = register_employer(client, email="hr@acme.example")
    job_id = create_job(client, employer, title="Backend Developer")
    with SessionLocal() as db:
        job = db.get(Job, job_id)
        job.published_at = utc_now() - timedelta(hours=25)
        job.created_at = utc_now() - timedelta(hours=25)
        db.commit()
    seeker = register_seeker(client, email="maria@example.com")
    _create_alert(client, seeker, title="Developer")

    body = _process(client)
    assert body["processed"] == 1
    assert body["notificationsSent"] == 0
    assert body["details"] == []
    assert dispatcher.sent == []


def test_process_ignores_draft_and_inactive_alerts(client) -> None:
    dispatcher = RecordingDispatcher()
    _use_dispatcher(client, dispatcher)
    employer = register_employer(client, email="hr@acme.example")
    create_job(client, employer, title="Draft Developer", status="DRAFT")
    seeker = register_seeker(client, email="maria@example.com")
    _create_alert(client, seeker, title="Developer")
    paused = _create_alert(client, seeker, title="Developer")
    r = client.put(f"/api/job-seeker/job-alerts/{paused}", json={"active": False}, headers=seeker)
    assert r.status_code == 200

    body = _process(client)
    assert body["processed"] == 1
    assert body["details"] == []


def test_running_twice_notifies_twice(client) -> None:
    dispatcher = RecordingDispatcher()
    _use_dispatcher(client, dispatcher)
    employer = register_employer(client, email="hr@acme.example")
    create_job(client, employer, title="Python Developer")
    seeker = register_seeker(client, email="maria@example.com")
    _create_alert(client, seeker, title="Developer")

    assert _process(client)["notificationsSent"] == 1
    assert _process(client)["notificationsSent"] == 1
    assert len(dispatcher.sent) == 2


def test_failed_channel_is_not_counted(client) -> None:
    dispatcher = RecordingDispatcher(fail_types=("EMAIL",))
    _use_dispatcher(client, dispatcher)
    employer = register_employer(client, email="hr@acme.example")
    create_job(client, employer, title="Python Developer")
    seeker = register_seeker(client, email="maria@example.com", phone="+357 99 123456")
    _create_alert(client, seeker, title="Developer", emailAlerts=True, smsAlerts=True)

    body = _process(client)
    assert body["notificationsSent"] == 1
    assert body["details"][0]["notificationsSent"] == 1
    (sms,) = dispatcher.sent
    assert sms["type"] == "SMS"
    assert sms["recipient"] == "+357 99 123456"


def test_one_alert_failing_does_not_stop_the_others(client) -> None:
    dispatcher = RecordingDispatcher(fail_types=("EMAIL",))
    _use_dispatcher(client, dispatcher)
    employer = register_employer(client, email="hr@acme.example")
    create_job(client, employer, title="Python Developer")
    email_only = register_seeker(client, email="maria@example.com")
    _create_alert(client, email_only, title="Developer")
    sms_only = register_seeker(client, email="nikos@example.com", first_name="Nikos", phone="+35799000000")
    _create_alert(client, sms_only, title="Python", emailAlerts=False, smsAlerts=True)

    body = _process(client)
    assert body["processed"] == 2
    assert body["notificationsSent"] == 1
    assert [d["notificationsSent"] for d in body["details"]] == [0, 1]


def test_zero_hour_window_is_not_replaced_by_the_default(client) -> None:
    employer = register_employer(client, email="hr@acme.example")
    create_job(client, employer, title="Python Developer")
    seeker = register_seeker(client, email="maria@example.com")
    _create_alert(client, seeker, title="Developer")

    dispatcher = RecordingDispatcher()
    with SessionLocal() as db:
        empty = asyncio.run(process_job_alerts(db, dispatcher, window_hours=0))
        default = asyncio.run(process_job_alerts(db, dispatcher))

    assert empty.processed == 1
    assert empty.details == []
    assert default.notifications_sent == 1
    assert [d.matching_jobs_count for d in default.details] == [1]


def test_alert_and_job_loads_run_off_the_event_loop(client, monkeypatch) -> None:
    seeker = register_seeker(client, email="maria@example.com")
    _create_alert(client, seeker, title="Developer")
    threads: list[int] = []
    original_alerts = alert_matcher.load_active_alerts
    original_jobs = alert_matcher.load_candidate_jobs

    def load_alerts(db):
        threads.append(threading.get_ident())
        return original_alerts(db)

    def load_jobs(db, **kwargs):
        threads.append(threading.get_ident())
        return original_jobs(db, **kwargs)

    monkeypatch.setattr(alert_matcher, "load_active_alerts", load_alerts)
    monkeypatch.setattr(alert_matcher, "load_candidate_jobs", load_jobs)
    with SessionLocal() as db:
        asyncio.run(process_job_alerts(db, RecordingDispatcher()))

    assert len(threads) == 2
    assert threading.get_ident() not in threads


def test_process_requires_admin_or_service_token(client) -> None:
    _use_dispatcher(client, RecordingDispatcher())
    seeker = register_seeker(client, email="maria@example.com")

    assert client.post("/api/job-alerts/process").status_code == 401
    wrong = client.post("/api/job-alerts/process", headers={"X-Service-Token": "nope"})
    assert wrong.status_code == 401
    assert client.post("/api/job-alerts/process", headers=seeker).status_code == 403
    assert client.post("/api/job-alerts/process", headers=admin_headers(client)).status_code == 200


def test_process_reports_internal_error_when_dispatcher_breaks(client) -> None:
    class BrokenDispatcher(RecordingDispatcher):
        async def __aenter__(self) -> "BrokenDispatcher":
            raise RuntimeError("notification endpoint misconfigured")

    _use_dispatcher(client, BrokenDispatcher())
    employer = register_employer(client, email="hr@acme.example")
    create_job(client, employer, title="Python Developer")
    seeker = register_seeker(client, email="maria@example.com")
    _create_alert(client, seeker, title="Developer")

    r = client.post("/api/job-alerts/process", headers=service_headers())
    assert r.status_code == 500
    assert r.json()["detail"] == "Internal server error"
