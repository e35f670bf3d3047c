# gdpr_service.py
import csv
import io
import json
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from jobboard.models.applications import SavedJob
from jobboard.models.audit import AuditLog, ConsentLog
from jobboard.models.enums import UserRole
from jobboard.models.job_alert import JobAlert
from jobboard.models.jobs import Job
from jobboard.models.searches import RecentSearch, SavedSearch
from jobboard.models.user import User
from jobboard.utils.clock import isoformat, utc_now


CV_PRESENT = "[CV FILE PRESENT]"
AUDIT_EXPORT_LIMIT = 100

# Consent types that map onto a flag on the user row; the rest are only logged.
CONSENT_FLAGS = {
    "DATA_RETENTION": "data_retention_consent",
    "MARKETING": "marketing_consent",
    "JOB_ALERTS": "job_alert_consent",
}


def _dt(value: Optional[datetime]) -> Optional[str]:
    return isoformat(value)


def _basic_info(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "emailVerified": bool(user.email_verified),
        "dataRetentionConsent": bool(user.data_retention_consent),
        "marketingConsent": bool(user.marketing_consent),
        "jobAlertConsent": bool(user.job_alert_consent),
        "createdAt": _dt(user.created_at),
        "lastLoginAt": _dt(user.last_login_at),
    }


def _seeker_profile(user: User) -> Optional[dict[str, Any]]:
    seeker = user.job_seeker
    if seeker is None:
        return None
    return {
        "firstName": seeker.first_name,
        "lastName": seeker.last_name,
        "phone": seeker.phone,
        "location": seeker.location,
        "country": seeker.country,
        "title": seeker.title,
        "bio": seeker.bio,
        "experience": seeker.experience,
        "education": seeker.education,
        "cvUrl": CV_PRESENT if seeker.cv_url else None,
        "profileVisibility": seeker.profile_visibility,
        "skills": [{"name": link.skill.name, "level": link.level} for link in seeker.skills],
        "applications": [
            {
                "jobId": app.job_id,
                "jobTitle": app.job.title if app.job else None,
                "companyName": app.job.employer.company_name if app.job and app.job.employer else None,
                "status": app.status,
                "appliedAt": _dt(app.applied_at),
            }
            for app in seeker.applications
        ],
        "jobAlerts": [
            {
                "id": alert.id,
                "title": alert.title,
                "location": alert.location,
                "industry": alert.industry,
                "jobType": alert.job_type,
                "salaryMin": alert.salary_min,
                "salaryMax": alert.salary_max,
                "emailAlerts": bool(alert.email_alerts),
                "smsAlerts": bool(alert.sms_alerts),
                "frequency": alert.frequency,
                "active": bool(alert.active),
            }
            for alert in seeker.job_alerts
        ],
        "savedJobs": [
            {"jobId": saved.job_id, "jobTitle": saved.job.title if saved.job else None, "savedAt": _dt(saved.created_at)}
            for saved in seeker.saved_jobs
        ],
    }


def _employer_profile(user: User) -> Optional[dict[str, Any]]:
    employer = user.employer
    if employer is None:
        return None
    return {
        "companyName": employer.company_name,
        "description": employer.description,
        "website": employer.website,
        "industry": employer.industry,
        "size": employer.size,
        "contactName": employer.contact_name,
        "contactEmail": employer.contact_email,
        "contactPhone": employer.contact_phone,
        "city": employer.city,
        "country": employer.country,
        "jobs": [
            {
                "id": job.id,
                "title": job.title,
                "status": job.status,
                "skills": job.skill_names,
                "createdAt": _dt(job.created_at),
                "applicants": [
                    app.job_seeker.user.email
                    for app in job.applications
                    if app.job_seeker is not None and app.job_seeker.user is not None
                ],
            }
            for job in employer.jobs
        ],
        "payments": [
            {
                "id": payment.id,
                "amount": float(payment.amount),
                "currency": payment.currency,
                "status": payment.status,
                "description": payment.description,
                "createdAt": _dt(payment.created_at),
            }
            for payment in employer.payments
        ],
        "subscriptions": [
            {
                "id": sub.id,
                "plan": sub.plan,
                "status": sub.status,
                "startsAt": _dt(sub.starts_at),
                "endsAt": _dt(sub.ends_at),
                "cancelledAt": _dt(sub.cancelled_at),
            }
            for sub in employer.subscriptions
        ],
    }


def collect_user_data(db: Session, user: User) -> dict[str, Any]:
    data: dict[str, Any] = {"basicInfo": _basic_info(user)}
    if user.role == UserRole.JOB_SEEKER.value:
        data["jobSeekerProfile"] = _seeker_profile(user)
    elif user.role == UserRole.EMPLOYER.value:
        data["employerProfile"] = _employer_profile(user)

    consent_logs = (
        db.query(ConsentLog).filter(ConsentLog.user_id == user.id).order_by(ConsentLog.created_at.desc()).all()
    )
    data["consentLogs"] = [
        {"type": log.consent_type, "action": log.action, "createdAt": _dt(log.created_at)} for log in consent_logs
    ]

    audit_logs = (
        db.query(AuditLog)
        .filter(AuditLog.user_id == user.id)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(AUDIT_EXPORT_LIMIT)
        .all()
    )
    data["auditLogs"] = [
        {
            "action": log.action,
            "entityType": log.entity_type,
            "entityId": log.entity_id,
            "createdAt": _dt(log.created_at),
        }
        for log in audit_logs
    ]
    return data


def data_summary(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "basicInfo": bool(data.get("basicInfo")),
        "jobSeekerProfile": bool(data.get("jobSeekerProfile")),
        "employerProfile": bool(data.get("employerProfile")),
        "consentLogs": len(data.get("consentLogs") or []),
        "auditLogs": len(data.get("auditLogs") or []),
    }


def _flatten(prefix: str, value: Any, rows: list[tuple[str, str]]) -> None:
    if isinstance(value, dict):
        for key, item in value.items():
            _flatten(f"{prefix}.{key}" if prefix else key, item, rows)
    elif isinstance(value, list):
        if not value:
            rows.append((prefix, ""))
        for index, item in enumerate(value):
            _flatten(f"{prefix}[{index}]", item, rows)
    else:
        rows.append((prefix, "" if value is None else str(value)))


def export_to_csv(data: dict[str, Any]) -> str:
    """One `section,field,value` row per leaf value."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["section", "field", "value"])
    for section, content in data.items():
        rows: list[tuple[str, str]] = []
        if isinstance(content, (dict, list)):
            _flatten("", content, rows)
        else:
            rows.append(("", json.dumps(content)))
        for field, value in rows:
            writer.writerow([section, field, value])
    return buffer.getvalue()


def anonymise_user(db: Session, user: User, *, now: Optional[datetime] = None) -> datetime:
    deleted_at = now or utc_now()
    user.deleted_at = deleted_at
    user.email = f"deleted-{user.id}@deleted.invalid"
    user.name = None
    user.marketing_consent = False
    user.job_alert_consent = False

    seeker = user.job_seeker
    if seeker is not None:
        seeker.first_name = "Deleted"
        seeker.last_name = "User"
        seeker.phone = None
        seeker.bio = None
        seeker.cv_url = None
        db.query(JobAlert).filter(JobAlert.job_seeker_id == seeker.id).update(
            {JobAlert.active: False}, synchronize_session=False
        )
    _delete_search_history(db, user.id)
    return deleted_at


def _delete_search_history(db: Session, user_id: int) -> None:
    db.query(SavedSearch).filter(SavedSearch.user_id == user_id).delete(synchronize_session=False)
    db.query(RecentSearch).filter(RecentSearch.user_id == user_id).delete(synchronize_session=False)


def purge_user(db: Session, user: User) -> None:
    """Remove the account and everything owned by it.

    Audit entries survive with their user reference cleared.
    """
    employer = user.employer
    if employer is not None:
        job_ids = [row.id for row in db.query(Job.id).filter(Job.employer_id == employer.id).all()]
        db.query(SavedJob).filter(SavedJob.job_id.in_(job_ids)).delete(synchronize_session=False)
    db.query(ConsentLog).filter(ConsentLog.user_id == user.id).delete(synchronize_session=False)
    _delete_search_history(db, user.id)
    db.query(AuditLog).filter(AuditLog.user_id == user.id).update({AuditLog.user_id: None}, synchronize_session=False)
    db.delete(user)
