from enum import Enum as PyEnum


class UserRole(str, PyEnum):
    JOB_SEEKER = "JOB_SEEKER"
    EMPLOYER = "EMPLOYER"
    ADMIN = "ADMIN"


class JobStatus(str, PyEnum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    PAUSED = "PAUSED"
    EXPIRED = "EXPIRED"
    CLOSED = "CLOSED"


class JobType(str, PyEnum):
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"
    CONTRACT = "CONTRACT"
    INTERNSHIP = "INTERNSHIP"
    TEMPORARY = "TEMPORARY"


class RemoteType(str, PyEnum):
    ONSITE = "ONSITE"
    REMOTE = "REMOTE"
    HYBRID = "HYBRID"


class ApplicationStatus(str, PyEnum):
    APPLIED = "APPLIED"
    VIEWED = "VIEWED"
    SHORTLISTED = "SHORTLISTED"
    INTERVIEW = "INTERVIEW"
    OFFERED = "OFFERED"
    HIRED = "HIRED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"


class AlertFrequency(str, PyEnum):
    INSTANT = "INSTANT"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"


class ProfileVisibility(str, PyEnum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"
    RECRUITERS_ONLY = "RECRUITERS_ONLY"


class SubscriptionPlan(str, PyEnum):
    BASIC = "BASIC"
    PREMIUM = "PREMIUM"


class SubscriptionStatus(str, PyEnum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class PaymentStatus(str, PyEnum):
    PENDING = "PENDING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class NotificationChannel(str, PyEnum):
    EMAIL = "EMAIL"
    SMS = "SMS"


# Statuses that keep a job out of a seeker's recommendation list.
ACTIVE_APPLICATION_STATUSES = (
    ApplicationStatus.APPLIED.value,
    ApplicationStatus.VIEWED.value,
    ApplicationStatus.SHORTLISTED.value,
    ApplicationStatus.INTERVIEW.value,
    ApplicationStatus.OFFERED.value,
    ApplicationStatus.HIRED.value,
)
