"""Plan catalogue, proration and usage figures for employer subscriptions.

Payments are recorded as SUCCEEDED immediately; no payment provider is called.
"""
from __future__ import annotations

import calendar
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from jobboard.models.applications import Application
from jobboard.models.billing import Subscription
from jobboard.models.enums import JobStatus, SubscriptionPlan, SubscriptionStatus
from jobboard.models.jobs import Job
from jobboard.schemas.billing import UsageStats
from jobboard.utils.clock import as_utc, utc_now


@dataclass(frozen=True)
class Plan:
    code: str
    name: str
    price: float
    currency: str = "EUR"
    level: int = 1


PLANS: dict[str, Plan] = {
    "basic": Plan(code=SubscriptionPlan.BASIC.value, name="Basic", price=50.0, level=1),
    "premium": Plan(code=SubscriptionPlan.PREMIUM.value, name="Premium", price=150.0, level=2),
}


@dataclass(frozen=True)
class Proration:
    prorated_refund: float
    additional_amount: float


def resolve_plan(plan_id: Optional[str]) -> Optional[Plan]:
    """Look a plan up by id ("basic") or code ("BASIC")."""
    return PLANS.get((plan_id or "").strip().lower())


def plan_for_code(code: str) -> Plan:
    return PLANS[code.lower()]


def add_one_month(value: datetime) -> datetime:
    # Clamp to the last day of a shorter month (Jan 31 -> Feb 28/29).
    year = value.year + (1 if value.month == 12 else 0)
    month = 1 if value.month == 12 else value.month + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def days_remaining(ends_at: datetime, now: Optional[datetime] = None) -> int:
    delta = as_utc(ends_at) - (now or utc_now())
    return math.ceil(delta / timedelta(days=1))


def compute_proration(current: Plan, new: Plan, ends_at: datetime, now: Optional[datetime] = None) -> Proration:
    """Credit the unused part of the current period against the new plan price.

    A period is billed as 30 days regardless of the calendar month.
    """
    daily_rate = current.price / 30
    refund = max(0.0, daily_rate * days_remaining(ends_at, now))
    additional = max(0.0, new.price - refund)
    return Proration(prorated_refund=round(refund, 2), additional_amount=round(additional, 2))


def plan_change_error(current: Plan, new: Plan, action: str) -> Optional[str]:
    if current.code == new.code:
        return "You are already on this plan"
    if action == "upgrade" and new.level <= current.level:
        return "Invalid upgrade path"
    if action == "downgrade" and new.level >= current.level:
        return "Invalid downgrade path"
    return None


def active_subscription(db: Session, employer_id: int) -> Optional[Subscription]:
    return (
        db.query(Subscription)
        .filter(Subscription.employer_id == employer_id, Subscription.status == SubscriptionStatus.ACTIVE.value)
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        .first()
    )


def latest_subscription(db: Session, employer_id: int) -> Optional[Subscription]:
    return (
        db.query(Subscription)
        .filter(Subscription.employer_id == employer_id)
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        .first()
    )


def usage_stats(db: Session, employer_id: int, since: Optional[datetime]) -> UsageStats:
    jobs = db.query(Job).filter(Job.employer_id == employer_id)
    if since is not None:
        jobs = jobs.filter(Job.created_at >= since)

    applications = (
        db.query(func.count(Application.id))
        .join(Job, Job.id == Application.job_id)
        .filter(Job.employer_id == employer_id)
    )
    if since is not None:
        applications = applications.filter(Application.applied_at >= since)

    return UsageStats(
        total_jobs_posted=jobs.count(),
        active_jobs_posted=jobs.filter(Job.status == JobStatus.PUBLISHED.value).count(),
        featured_jobs_used=jobs.filter(Job.featured.is_(True)).count(),
        urgent_jobs_used=jobs.filter(Job.urgent.is_(True)).count(),
        applications_received=int(applications.scalar() or 0),
    )
