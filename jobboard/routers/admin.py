from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from jobboard.database import get_db
from jobboard.models.applications import Application
from jobboard.models.billing import Payment, Subscription
from jobboard.models.enums import JobStatus, PaymentStatus, SubscriptionStatus, UserRole
from jobboard.models.jobs import Job
from jobboard.models.profiles import Employer
from jobboard.models.searches import SavedSearch
from jobboard.models.user import User
from jobboard.routers.dependencies import require_admin
from jobboard.schemas.admin import (
    AdminPaymentPage,
    AdminPaymentRead,
    AdminStatKV,
    AdminStatsResponse,
    AdminUserAction,
    AdminUserDeleted,
    AdminUserDetail,
    AdminUserPage,
    AdminUserRead,
    PaymentContact,
    PaymentEmployer,
    SignupPoint,
)
from jobboard.services.audit_service import record_audit
from jobboard.services.gdpr_service import purge_user
from jobboard.utils.clock import utc_now


router = APIRouter(prefix="/admin", tags=["admin"])

logger = logging.getLogger(__name__)

_ROLE_LABELS = {
    UserRole.JOB_SEEKER.value: "Job seekers",
    UserRole.EMPLOYER.value: "Employers",
    UserRole.ADMIN.value: "Admins",
}


def _date_utc(dt: datetime) -> date:
    if dt.tzinfo is None:
        return dt.date()
    return dt.astimezone(timezone.utc).date()


def _build_signups_series(db: Session, *, days: int = 14) -> list[SignupPoint]:
    today = _date_utc(utc_now())
    start_day = today - timedelta(days=days - 1)
    start_dt = datetime.combine(start_day, datetime.min.time(), tzinfo=timezone.utc)

    day_expr = func.date(User.created_at)
    rows = (
        db.query(day_expr.label("d"), func.count(User.id).label("c"))
        .filter(User.created_at >= start_dt)
        .group_by(day_expr)
        .all()
    )

    by_day: dict[date, int] = {}
    for d_raw, count in rows:
        # func.date may return date (mysql) or string (sqlite)
        d = d_raw if isinstance(d_raw, date) else date.fromisoformat(str(d_raw))
        by_day[d] = int(count or 0)

    return [
        SignupPoint(date=start_day + timedelta(days=i), count=by_day.get(start_day + timedelta(days=i), 0))
        for i in range(days)
    ]


@router.get("/stats", response_model=AdminStatsResponse)
def get_admin_stats(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> AdminStatsResponse:
    logger.info("admin.stats user_id=%s", admin.id)
    active_users = db.query(User).filter(User.deleted_at.is_(None))
    users_total = active_users.count()

    role_rows = (
        db.query(User.role, func.count(User.id))
        .filter(User.deleted_at.is_(None))
        .group_by(User.role)
        .all()
    )
    role_counts = {role: int(count) for role, count in role_rows}
    users_by_role = [
        AdminStatKV(key=role, label=label, count=role_counts.get(role, 0)) for role, label in _ROLE_LABELS.items()
    ]

    status_rows = db.query(Job.status, func.count(Job.id)).group_by(Job.status).all()
    status_counts = {job_status: int(count) for job_status, count in status_rows}
    jobs_by_status = [
        AdminStatKV(key=s.value, label=s.value.title(), count=status_counts.get(s.value, 0)) for s in JobStatus
    ]

    applications_total = int(db.query(func.count(Application.id)).scalar() or 0)
    active_subscriptions = int(
        db.query(func.count(Subscription.id))
        .filter(Subscription.status == SubscriptionStatus.ACTIVE.value)
        .scalar()
        or 0
    )
    revenue = (
        db.query(func.coalesce(func.sum(Payment.amount), 0))
        .filter(Payment.status == PaymentStatus.SUCCEEDED.value)
        .scalar()
    )

    return AdminStatsResponse(
        generated_at=utc_now(),
        users_total=users_total,
        users_by_role=users_by_role,
        jobs_by_status=jobs_by_status,
        applications_total=applications_total,
        active_subscriptions=active_subscriptions,
        revenue_total=float(revenue or 0),
        signups_series=_build_signups_series(db, days=14),
    )


@router.get("/users", response_model=AdminUserPage)
def list_users(
    role: Optional[UserRole] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    include_deleted: bool = False,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> AdminUserPage:
    query = db.query(User)
    if role is not None:
        query = query.filter(User.role == role.value)
    if not include_deleted:
        query = query.filter(User.deleted_at.is_(None))
    if search and search.strip():
        term = f"%{search.strip()}%"
        query = query.filter(or_(User.email.ilike(term), User.name.ilike(term)))
    total = query.count()
    users = query.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return AdminUserPage(
        users=[AdminUserRead.model_validate(user) for user in users],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit),
    )


def _user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/users/{user_id}", response_model=AdminUserDetail)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> AdminUserDetail:
    user = _user_or_404(db, user_id)
    detail = AdminUserDetail.model_validate(user)
    detail.saved_searches = db.query(SavedSearch).filter(SavedSearch.user_id == user.id).count()
    if user.employer is not None:
        detail.company_name = user.employer.company_name
        detail.jobs_posted = db.query(Job).filter(Job.employer_id == user.employer.id).count()
    if user.job_seeker is not None:
        detail.applications_submitted = (
            db.query(Application).filter(Application.job_seeker_id == user.job_seeker.id).count()
        )
    return detail


@router.patch("/users/{user_id}", response_model=AdminUserRead | AdminUserDeleted)
def manage_user(
    user_id: int,
    payload: AdminUserAction,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> AdminUserRead | AdminUserDeleted:
    if payload.action not in ("soft-delete", "delete"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")
    user = _user_or_404(db, user_id)
    if user.id == admin.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Admins cannot delete their own account")

    if payload.action == "delete":
        email = user.email
        purge_user(db, user)
        record_audit(db, user_id=admin.id, action="ADMIN_USER_DELETED", entity_type="User", entity_id=user_id,
                     changes={"email": email}, request=request)
        db.commit()
        logger.info("admin_id=%s deleted user_id=%s", admin.id, user_id)
        return AdminUserDeleted(message="User deleted successfully")

    if user.deleted_at is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User is already deleted")
    user.deleted_at = utc_now()
    record_audit(db, user_id=admin.id, action="ADMIN_USER_SOFT_DELETED", entity_type="User", entity_id=user.id,
                 request=request)
    db.commit()
    db.refresh(user)
    logger.info("admin_id=%s soft-deleted user_id=%s", admin.id, user.id)
    return AdminUserRead.model_validate(user)


def _payment_read(payment: Payment) -> AdminPaymentRead:
    employer = payment.employer
    return AdminPaymentRead(
        id=payment.id,
        amount=float(payment.amount),
        currency=payment.currency,
        status=payment.status,
        description=payment.description,
        subscription_id=payment.subscription_id,
        created_at=payment.created_at,
        employer=PaymentEmployer(
            id=employer.id,
            company_name=employer.company_name,
            contact=PaymentContact(id=employer.user.id, email=employer.user.email, name=employer.user.name),
        ),
    )


@router.get("/payments", response_model=AdminPaymentPage)
def list_payments(
    payment_status: Optional[PaymentStatus] = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> AdminPaymentPage:
    query = db.query(Payment)
    if payment_status is not None:
        query = query.filter(Payment.status == payment_status.value)
    total = query.count()
    payments = (
        query.options(joinedload(Payment.employer).joinedload(Employer.user))
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return AdminPaymentPage(
        payments=[_payment_read(payment) for payment in payments],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit),
    )


# Data requests are served by the self-service /api/gdpr endpoints.
@router.get("/gdpr-requests", status_code=status.HTTP_410_GONE)
def list_gdpr_requests(_admin: User = Depends(require_admin)) -> None:
    raise HTTPException(status_code=status.HTTP_410_GONE, detail="GDPR request management deprecated")


@router.patch("/gdpr-requests/{request_id}", status_code=status.HTTP_410_GONE)
def update_gdpr_request(request_id: int, _admin: User = Depends(require_admin)) -> None:
    raise HTTPException(status_code=status.HTTP_410_GONE, detail="GDPR request management deprecated")
