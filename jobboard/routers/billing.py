# billing.py
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.models.billing import Payment, Subscription
from jobboard.models.enums import PaymentStatus, SubscriptionStatus
from jobboard.models.profiles import Employer
from jobboard.routers.dependencies import get_current_employer
from jobboard.schemas.billing import (
    PaymentRead,
    PlanChangeBilling,
    SubscriptionCancelled,
    SubscriptionCreate,
    SubscriptionCreated,
    SubscriptionManageRequest,
    SubscriptionManageResponse,
    SubscriptionOverview,
    SubscriptionRead,
)
from jobboard.services.audit_service import record_audit
from jobboard.services.billing_service import (
    active_subscription,
    add_one_month,
    compute_proration,
    latest_subscription,
    plan_change_error,
    plan_for_code,
    resolve_plan,
    usage_stats,
)
from jobboard.utils.clock import as_utc, utc_now


router = APIRouter(prefix="/employer", tags=["billing"])

logger = logging.getLogger(__name__)


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _not_found(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


@router.get("/subscription", response_model=Optional[SubscriptionRead])
def get_subscription(
    db: Session = Depends(get_db), employer: Employer = Depends(get_current_employer)
) -> Optional[SubscriptionRead]:
    subscription = active_subscription(db, employer.id)
    return SubscriptionRead.model_validate(subscription) if subscription else None


@router.post("/subscription", response_model=SubscriptionCreated, status_code=status.HTTP_201_CREATED)
def create_subscription(
    payload: SubscriptionCreate,
    request: Request,
    db: Session = Depends(get_db),
    employer: Employer = Depends(get_current_employer),
) -> SubscriptionCreated:
    plan = resolve_plan(payload.plan_id)
    if plan is None:
        raise _bad_request("Invalid plan selected")
    if active_subscription(db, employer.id) is not None:
        raise _bad_request("You already have an active subscription")

    now = utc_now()
    subscription = Subscription(
        employer_id=employer.id,
        plan=plan.code,
        status=SubscriptionStatus.ACTIVE.value,
        starts_at=now,
        ends_at=add_one_month(now),
        external_reference=f"sub_{uuid.uuid4().hex[:16]}",
    )
    db.add(subscription)
    db.flush()
    db.add(
        Payment(
            employer_id=employer.id,
            subscription_id=subscription.id,
            amount=plan.price,
            currency=plan.currency,
            status=PaymentStatus.SUCCEEDED.value,
            description=f"{plan.name} plan subscription",
        )
    )
    record_audit(db, user_id=employer.user_id, action="SUBSCRIPTION_CREATED", entity_type="Subscription",
                 entity_id=subscription.id, changes={"plan": plan.code, "amount": plan.price}, request=request)
    db.commit()
    logger.info("employer_id=%s subscribed plan=%s", employer.id, plan.code)
    return SubscriptionCreated(message="Subscription created successfully", subscription_id=subscription.id)


@router.delete("/subscription", response_model=SubscriptionCancelled)
def cancel_subscription_at_period_end(
    request: Request,
    db: Session = Depends(get_db),
    employer: Employer = Depends(get_current_employer),
) -> SubscriptionCancelled:
    subscription = active_subscription(db, employer.id)
    if subscription is None:
        raise _not_found("No active subscription found")
    subscription.cancelled_at = utc_now()
    record_audit(db, user_id=employer.user_id, action="SUBSCRIPTION_CANCEL_REQUESTED", entity_type="Subscription",
                 entity_id=subscription.id, changes={"plan": subscription.plan}, request=request)
    db.commit()
    return SubscriptionCancelled(
        message="Subscription will be cancelled at the end of the billing period",
        access_until=subscription.ends_at,
    )


@router.post("/subscription/manage", response_model=SubscriptionManageResponse, response_model_exclude_none=True)
def manage_subscription(
    payload: SubscriptionManageRequest,
    request: Request,
    db: Session = Depends(get_db),
    employer: Employer = Depends(get_current_employer),
) -> SubscriptionManageResponse:
    now = utc_now()

    if payload.action in ("upgrade", "downgrade"):
        if not payload.plan_id:
            raise _bad_request("Plan ID is required for upgrade/downgrade")
        subscription = active_subscription(db, employer.id)
        if subscription is None:
            raise _not_found("No active subscription found")
        new_plan = resolve_plan(payload.plan_id)
        if new_plan is None:
            raise _bad_request("Invalid plan ID")
        current_plan = plan_for_code(subscription.plan)
        error = plan_change_error(current_plan, new_plan, payload.action)
        if error:
            raise _bad_request(error)

        proration = compute_proration(current_plan, new_plan, subscription.ends_at, now)
        subscription.plan = new_plan.code
        if proration.additional_amount > 0:
            db.add(
                Payment(
                    employer_id=employer.id,
                    subscription_id=subscription.id,
                    amount=proration.additional_amount,
                    currency=new_plan.currency,
                    status=PaymentStatus.SUCCEEDED.value,
                    description=f"Plan change to {new_plan.name}",
                )
            )
        record_audit(
            db,
            user_id=employer.user_id,
            action=f"SUBSCRIPTION_{payload.action.upper()}",
            entity_type="Subscription",
            entity_id=subscription.id,
            changes={
                "fromPlan": current_plan.code,
                "toPlan": new_plan.code,
                "proratedRefund": proration.prorated_refund,
                "additionalAmount": proration.additional_amount,
            },
            request=request,
        )
        db.commit()
        db.refresh(subscription)
        return SubscriptionManageResponse(
            message=f"Subscription {payload.action}d successfully",
            subscription=SubscriptionRead.model_validate(subscription),
            billing=PlanChangeBilling(
                additional_amount=proration.additional_amount,
                prorated_refund=proration.prorated_refund,
            ),
        )

    if payload.action == "cancel":
        subscription = latest_subscription(db, employer.id)
        if subscription is None or subscription.status == SubscriptionStatus.EXPIRED.value:
            raise _not_found("No active subscription found")
        if subscription.status == SubscriptionStatus.CANCELLED.value or subscription.cancelled_at is not None:
            raise _bad_request("Subscription is already cancelled")
        subscription.cancelled_at = now
        subscription.status = SubscriptionStatus.CANCELLED.value
        record_audit(db, user_id=employer.user_id, action="SUBSCRIPTION_CANCELLED", entity_type="Subscription",
                     entity_id=subscription.id, changes={"plan": subscription.plan}, request=request)
        db.commit()
        return SubscriptionManageResponse(
            message="Subscription cancelled successfully",
            access_until=subscription.ends_at,
        )

    # resume
    subscription = latest_subscription(db, employer.id)
    if subscription is None:
        raise _not_found("No subscription found")
    if subscription.status != SubscriptionStatus.CANCELLED.value and subscription.cancelled_at is None:
        raise _bad_request("Subscription is not cancelled")
    if as_utc(subscription.ends_at) < now:
        raise _bad_request("Subscription period has ended. Please purchase a new subscription.")
    subscription.cancelled_at = None
    subscription.status = SubscriptionStatus.ACTIVE.value
    record_audit(db, user_id=employer.user_id, action="SUBSCRIPTION_RESUMED", entity_type="Subscription",
                 entity_id=subscription.id, changes={"plan": subscription.plan}, request=request)
    db.commit()
    db.refresh(subscription)
    return SubscriptionManageResponse(
        message="Subscription resumed successfully",
        subscription=SubscriptionRead.model_validate(subscription),
    )


@router.get("/subscription/manage", response_model=SubscriptionOverview)
def subscription_overview(
    db: Session = Depends(get_db), employer: Employer = Depends(get_current_employer)
) -> SubscriptionOverview:
    history = (
        db.query(Subscription)
        .filter(Subscription.employer_id == employer.id)
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        .limit(10)
        .all()
    )
    current = active_subscription(db, employer.id)
    return SubscriptionOverview(
        subscriptions=[SubscriptionRead.model_validate(item) for item in history],
        usage_stats=usage_stats(db, employer.id, current.starts_at if current else None),
        current_plan=current.plan if current else None,
    )


@router.get("/payments", response_model=list[PaymentRead])
def list_payments(db: Session = Depends(get_db), employer: Employer = Depends(get_current_employer)) -> list[PaymentRead]:
    payments = (
        db.query(Payment)
        .filter(Payment.employer_id == employer.id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .all()
    )
    return [
        PaymentRead(
            id=payment.id,
            subscription_id=payment.subscription_id,
            amount=float(payment.amount),
            currency=payment.currency,
            status=payment.status,
            description=payment.description,
            created_at=payment.created_at,
        )
        for payment in payments
    ]
