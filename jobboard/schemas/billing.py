from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from jobboard.schemas.base import CamelModel


class SubscriptionRead(CamelModel):
    id: int
    plan: str
    status: str
    starts_at: datetime
    ends_at: datetime
    cancelled_at: datetime | None = None
    external_reference: str | None = None


class SubscriptionCreate(CamelModel):
    plan_id: str = Field(min_length=1)


class SubscriptionCreated(CamelModel):
    message: str
    subscription_id: int


class SubscriptionCancelled(CamelModel):
    message: str
    access_until: datetime
    immediate_refund: bool = False


class SubscriptionManageRequest(CamelModel):
    action: Literal["upgrade", "downgrade", "cancel", "resume"]
    plan_id: str | None = None


class PlanChangeBilling(CamelModel):
    additional_amount: float
    prorated_refund: float
    effective_immediately: bool = True


class SubscriptionManageResponse(CamelModel):
    message: str
    subscription: SubscriptionRead | None = None
    billing: PlanChangeBilling | None = None
    access_until: datetime | None = None


class UsageStats(CamelModel):
    total_jobs_posted: int = 0
    active_jobs_posted: int = 0
    featured_jobs_used: int = 0
    urgent_jobs_used: int = 0
    applications_received: int = 0


class SubscriptionOverview(CamelModel):
    subscriptions: list[SubscriptionRead]
    usage_stats: UsageStats
    current_plan: str | None = None


class PaymentRead(CamelModel):
    id: int
    subscription_id: int | None = None
    amount: float
    currency: str
    status: str
    description: str | None = None
    created_at: datetime
