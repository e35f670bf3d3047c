from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict


class AdminStatKV(BaseModel):
    key: str
    label: str
    count: int


class SignupPoint(BaseModel):
    date: date
    count: int


class AdminStatsResponse(BaseModel):
    generated_at: datetime
    users_total: int
    users_by_role: list[AdminStatKV]
    jobs_by_status: list[AdminStatKV]
    applications_total: int
    active_subscriptions: int
    revenue_total: float
    signups_series: list[SignupPoint]


class AdminUserRead(BaseModel):
    id: int
    email: str
    name: str | None = None
    role: str
    created_at: datetime
    last_login_at: datetime | None = None
    deleted_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class AdminUserPage(BaseModel):
    users: list[AdminUserRead]
    total: int
    page: int
    limit: int
    total_pages: int


class AdminUserDetail(AdminUserRead):
    company_name: str | None = None
    jobs_posted: int = 0
    applications_submitted: int = 0
    saved_searches: int = 0


class AdminUserAction(BaseModel):
    action: str


class AdminUserDeleted(BaseModel):
    message: str


class PaymentContact(BaseModel):
    id: int
    email: str
    name: str | None = None


class PaymentEmployer(BaseModel):
    id: int
    company_name: str
    contact: PaymentContact


class AdminPaymentRead(BaseModel):
    id: int
    amount: float
    currency: str
    status: str
    description: str | None = None
    subscription_id: int | None = None
    created_at: datetime
    employer: PaymentEmployer


class AdminPaymentPage(BaseModel):
    payments: list[AdminPaymentRead]
    total: int
    page: int
    limit: int
    total_pages: int
