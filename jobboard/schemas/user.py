# user.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _validate_email_like(v: str) -> str:
    value = (v or "").strip().lower()
    if "@" not in value:
        raise ValueError("email must contain '@'")
    left, right = value.split("@", 1)
    if not left or not right:
        raise ValueError("email must have text before and after '@'")
    return value


class RegisterBase(BaseModel):
    email: str
    password: str = Field(min_length=8)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _validate_email_like(v)


class JobSeekerRegister(RegisterBase):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    location: str = ""
    phone: Optional[str] = None


class EmployerRegister(RegisterBase):
    company_name: str = Field(min_length=1)
    industry: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    city: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None


class UserLogin(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _validate_email_like(v)


class UserRead(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    role: str
    is_admin: bool = False
    email_verified: bool = False
    created_at: datetime
    last_login_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    access_token: str
    token_type: str


class TokenData(BaseModel):
    user_id: int
    role: Optional[str] = None
