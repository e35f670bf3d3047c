# dependencies.py
import hmac
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from jobboard.config import is_admin_email, settings
from jobboard.database import get_db
from jobboard.models.enums import UserRole
from jobboard.models.profiles import Employer, JobSeeker
from jobboard.models.user import User
from jobboard.schemas.user import TokenData
from jobboard.services.notification_dispatcher import HttpNotificationDispatcher, NotificationDispatcher
from jobboard.services.recommendation_service import CompletionClient, LLMRecommender
from jobboard.utils.jwt_handler import decode_access_token


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def _resolve_user(db: Session, token: str) -> User:
    payload = decode_access_token(token)
    try:
        token_data = TokenData(user_id=int(payload["sub"]), role=payload.get("role"))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject") from exc
    user = db.query(User).filter(User.id == token_data.user_id).first()
    if not user or user.deleted_at is not None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def get_current_user(db: Session = Depends(get_db), token: str = Depends(oauth2_scheme)) -> User:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return _resolve_user(db, token)


def is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN.value or is_admin_email(user.email)


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not is_admin(current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


def require_job_seeker(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.JOB_SEEKER.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Job seeker access required")
    return current_user


def require_employer(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.EMPLOYER.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Employer access required")
    return current_user


def get_current_job_seeker(
    db: Session = Depends(get_db), current_user: User = Depends(require_job_seeker)
) -> JobSeeker:
    seeker = db.query(JobSeeker).filter(JobSeeker.user_id == current_user.id).first()
    if seeker is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job seeker profile not found")
    return seeker


def get_current_employer(
    db: Session = Depends(get_db), current_user: User = Depends(require_employer)
) -> Employer:
    employer = db.query(Employer).filter(Employer.user_id == current_user.id).first()
    if employer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employer profile not found")
    return employer


def has_service_token(x_service_token: Optional[str]) -> bool:
    expected = settings.notification_service_token
    return bool(x_service_token and expected) and hmac.compare_digest(x_service_token, expected)


def require_admin_or_service(
    db: Session = Depends(get_db),
    token: Optional[str] = Depends(optional_oauth2_scheme),
    x_service_token: Optional[str] = Header(default=None),
) -> Optional[User]:
    """Admin user, or None when the caller authenticated with the service token."""
    if has_service_token(x_service_token):
        return None
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    user = _resolve_user(db, token)
    if not is_admin(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


def get_notification_dispatcher() -> NotificationDispatcher:
    return HttpNotificationDispatcher.from_settings(settings)


def get_llm_client() -> CompletionClient:
    return LLMRecommender(settings)
