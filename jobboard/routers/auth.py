# auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.models.enums import UserRole
from jobboard.models.profiles import Employer, JobSeeker
from jobboard.models.user import User
from jobboard.routers.dependencies import is_admin
from jobboard.schemas.user import EmployerRegister, JobSeekerRegister, Token, UserLogin, UserRead
from jobboard.services.audit_service import record_audit
from jobboard.utils.clock import utc_now
from jobboard.utils.jwt_handler import create_access_token
from jobboard.utils.password_hash import hash_password, verify_password


router = APIRouter()

logger = logging.getLogger(__name__)


def _ensure_email_free(db: Session, email: str) -> None:
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")


def _user_out(user: User) -> UserRead:
    return UserRead.model_validate(user).model_copy(update={"is_admin": is_admin(user)})


@router.post("/register/job-seeker", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register_job_seeker(payload: JobSeekerRegister, request: Request, db: Session = Depends(get_db)) -> UserRead:
    _ensure_email_free(db, payload.email)
    user = User(
        email=payload.email,
        password=hash_password(payload.password),
        name=f"{payload.first_name} {payload.last_name}".strip(),
        role=UserRole.JOB_SEEKER.value,
    )
    user.job_seeker = JobSeeker(
        first_name=payload.first_name,
        last_name=payload.last_name,
        location=payload.location,
        phone=payload.phone,
    )
    db.add(user)
    db.flush()
    record_audit(db, user_id=user.id, action="USER_REGISTERED", entity_type="User", entity_id=user.id,
                 changes={"role": user.role}, request=request)
    db.commit()
    db.refresh(user)
    logger.info("registered job seeker user_id=%s", user.id)
    return _user_out(user)


@router.post("/register/employer", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register_employer(payload: EmployerRegister, request: Request, db: Session = Depends(get_db)) -> UserRead:
    _ensure_email_free(db, payload.email)
    user = User(
        email=payload.email,
        password=hash_password(payload.password),
        name=payload.contact_name or payload.company_name,
        role=UserRole.EMPLOYER.value,
    )
    user.employer = Employer(
        company_name=payload.company_name,
        industry=payload.industry,
        description=payload.description,
        website=payload.website,
        city=payload.city,
        contact_name=payload.contact_name,
        contact_email=payload.contact_email or payload.email,
        contact_phone=payload.contact_phone,
    )
    db.add(user)
    db.flush()
    record_audit(db, user_id=user.id, action="USER_REGISTERED", entity_type="User", entity_id=user.id,
                 changes={"role": user.role}, request=request)
    db.commit()
    db.refresh(user)
    logger.info("registered employer user_id=%s", user.id)
    return _user_out(user)


@router.post("/login", response_model=Token)
def login_user(user_in: UserLogin, db: Session = Depends(get_db)) -> Token:
    user = db.query(User).filter(User.email == user_in.email).first()
    if not user or user.deleted_at is not None or not verify_password(user_in.password, user.password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    user.last_login_at = utc_now()
    db.commit()
    token = create_access_token(user_id=user.id, role=user.role)
    return Token(access_token=token, token_type="bearer")
