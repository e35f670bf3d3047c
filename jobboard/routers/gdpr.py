# gdpr.py
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.models.user import User
from jobboard.routers.dependencies import get_current_user
from jobboard.schemas.gdpr import (
    AccountDeletionResponse,
    ConsentRequest,
    ConsentResponse,
    DataExportRequest,
    DataExportResponse,
)
from jobboard.services.audit_service import record_audit, record_consent
from jobboard.services.gdpr_service import (
    CONSENT_FLAGS,
    anonymise_user,
    collect_user_data,
    data_summary,
    export_to_csv,
)
from jobboard.utils.clock import utc_now


router = APIRouter(prefix="/gdpr", tags=["gdpr"])

logger = logging.getLogger(__name__)


@router.post("/consent", response_model=ConsentResponse)
def update_consent(
    payload: ConsentRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ConsentResponse:
    granted = payload.action == "GRANTED"
    flag = CONSENT_FLAGS.get(payload.type)
    if flag:
        setattr(current_user, flag, granted)

    record_consent(db, user_id=current_user.id, consent_type=payload.type, action=payload.action, request=request)
    record_audit(db, user_id=current_user.id, action=f"CONSENT_{payload.action}", entity_type="Consent",
                 entity_id=payload.type, changes={"consentType": payload.type, "granted": granted}, request=request)
    db.commit()
    return ConsentResponse(
        message=f"Consent {payload.action.lower()} successfully",
        consent_type=payload.type,
        action=payload.action,
        timestamp=utc_now(),
    )


@router.post("/data-export", response_model=DataExportResponse)
def export_my_data(
    request: Request,
    payload: DataExportRequest | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    export_format = payload.format if payload else "json"
    data = collect_user_data(db, current_user)
    exported_at = utc_now()

    record_audit(db, user_id=current_user.id, action="DATA_EXPORT", entity_type="User",
                 entity_id=current_user.id, changes={"format": export_format}, request=request)
    db.commit()
    logger.info("data export user_id=%s format=%s", current_user.id, export_format)

    if export_format == "csv":
        filename = f"data-export-{current_user.id}-{exported_at.strftime('%Y%m%d%H%M%S')}.csv"
        return Response(
            content=export_to_csv(data),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return DataExportResponse(
        exported_at=exported_at,
        user_id=current_user.id,
        user_email=current_user.email,
        data_summary=data_summary(data),
        data=data,
    )


@router.post("/account-deletion", response_model=AccountDeletionResponse)
def delete_my_account(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AccountDeletionResponse:
    user_id = current_user.id
    record_audit(db, user_id=user_id, action="ACCOUNT_DELETED", entity_type="User", entity_id=user_id,
                 changes={"role": current_user.role}, request=request)
    deleted_at = anonymise_user(db, current_user)
    db.commit()
    logger.info("account deleted user_id=%s", user_id)
    return AccountDeletionResponse(message="Account deleted successfully", deleted_at=deleted_at)
