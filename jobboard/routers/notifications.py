# notifications.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.models.enums import NotificationChannel
from jobboard.models.user import User
from jobboard.routers.dependencies import require_admin_or_service
from jobboard.schemas.notifications import NotificationRequest, NotificationResponse
from jobboard.services.audit_service import record_audit
from jobboard.services.notification_service import deliver


router = APIRouter(prefix="/notifications", tags=["notifications"])

logger = logging.getLogger(__name__)

_CHANNELS = {channel.value for channel in NotificationChannel}


def _truncate(message: str, limit: int = 100) -> str:
    return message if len(message) <= limit else message[:limit] + "..."


@router.post("/send", response_model=NotificationResponse)
def send_notification(
    payload: NotificationRequest,
    request: Request,
    db: Session = Depends(get_db),
    caller: Optional[User] = Depends(require_admin_or_service),
) -> NotificationResponse:
    channel = payload.type.strip().upper()
    if channel not in _CHANNELS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid notification type. Must be 'EMAIL' or 'SMS'",
        )

    record_audit(
        db,
        user_id=caller.id if caller else None,
        action="SEND_NOTIFICATION",
        entity_type="Notification",
        changes={
            "type": channel,
            "recipient": payload.recipient,
            "subject": payload.subject,
            "message": _truncate(payload.message),
            "template": payload.template,
        },
        request=request,
    )
    db.commit()

    result = deliver(channel, payload.recipient, payload.message, subject=payload.subject, template=payload.template)
    return NotificationResponse(success=True, message="Notification sent successfully", result=result)
