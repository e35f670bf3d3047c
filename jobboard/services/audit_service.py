# audit_service.py
import logging
from typing import Any, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from jobboard.models.audit import AuditLog, ConsentLog


logger = logging.getLogger(__name__)


def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


def user_agent(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    value = request.headers.get("user-agent")
    return value[:512] if value else None


def record_audit(
    db: Session,
    *,
    user_id: Optional[int],
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Any = None,
    changes: Optional[dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> AuditLog:
    # Added to the caller's session; committed together with the change it describes.
    entry = AuditLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        changes=changes,
        ip_address=client_ip(request),
        user_agent=user_agent(request),
    )
    db.add(entry)
    logger.debug("audit action=%s entity=%s:%s user_id=%s", action, entity_type, entity_id, user_id)
    return entry


def record_consent(
    db: Session,
    *,
    user_id: int,
    consent_type: str,
    action: str,
    request: Optional[Request] = None,
) -> ConsentLog:
    entry = ConsentLog(
        user_id=user_id,
        consent_type=consent_type,
        action=action,
        ip_address=client_ip(request),
        user_agent=user_agent(request),
    )
    db.add(entry)
    return entry
