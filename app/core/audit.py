"""
Audit trail for invitation, deliverable and access-control events.
Writing an entry never fails the request that triggered it.
"""
from typing import Optional, Tuple
import json
import logging
import uuid

from fastapi import Request
from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog, AuditEventType

logger = logging.getLogger(__name__)


def client_context(request: Optional[Request]) -> Tuple[Optional[str], Optional[str]]:
    """(ip_address, user_agent) of the caller."""
    if request is None:
        return None, None
    ip_address = request.client.host if request.client else None
    return ip_address, request.headers.get("user-agent")


def log_security_event(
    db: Session,
    event_type: AuditEventType,
    org_id: uuid.UUID,
    user_id: Optional[uuid.UUID] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    details: Optional[dict] = None
) -> Optional[AuditLog]:
    """
    Persist one audit entry and commit it.

    details is stored as JSON text; ids and datetimes inside it are
    stringified. Returns None when the entry could not be written.
    """
    entry = AuditLog(
        org_id=org_id,
        user_id=user_id,
        event_type=event_type.value,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        ip_address=ip_address,
        user_agent=user_agent,
        details=json.dumps(details, default=str) if details else None,
    )
    try:
        db.add(entry)
        db.commit()
    except Exception as e:
        logger.error(f"[AUDIT] Could not record {event_type.value} for org {org_id}: {str(e)}")
        db.rollback()
        return None
    return entry


def audit_request(
    db: Session,
    request: Optional[Request],
    user,
    event_type: AuditEventType,
    resource_type: str,
    resource_id=None,
    details: Optional[dict] = None,
    org_id: Optional[uuid.UUID] = None,
) -> Optional[AuditLog]:
    """Audit entry for an API call made by `user` (an authenticated user or a freshly redeemed one)."""
    ip_address, user_agent = client_context(request)
    return log_security_event(
        db=db,
        event_type=event_type,
        org_id=org_id or user.selected_org_id,
        user_id=user.id,
        resource_type=resource_type,
        resource_id=resource_id,
        ip_address=ip_address,
        user_agent=user_agent,
        details=details,
    )
