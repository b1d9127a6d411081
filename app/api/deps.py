from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
import logging
import uuid

from app.db.session import get_db
from app.models.user import User
from app.models.membership import Membership
from app.models.audit_log import AuditEventType
from app.core.audit import audit_request
from app.core.permissions import has_permission, INTERNAL_ROLES, RESOURCES, ACTIONS
from app.core.security import decode_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer()


def _parse_uuid(value: Optional[str]) -> Optional[uuid.UUID]:
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        return None


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Get current authenticated user and the membership selected in the token.
    This enforces org isolation: users can only access data from the org
    they hold a membership in. The membership is attached as
    `user.membership` and its org as `user.selected_org_id`.
    """
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = _parse_uuid(payload.get("user_id"))
    org_id = _parse_uuid(payload.get("org_id"))
    if user_id is None or org_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    membership = db.query(Membership).filter(
        Membership.user_id == user.id,
        Membership.org_id == org_id,
    ).first()
    if membership is None:
        logger.warning(f"[AUTH] User {user.id} does not have access to org {org_id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User does not have access to this organization",
        )

    user.membership = membership
    user.selected_org_id = membership.org_id
    return user


def require_internal(user: User = Depends(get_current_user)) -> User:
    """Dependency to ensure the caller is internal staff (admin, sales, delivery, finance)."""
    if user.membership.role not in INTERNAL_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Internal access required"
        )
    return user


def ensure_permission(db: Session, request: Optional[Request], user: User, resource: str, action: str):
    """Audit the denial and raise 403 unless the caller's role may perform `action` on `resource`."""
    role = user.membership.role
    if not has_permission(role, resource, action):
        audit_request(
            db, request, user, AuditEventType.UNAUTHORIZED_ACCESS, resource,
            details={"action": action, "role": role},
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Permission denied: role '{role}' cannot {action} {resource}",
        )


def require_permission(resource: str, action: str):
    """
    Dependency factory: 403 unless the caller's role may perform `action`
    on `resource`.

    Usage:
        current_user: User = Depends(require_permission("task", "create"))
    """
    if resource not in RESOURCES or action not in ACTIONS:
        raise ValueError(f"Unknown permission: {action} {resource}")

    def dependency(
        request: Request,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> User:
        ensure_permission(db, request, user, resource, action)
        return user

    return dependency
