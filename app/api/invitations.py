from fastapi import APIRouter, Depends, HTTPException, Request, Query, status
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional
from uuid import UUID
import logging
from app.db.session import get_db
from app.models.user import User
from app.models.organization import Organization
from app.models.invitation import Invitation, InvitationStatus
from app.models.audit_log import AuditEventType
from app.schemas.invitation import (
    InvitationCreate,
    InvitationResendRequest,
    InvitationResponse,
    InvitationWithLink,
    SpaceRolesResponse,
    InviteValidateRequest,
    InviteValidateResponse,
    InviteAcceptRequest,
    InviteAcceptResponse,
)
from app.core.audit import audit_request
from app.core.config import settings
from app.core.permissions import ROLES_BY_SPACE
from app.core.rate_limit import rate_limit
from app.api.deps import require_permission
from app.api.auth import create_membership_token
from app.services import invitations as invitation_service
from app.services.invitations import InvitationError
from app.services.invitation_email import send_invitation_email

logger = logging.getLogger(__name__)

router = APIRouter()


def _http_error(e: InvitationError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.detail)


def _to_response(invitation: Invitation, now: Optional[datetime] = None) -> InvitationResponse:
    now = now or datetime.utcnow()
    return InvitationResponse(
        id=invitation.id,
        org_id=invitation.org_id,
        email=invitation.email,
        name=invitation.name,
        role=invitation.role,
        space=invitation.space,
        status=invitation.status,
        display_status=invitation.display_status(now),
        expires_at=invitation.expires_at,
        used_at=invitation.used_at,
        account_id=invitation.account_id,
        vendor_id=invitation.vendor_id,
        vendor_contact_id=invitation.vendor_contact_id,
        created_by_id=invitation.created_by_id,
        created_at=invitation.created_at,
        can_revoke=invitation_service.can_revoke(invitation),
        can_resend=invitation_service.can_resend(invitation),
    )


def _with_link(invitation: Invitation, token: str, email_sent: bool) -> InvitationWithLink:
    return InvitationWithLink(
        **_to_response(invitation).model_dump(),
        invite_link=invitation_service.build_invite_link(token),
        email_sent=email_sent,
    )


def _organization_name(db: Session, org_id: UUID) -> str:
    org = db.query(Organization).filter(Organization.id == org_id).first()
    return org.name if org else settings.ORGANIZATION_NAME


def _dispatch_email(db: Session, invitation: Invitation, token: str) -> bool:
    """Email failures never fail the request; the caller reports email_sent."""
    try:
        sent = send_invitation_email(
            to_email=invitation.email,
            invite_link=invitation_service.build_invite_link(token),
            role=invitation.role,
            space=invitation.space,
            expires_at=invitation.expires_at,
            organization_name=_organization_name(db, invitation.org_id),
        )
    except Exception as e:
        logger.error(f"[INVITATIONS] Email for invitation {invitation.id} failed: {str(e)}")
        return False
    if not sent:
        logger.warning(f"[INVITATIONS] Email for invitation {invitation.id} was not sent")
    return sent


@router.get("", response_model=List[InvitationResponse])
def list_invitations(
    status_filter: Optional[InvitationStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("invitation", "view"))
):
    """Invitations of the selected org, newest first. `status=expired` matches derived expiry."""
    now = datetime.utcnow()
    invitations = invitation_service.list_invitations(
        db,
        current_user.selected_org_id,
        status=status_filter.value if status_filter else None,
        now=now,
    )
    return [_to_response(i, now) for i in invitations]


@router.get("/roles", response_model=SpaceRolesResponse)
def get_roles_by_space(
    current_user: User = Depends(require_permission("invitation", "view"))
):
    """Roles that can be offered for each space."""
    return SpaceRolesResponse(roles_by_space={space: list(roles) for space, roles in ROLES_BY_SPACE.items()})


@router.post("", response_model=InvitationWithLink, status_code=status.HTTP_201_CREATED)
@rate_limit(max_requests=30, window_seconds=3600)
def create_invitation(
    request: Request,
    invitation_data: InvitationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("invitation", "create"))
):
    """
    Issue an invitation. The response carries the magic link; it is the only
    time the raw token is returned.
    """
    try:
        invitation, token = invitation_service.issue_invitation(
            db,
            org_id=current_user.selected_org_id,
            email=invitation_data.email,
            name=invitation_data.name,
            role=invitation_data.role.value,
            space=invitation_data.space.value,
            expires_in_minutes=invitation_data.expires_in_minutes,
            account_id=invitation_data.account_id,
            vendor_id=invitation_data.vendor_id,
            vendor_contact_id=invitation_data.vendor_contact_id,
            created_by_id=current_user.id,
        )
    except InvitationError as e:
        raise _http_error(e)

    email_sent = _dispatch_email(db, invitation, token) if invitation_data.send_email else False

    audit_request(
        db, request, current_user, AuditEventType.INVITATION_CREATED, "invitation", invitation.id,
        details={"email": invitation.email, "role": invitation.role, "space": invitation.space, "email_sent": email_sent},
    )
    return _with_link(invitation, token, email_sent)


@router.post("/validate", response_model=InviteValidateResponse)
@rate_limit(max_requests=20, window_seconds=300)
def validate_invitation(
    request: Request,
    validate_request: InviteValidateRequest,
    db: Session = Depends(get_db)
):
    """Public: check a magic-link token before showing the set-password form."""
    try:
        invitation = invitation_service.check_redeemable(
            invitation_service.find_by_token(db, validate_request.token)
        )
    except InvitationError as e:
        raise _http_error(e)
    return InviteValidateResponse(
        valid=True,
        status=invitation.status,
        email=invitation.email,
        name=invitation.name,
        role=invitation.role,
        space=invitation.space,
        expires_at=invitation.expires_at,
    )


@router.post("/accept", response_model=InviteAcceptResponse)
@rate_limit(max_requests=10, window_seconds=300)
def accept_invitation(
    request: Request,
    accept_request: InviteAcceptRequest,
    db: Session = Depends(get_db)
):
    """Public: redeem the token, set the password and sign in."""
    try:
        user, membership, invitation = invitation_service.redeem_invitation(
            db,
            token=accept_request.token,
            password=accept_request.password,
            name=accept_request.name,
        )
    except InvitationError as e:
        raise _http_error(e)

    audit_request(
        db, request, user, AuditEventType.INVITATION_ACCEPTED, "invitation", invitation.id,
        details={"role": membership.role, "space": membership.space},
        org_id=invitation.org_id,
    )
    return InviteAcceptResponse(
        access_token=create_membership_token(user, membership),
        token_type="bearer",
        user_id=user.id,
        org_id=membership.org_id,
        role=membership.role,
        space=membership.space,
        account_id=membership.account_id,
        vendor_contact_id=membership.vendor_contact_id,
        redirect_url=f"/{membership.space}",
    )


@router.get("/{invitation_id}", response_model=InvitationResponse)
def get_invitation(
    invitation_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("invitation", "view"))
):
    try:
        invitation = invitation_service.get_invitation(db, current_user.selected_org_id, invitation_id)
    except InvitationError as e:
        raise _http_error(e)
    return _to_response(invitation)


@router.post("/{invitation_id}/revoke", response_model=InvitationResponse)
def revoke_invitation(
    invitation_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("invitation", "update"))
):
    try:
        invitation = invitation_service.get_invitation(db, current_user.selected_org_id, invitation_id)
        was_revoked = invitation.status == InvitationStatus.REVOKED.value
        invitation = invitation_service.revoke_invitation(db, invitation)
    except InvitationError as e:
        raise _http_error(e)

    if not was_revoked:
        audit_request(db, request, current_user, AuditEventType.INVITATION_REVOKED, "invitation", invitation.id)
    return _to_response(invitation)


@router.post("/{invitation_id}/resend", response_model=InvitationWithLink)
def resend_invitation(
    invitation_id: UUID,
    request: Request,
    resend_request: Optional[InvitationResendRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("invitation", "update"))
):
    """New token and expiry for a pending invitation; the previous link stops working."""
    resend_request = resend_request or InvitationResendRequest()
    try:
        invitation = invitation_service.get_invitation(db, current_user.selected_org_id, invitation_id)
        invitation, token = invitation_service.resend_invitation(
            db, invitation, expires_in_minutes=resend_request.expires_in_minutes
        )
    except InvitationError as e:
        raise _http_error(e)

    email_sent = _dispatch_email(db, invitation, token) if resend_request.send_email else False

    audit_request(
        db, request, current_user, AuditEventType.INVITATION_RESENT, "invitation", invitation.id,
        details={"email_sent": email_sent},
    )
    return _with_link(invitation, token, email_sent)


@router.delete("/{invitation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invitation(
    invitation_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("invitation", "delete"))
):
    try:
        invitation = invitation_service.get_invitation(db, current_user.selected_org_id, invitation_id)
    except InvitationError as e:
        raise _http_error(e)

    details = {"email": invitation.email, "status": invitation.status}
    invitation_id_str = str(invitation.id)
    invitation_service.delete_invitation(db, invitation)

    audit_request(
        db, request, current_user, AuditEventType.INVITATION_DELETED, "invitation", invitation_id_str,
        details=details,
    )
    return None
