"""
Invitation lifecycle: issue, resend, revoke and redeem magic-link invitations.

Stored statuses are pending, accepted and revoked. "expired" is derived from
expires_at at read time and never written.
"""
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.permissions import is_role_allowed_in_space, roles_for_space
from app.core.security import generate_invitation_token, hash_invitation_token, get_password_hash, verify_password
from app.models.account import Account
from app.models.contact import Contact, ContactType
from app.models.invitation import Invitation, InvitationStatus
from app.models.membership import Membership, Space, UserRole
from app.models.user import User
from app.models.vendor import Vendor

logger = logging.getLogger(__name__)

MIN_EXPIRES_MINUTES = 5
MAX_EXPIRES_MINUTES = 525600
MIN_PASSWORD_LENGTH = 8


class InvitationError(Exception):
    def __init__(self, detail: str, status_code: int = 400):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


def build_invite_link(token: str) -> str:
    frontend_url = getattr(settings, "FRONTEND_URL", "") or "http://localhost:5000"
    return f"{frontend_url.rstrip('/')}/auth/accept-invite?token={token}"


def _resolve_expiry(expires_in_minutes: Optional[int], now: datetime) -> datetime:
    minutes = expires_in_minutes or settings.INVITATION_DEFAULT_EXPIRES_MINUTES
    if minutes < MIN_EXPIRES_MINUTES or minutes > MAX_EXPIRES_MINUTES:
        raise InvitationError(
            f"expires_in_minutes must be between {MIN_EXPIRES_MINUTES} and {MAX_EXPIRES_MINUTES}",
            status_code=422,
        )
    return now + timedelta(minutes=minutes)


def can_revoke(invitation: Invitation) -> bool:
    return invitation.status == InvitationStatus.PENDING.value


def can_resend(invitation: Invitation) -> bool:
    return invitation.status == InvitationStatus.PENDING.value


def validate_role_for_space(role: str, space: str) -> None:
    if not is_role_allowed_in_space(role, space):
        allowed = ", ".join(roles_for_space(space)) or "none"
        raise InvitationError(
            f"Role '{role}' is not available in the {space} space (allowed: {allowed})",
            status_code=422,
        )


def validate_linkage(
    db: Session,
    org_id: UUID,
    space: str,
    account_id: Optional[UUID],
    vendor_id: Optional[UUID],
    vendor_contact_id: Optional[UUID],
) -> None:
    """
    Client invitations must point at an account of the org. Vendor
    invitations may pre-link a vendor or a vendor contact, never both.
    Nothing else may be linked.
    """
    if space == Space.CLIENT.value:
        if account_id is None:
            raise InvitationError("Client invitations require an account_id", status_code=422)
        exists = db.query(Account.id).filter(Account.id == account_id, Account.org_id == org_id).first()
        if exists is None:
            raise InvitationError("Account not found", status_code=404)
    elif account_id is not None:
        raise InvitationError("account_id is only allowed for client invitations", status_code=422)

    if space == Space.VENDOR.value:
        if vendor_id is not None and vendor_contact_id is not None:
            raise InvitationError("Set either vendor_id or vendor_contact_id, not both", status_code=422)
        if vendor_id is not None:
            exists = db.query(Vendor.id).filter(Vendor.id == vendor_id, Vendor.org_id == org_id).first()
            if exists is None:
                raise InvitationError("Vendor not found", status_code=404)
        if vendor_contact_id is not None:
            exists = db.query(Contact.id).filter(
                Contact.id == vendor_contact_id,
                Contact.org_id == org_id,
                Contact.vendor_id.isnot(None),
            ).first()
            if exists is None:
                raise InvitationError("Vendor contact not found", status_code=404)
    elif vendor_id is not None or vendor_contact_id is not None:
        raise InvitationError("vendor_id / vendor_contact_id are only allowed for vendor invitations", status_code=422)


def issue_invitation(
    db: Session,
    *,
    org_id: UUID,
    email: str,
    role: str,
    space: str,
    expires_in_minutes: Optional[int] = None,
    name: Optional[str] = None,
    account_id: Optional[UUID] = None,
    vendor_id: Optional[UUID] = None,
    vendor_contact_id: Optional[UUID] = None,
    created_by_id: Optional[UUID] = None,
    now: Optional[datetime] = None,
) -> Tuple[Invitation, str]:
    """Persist a pending invitation. Returns it with the raw token."""
    now = now or datetime.utcnow()
    email = email.strip().lower()
    validate_role_for_space(role, space)
    validate_linkage(db, org_id, space, account_id, vendor_id, vendor_contact_id)
    expires_at = _resolve_expiry(expires_in_minutes, now)

    existing = db.query(Invitation).filter(
        Invitation.org_id == org_id,
        func.lower(Invitation.email) == email,
        Invitation.status == InvitationStatus.PENDING.value,
        Invitation.expires_at > now,
    ).first()
    if existing:
        raise InvitationError("An invitation for this email is already pending", status_code=409)

    token = generate_invitation_token()
    invitation = Invitation(
        org_id=org_id,
        email=email,
        name=name,
        role=role,
        space=space,
        status=InvitationStatus.PENDING.value,
        token_hash=hash_invitation_token(token),
        expires_at=expires_at,
        account_id=account_id,
        vendor_id=vendor_id,
        vendor_contact_id=vendor_contact_id,
        created_by_id=created_by_id,
        created_at=now,
        updated_at=now,
    )
    db.add(invitation)
    db.commit()
    db.refresh(invitation)
    logger.info(f"[INVITATIONS] Issued invitation {invitation.id} ({role}/{space}) in org {org_id}")
    return invitation, token


def list_invitations(
    db: Session,
    org_id: UUID,
    status: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[Invitation]:
    """Newest first. The status filter matches the displayed (derived) status."""
    now = now or datetime.utcnow()
    invitations = (
        db.query(Invitation)
        .filter(Invitation.org_id == org_id)
        .order_by(Invitation.created_at.desc())
        .all()
    )
    if status:
        invitations = [i for i in invitations if i.display_status(now) == status]
    return invitations


def get_invitation(db: Session, org_id: UUID, invitation_id: UUID) -> Invitation:
    invitation = db.query(Invitation).filter(
        Invitation.id == invitation_id,
        Invitation.org_id == org_id,
    ).first()
    if not invitation:
        raise InvitationError("Invitation not found", status_code=404)
    return invitation


def revoke_invitation(db: Session, invitation: Invitation) -> Invitation:
    if invitation.status == InvitationStatus.REVOKED.value:
        return invitation
    if not can_revoke(invitation):
        raise InvitationError(f"Cannot revoke an invitation that is {invitation.status}", status_code=409)
    invitation.status = InvitationStatus.REVOKED.value
    db.commit()
    db.refresh(invitation)
    logger.info(f"[INVITATIONS] Revoked invitation {invitation.id}")
    return invitation


def resend_invitation(
    db: Session,
    invitation: Invitation,
    expires_in_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Tuple[Invitation, str]:
    """New token and expiry; status is left as is. The old link stops working."""
    if not can_resend(invitation):
        raise InvitationError(f"Cannot resend an invitation that is {invitation.status}", status_code=409)
    now = now or datetime.utcnow()
    if expires_in_minutes is None:
        # Keep the lifetime of the previous link
        lifetime = invitation.expires_at - (invitation.updated_at or invitation.created_at)
        minutes = int(lifetime.total_seconds() // 60)
        expires_in_minutes = min(MAX_EXPIRES_MINUTES, max(MIN_EXPIRES_MINUTES, minutes))
    expires_at = _resolve_expiry(expires_in_minutes, now)

    token = generate_invitation_token()
    invitation.token_hash = hash_invitation_token(token)
    invitation.expires_at = expires_at
    invitation.updated_at = now
    db.commit()
    db.refresh(invitation)
    logger.info(f"[INVITATIONS] Regenerated token for invitation {invitation.id}")
    return invitation, token


def delete_invitation(db: Session, invitation: Invitation) -> None:
    invitation_id = invitation.id
    db.delete(invitation)
    db.commit()
    logger.info(f"[INVITATIONS] Deleted invitation {invitation_id}")


def find_by_token(db: Session, token: str) -> Optional[Invitation]:
    token = (token or "").strip()
    if not token:
        return None
    return db.query(Invitation).filter(Invitation.token_hash == hash_invitation_token(token)).first()


def check_redeemable(invitation: Optional[Invitation], now: Optional[datetime] = None) -> Invitation:
    if invitation is None:
        raise InvitationError("Invitation not found", status_code=404)
    if invitation.status != InvitationStatus.PENDING.value:
        raise InvitationError(f"Invitation is {invitation.status}", status_code=400)
    if invitation.is_expired(now):
        raise InvitationError("Invitation has expired", status_code=400)
    return invitation


def _find_or_create_vendor_contact(db: Session, invitation: Invitation, user: User) -> UUID:
    contact = db.query(Contact).filter(
        Contact.org_id == invitation.org_id,
        Contact.vendor_id == invitation.vendor_id,
        func.lower(Contact.email) == user.email.lower(),
    ).first()
    if contact is None:
        contact = Contact(
            org_id=invitation.org_id,
            vendor_id=invitation.vendor_id,
            auth_user_id=user.id,
            name=user.name,
            email=user.email,
            contact_type=ContactType.VENDOR.value,
        )
        db.add(contact)
        db.flush()
        logger.info(f"[INVITATIONS] Created vendor contact {contact.id}")
    elif contact.auth_user_id is None:
        contact.auth_user_id = user.id
    return contact.id


def redeem_invitation(
    db: Session,
    token: str,
    password: str,
    name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Tuple[User, Membership, Invitation]:
    """
    Consume the token: create the user or attach the existing one, link the
    vendor contact, create the membership and mark the invitation accepted.
    One transaction.

    A user who already has a password must prove it; redemption never
    changes existing credentials.
    """
    now = now or datetime.utcnow()
    invitation = check_redeemable(find_by_token(db, token), now)

    password = (password or "").strip()
    email = invitation.email.strip().lower()
    user = db.query(User).filter(func.lower(User.email) == email).first()
    if user is not None and user.hashed_password:
        if not verify_password(password, user.hashed_password):
            raise InvitationError("Incorrect password for existing account", status_code=401)
    elif len(password) < MIN_PASSWORD_LENGTH:
        raise InvitationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", status_code=400)

    try:
        if user is None:
            user = User(
                email=email,
                name=(name or invitation.name or email.split("@")[0]).strip(),
                hashed_password=get_password_hash(password),
            )
            db.add(user)
            db.flush()
        elif not user.hashed_password:
            user.hashed_password = get_password_hash(password)
            if name and name.strip():
                user.name = name.strip()

        vendor_contact_id = invitation.vendor_contact_id
        if invitation.role == UserRole.VENDOR.value and invitation.vendor_id is not None:
            vendor_contact_id = _find_or_create_vendor_contact(db, invitation, user)
        elif vendor_contact_id is not None:
            contact = db.query(Contact).filter(Contact.id == vendor_contact_id).first()
            if contact is not None and contact.auth_user_id is None:
                contact.auth_user_id = user.id

        membership = db.query(Membership).filter(
            Membership.user_id == user.id,
            Membership.org_id == invitation.org_id,
        ).first()
        if membership is None:
            membership = Membership(
                user_id=user.id,
                org_id=invitation.org_id,
                role=invitation.role,
                space=invitation.space,
                account_id=invitation.account_id,
                vendor_contact_id=vendor_contact_id,
            )
            db.add(membership)

        invitation.status = InvitationStatus.ACCEPTED.value
        invitation.used_at = now
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(user)
    db.refresh(membership)
    db.refresh(invitation)
    logger.info(
        f"[INVITATIONS] Invitation {invitation.id} accepted: user={user.id} "
        f"role={membership.role} space={membership.space}"
    )
    return user, membership, invitation
