from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime
from uuid import UUID
from app.models.membership import UserRole, Space


def _normalize_email(v: str) -> str:
    email = (v or "").strip().lower()
    local, _, domain = email.partition("@")
    if not local or not domain or "." not in domain:
        raise ValueError("Invalid email address")
    return email


class InvitationCreate(BaseModel):
    """Internal admin: invite someone into a space with a role."""
    email: str
    name: Optional[str] = None
    role: UserRole
    space: Space
    expires_in_minutes: Optional[int] = Field(None, ge=5, le=525600)  # max 1 year
    account_id: Optional[UUID] = None
    vendor_id: Optional[UUID] = None
    vendor_contact_id: Optional[UUID] = None
    send_email: bool = False

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _normalize_email(v)


class InvitationResendRequest(BaseModel):
    expires_in_minutes: Optional[int] = Field(None, ge=5, le=525600)
    send_email: bool = True


class InvitationResponse(BaseModel):
    id: UUID
    org_id: UUID
    email: str
    name: Optional[str] = None
    role: str
    space: str
    status: str  # stored status
    display_status: str  # "expired" once expires_at has passed
    expires_at: datetime
    used_at: Optional[datetime] = None
    account_id: Optional[UUID] = None
    vendor_id: Optional[UUID] = None
    vendor_contact_id: Optional[UUID] = None
    created_by_id: Optional[UUID] = None
    created_at: datetime
    can_revoke: bool = False
    can_resend: bool = False


class InvitationWithLink(InvitationResponse):
    """Issue/resend response. invite_link carries the raw token and is never shown again."""
    invite_link: str
    email_sent: bool = False


class SpaceRolesResponse(BaseModel):
    roles_by_space: Dict[str, List[str]]


class InviteValidateRequest(BaseModel):
    token: str


class InviteValidateResponse(BaseModel):
    """Public: token validation response."""
    valid: bool
    status: Optional[str] = None
    message: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    space: Optional[str] = None
    expires_at: Optional[datetime] = None


class InviteAcceptRequest(BaseModel):
    """Accept invitation. New users choose a password; existing users confirm their current one."""
    token: str
    password: str
    name: Optional[str] = None


class InviteAcceptResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: UUID
    org_id: UUID
    role: str
    space: str
    account_id: Optional[UUID] = None
    vendor_contact_id: Optional[UUID] = None
    redirect_url: str
