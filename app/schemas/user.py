from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from uuid import UUID


class UserLogin(BaseModel):
    email: str
    password: str
    org_id: Optional[UUID] = None  # Optional organization ID for multi-org users


class OrganizationChoice(BaseModel):
    org_id: UUID
    name: str
    role: str
    space: str


class LoginResponse(BaseModel):
    """Response from login - either token or org selection required"""
    requires_org_selection: bool = False
    access_token: Optional[str] = None
    token_type: Optional[str] = None
    organizations: Optional[List[OrganizationChoice]] = None  # set when selection is required


class MembershipInfo(BaseModel):
    org_id: UUID
    role: str
    space: str
    account_id: Optional[UUID] = None
    vendor_contact_id: Optional[UUID] = None

    class Config:
        from_attributes = True


class CurrentUser(BaseModel):
    id: UUID
    email: str
    name: str
    created_at: datetime
    membership: MembershipInfo
    permissions: dict
