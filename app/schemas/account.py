from pydantic import BaseModel
from datetime import datetime
from typing import Optional
import uuid
from app.models.account import AccountStatus


class AccountBase(BaseModel):
    name: str
    domain: Optional[str] = None
    plan: str = "audit"
    status: AccountStatus = AccountStatus.ACTIVE
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    notes: Optional[str] = None


class AccountCreate(AccountBase):
    pass


class AccountUpdate(BaseModel):
    name: Optional[str] = None
    domain: Optional[str] = None
    plan: Optional[str] = None
    status: Optional[AccountStatus] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    notes: Optional[str] = None


class Account(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    name: str
    domain: Optional[str] = None
    plan: str
    status: str
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
