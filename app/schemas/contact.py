from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional
import uuid
from app.models.contact import ContactType


class ContactBase(BaseModel):
    name: str
    email: str
    account_id: Optional[uuid.UUID] = None
    vendor_id: Optional[uuid.UUID] = None
    role: Optional[str] = None
    contact_type: ContactType = ContactType.CLIENT
    phone: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return str(v).strip().lower() if v is not None else v


class ContactCreate(ContactBase):
    pass


class ContactUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    account_id: Optional[uuid.UUID] = None
    vendor_id: Optional[uuid.UUID] = None
    role: Optional[str] = None
    contact_type: Optional[ContactType] = None
    phone: Optional[str] = None


class Contact(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    account_id: Optional[uuid.UUID] = None
    vendor_id: Optional[uuid.UUID] = None
    auth_user_id: Optional[uuid.UUID] = None
    name: str
    email: str
    role: Optional[str] = None
    contact_type: str
    phone: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
