from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional, List, Union
from decimal import Decimal
import uuid
from app.models.vendor import VendorAvailability


class VendorBase(BaseModel):
    name: str
    email: Optional[str] = None
    company: Optional[str] = None
    skills: List[str] = []
    daily_rate: Optional[Union[float, Decimal]] = None
    availability: VendorAvailability = VendorAvailability.AVAILABLE


class VendorCreate(VendorBase):
    pass


class VendorUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    skills: Optional[List[str]] = None
    daily_rate: Optional[float] = None
    availability: Optional[VendorAvailability] = None


class Vendor(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    name: str
    email: Optional[str] = None
    company: Optional[str] = None
    skills: List[str] = []
    daily_rate: Optional[float] = None
    availability: str
    created_at: datetime

    @field_validator("daily_rate", mode="before")
    @classmethod
    def convert_decimal_to_float(cls, v):
        """Convert Decimal to float for serialization"""
        if isinstance(v, Decimal):
            return float(v)
        return v

    @field_validator("skills", mode="before")
    @classmethod
    def default_skills(cls, v):
        return v or []

    class Config:
        from_attributes = True
