from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, Union
from decimal import Decimal
import uuid
from app.models.deal import DealStage


class DealBase(BaseModel):
    name: str = "New deal"
    account_id: Optional[uuid.UUID] = None
    contact_id: Optional[uuid.UUID] = None
    owner_id: Optional[uuid.UUID] = None
    amount: Union[float, Decimal] = Field(0, ge=0)
    probability: int = Field(0, ge=0, le=100)
    stage: DealStage = DealStage.PROSPECT
    position: int = 0
    next_action: Optional[str] = None
    next_action_date: Optional[datetime] = None
    notes: Optional[str] = None


class DealCreate(DealBase):
    pass


class DealUpdate(BaseModel):
    """Stage moves go through PATCH /deals/{id}/stage."""
    name: Optional[str] = None
    account_id: Optional[uuid.UUID] = None
    contact_id: Optional[uuid.UUID] = None
    owner_id: Optional[uuid.UUID] = None
    amount: Optional[float] = Field(None, ge=0)
    probability: Optional[int] = Field(None, ge=0, le=100)
    next_action: Optional[str] = None
    next_action_date: Optional[datetime] = None
    notes: Optional[str] = None


class DealStageUpdate(BaseModel):
    stage: DealStage
    position: int = 0


class Deal(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    name: str
    account_id: Optional[uuid.UUID] = None
    contact_id: Optional[uuid.UUID] = None
    owner_id: Optional[uuid.UUID] = None
    amount: float
    probability: int
    stage: str
    position: int
    next_action: Optional[str] = None
    next_action_date: Optional[datetime] = None
    notes: Optional[str] = None
    days_in_stage: int = 0
    stage_changed_at: datetime
    created_at: datetime
    updated_at: datetime

    @field_validator("amount", mode="before")
    @classmethod
    def convert_decimal_to_float(cls, v):
        if isinstance(v, Decimal):
            return float(v)
        return v

    class Config:
        from_attributes = True
