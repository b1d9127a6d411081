from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from uuid import UUID
from app.models.project_deliverable import DeliverableType, DeliverableVersion


class DeliverableCreate(BaseModel):
    deliverable_number: int = Field(..., ge=1, le=3)
    version: DeliverableVersion = DeliverableVersion.V1
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    type: DeliverableType = DeliverableType.OTHER
    url: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = Field(None, ge=0)


class DeliverableSubmit(BaseModel):
    """Vendor hands the deliverable over for review; may attach the final link."""
    url: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = Field(None, ge=0)


class RevisionRequest(BaseModel):
    comment: str

    @field_validator("comment")
    @classmethod
    def comment_required(cls, v):
        if not v or not v.strip():
            raise ValueError("A comment is required when requesting a revision")
        return v.strip()


class Deliverable(BaseModel):
    id: UUID
    org_id: UUID
    project_id: UUID
    deliverable_number: int
    version: str
    title: str
    description: Optional[str] = None
    type: str
    url: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    status: str
    client_comment: Optional[str] = None
    uploaded_by_id: Optional[UUID] = None
    reviewed_by_id: Optional[UUID] = None
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    actions: List[str] = []  # transitions the caller may trigger right now

    class Config:
        from_attributes = True
