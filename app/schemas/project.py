from pydantic import BaseModel
from datetime import datetime
from typing import Optional
import uuid
from app.models.project import ProjectStatus


class ProjectBase(BaseModel):
    name: str
    description: Optional[str] = None
    account_id: Optional[uuid.UUID] = None
    vendor_id: Optional[uuid.UUID] = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    account_id: Optional[uuid.UUID] = None
    vendor_id: Optional[uuid.UUID] = None
    status: Optional[ProjectStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class Project(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    account_id: Optional[uuid.UUID] = None
    vendor_id: Optional[uuid.UUID] = None
    name: str
    description: Optional[str] = None
    status: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
