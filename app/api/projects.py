from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
import logging
from app.db.session import get_db
from app.models.user import User
from app.models.account import Account
from app.models.vendor import Vendor
from app.models.project import Project, ProjectStatus
from app.schemas.project import Project as ProjectSchema, ProjectCreate, ProjectUpdate
from app.core.access_control import scope_projects_query, can_access_project
from app.api.deps import require_permission

logger = logging.getLogger(__name__)

router = APIRouter()


def get_accessible_project(db: Session, project_id: UUID, current_user: User) -> Project:
    """
    Project of the selected org that the caller's membership may see.
    Anything else is reported as missing so other tenants' ids don't leak.
    """
    project = db.query(Project).filter(
        Project.id == project_id,
        Project.org_id == current_user.selected_org_id,
    ).first()
    if not project or not can_access_project(db, project, current_user.membership):
        raise HTTPException(status_code=404, detail="Project not found")
    return project


def _check_links(db: Session, org_id: UUID, account_id: Optional[UUID], vendor_id: Optional[UUID]):
    if account_id is not None:
        if not db.query(Account.id).filter(Account.id == account_id, Account.org_id == org_id).first():
            raise HTTPException(status_code=404, detail="Account not found")
    if vendor_id is not None:
        if not db.query(Vendor.id).filter(Vendor.id == vendor_id, Vendor.org_id == org_id).first():
            raise HTTPException(status_code=404, detail="Vendor not found")


@router.get("", response_model=List[ProjectSchema])
def list_projects(
    account_id: Optional[UUID] = Query(None),
    vendor_id: Optional[UUID] = Query(None),
    project_status: Optional[ProjectStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("project", "view"))
):
    # CRITICAL: Filter by org_id for multi-tenant isolation, then by membership scope
    query = db.query(Project).filter(Project.org_id == current_user.selected_org_id)
    query = scope_projects_query(db, query, current_user.membership)
    if account_id:
        query = query.filter(Project.account_id == account_id)
    if vendor_id:
        query = query.filter(Project.vendor_id == vendor_id)
    if project_status:
        query = query.filter(Project.status == project_status.value)
    return query.order_by(Project.created_at.desc()).all()


@router.post("", response_model=ProjectSchema, status_code=status.HTTP_201_CREATED)
def create_project(
    project_data: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("project", "create"))
):
    org_id = current_user.selected_org_id
    _check_links(db, org_id, project_data.account_id, project_data.vendor_id)
    if project_data.start_date and project_data.end_date and project_data.end_date < project_data.start_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_date must not be before start_date")

    project_dict = project_data.model_dump()
    project_dict["status"] = project_data.status.value
    project = Project(**project_dict, org_id=org_id)
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info(f"[PROJECTS] Created project {project.id} in org {org_id}")
    return project


@router.get("/{project_id}", response_model=ProjectSchema)
def get_project(
    project_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("project", "view"))
):
    return get_accessible_project(db, project_id, current_user)


@router.patch("/{project_id}", response_model=ProjectSchema)
def update_project(
    project_id: UUID,
    project_update: ProjectUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("project", "update"))
):
    project = get_accessible_project(db, project_id, current_user)
    update_data = project_update.model_dump(exclude_unset=True)
    _check_links(db, current_user.selected_org_id, update_data.get("account_id"), update_data.get("vendor_id"))
    if update_data.get("status") is not None:
        update_data["status"] = update_data["status"].value
    for field, value in update_data.items():
        setattr(project, field, value)
    if project.start_date and project.end_date and project.end_date < project.start_date:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_date must not be before start_date")
    db.commit()
    db.refresh(project)
    return project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("project", "delete"))
):
    project = get_accessible_project(db, project_id, current_user)
    db.delete(project)
    db.commit()
    return None
