from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from app.db.session import get_db
from app.models.user import User
from app.models.membership import Membership
from app.models.project import Project
from app.models.task import Task, TaskStatus
from app.schemas.task import Task as TaskSchema, TaskCreate, TaskUpdate
from app.core.access_control import scope_projects_query
from app.core.permissions import INTERNAL_ROLES
from app.api.deps import require_permission, ensure_permission
from app.api.projects import get_accessible_project

router = APIRouter()


def _scoped_tasks(db: Session, current_user: User):
    """
    Internal staff see every task of the org. Everyone else sees tasks of the
    projects visible to them plus tasks assigned to them.
    """
    org_id = current_user.selected_org_id
    query = db.query(Task).filter(Task.org_id == org_id)
    membership = current_user.membership
    if membership.role in INTERNAL_ROLES:
        return query
    visible_projects = scope_projects_query(
        db, select(Project.id).where(Project.org_id == org_id), membership
    )
    return query.filter(or_(
        Task.project_id.in_(visible_projects),
        Task.assignee_id == current_user.id,
    ))


def _get_task_or_404(db: Session, task_id: UUID, current_user: User) -> Task:
    task = _scoped_tasks(db, current_user).filter(Task.id == task_id).first()
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def _check_assignee(db: Session, request: Request, current_user: User, assignee_id: Optional[UUID]):
    """Assigning needs the task:assign permission and an assignee who belongs to the org."""
    ensure_permission(db, request, current_user, "task", "assign")
    if assignee_id is None:
        return
    member = db.query(Membership.id).filter(
        Membership.user_id == assignee_id,
        Membership.org_id == current_user.selected_org_id,
    ).first()
    if not member:
        raise HTTPException(status_code=404, detail="Assignee not found")


@router.get("", response_model=List[TaskSchema])
def list_tasks(
    project_id: Optional[UUID] = Query(None),
    assignee_id: Optional[UUID] = Query(None),
    task_status: Optional[TaskStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("task", "view"))
):
    query = _scoped_tasks(db, current_user)
    if project_id:
        query = query.filter(Task.project_id == project_id)
    if assignee_id:
        query = query.filter(Task.assignee_id == assignee_id)
    if task_status:
        query = query.filter(Task.status == task_status.value)
    return query.order_by(Task.due_date.is_(None), Task.due_date, Task.created_at.desc()).all()


@router.post("", response_model=TaskSchema, status_code=status.HTTP_201_CREATED)
def create_task(
    request: Request,
    task_data: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("task", "create"))
):
    org_id = current_user.selected_org_id
    if task_data.project_id is not None:
        get_accessible_project(db, task_data.project_id, current_user)
    if task_data.assignee_id is not None:
        _check_assignee(db, request, current_user, task_data.assignee_id)

    task_dict = task_data.model_dump()
    task_dict["status"] = task_data.status.value
    task_dict["priority"] = task_data.priority.value
    task = Task(**task_dict, org_id=org_id)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


@router.get("/{task_id}", response_model=TaskSchema)
def get_task(
    task_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("task", "view"))
):
    return _get_task_or_404(db, task_id, current_user)


@router.patch("/{task_id}", response_model=TaskSchema)
def update_task(
    task_id: UUID,
    request: Request,
    task_update: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("task", "update"))
):
    task = _get_task_or_404(db, task_id, current_user)
    update_data = task_update.model_dump(exclude_unset=True)
    if update_data.get("project_id") is not None:
        get_accessible_project(db, update_data["project_id"], current_user)
    if "assignee_id" in update_data and update_data["assignee_id"] != task.assignee_id:
        _check_assignee(db, request, current_user, update_data["assignee_id"])
    for key in ("status", "priority"):
        if update_data.get(key) is not None:
            update_data[key] = update_data[key].value
    for field, value in update_data.items():
        setattr(task, field, value)
    db.commit()
    db.refresh(task)
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("task", "delete"))
):
    task = _get_task_or_404(db, task_id, current_user)
    db.delete(task)
    db.commit()
    return None
