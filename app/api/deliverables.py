from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from app.db.session import get_db
from app.models.user import User
from app.models.project import Project
from app.models.project_deliverable import ProjectDeliverable
from app.models.audit_log import AuditEventType
from app.schemas.deliverable import Deliverable as DeliverableSchema, DeliverableCreate, DeliverableSubmit, RevisionRequest
from app.core.audit import audit_request
from app.api.deps import require_permission
from app.api.projects import get_accessible_project
from app.services import deliverables as deliverable_service
from app.services.deliverables import DeliverableTransitionError

router = APIRouter()


def _to_schema(deliverable: ProjectDeliverable, current_user: User) -> DeliverableSchema:
    result = DeliverableSchema.model_validate(deliverable)
    result.actions = deliverable_service.available_actions(deliverable, current_user.membership)
    return result


def _get_deliverable_or_404(db: Session, project: Project, deliverable_id: UUID) -> ProjectDeliverable:
    deliverable = deliverable_service.get_deliverable(db, project, deliverable_id)
    if not deliverable:
        raise HTTPException(status_code=404, detail="Deliverable not found")
    return deliverable


def _require_reviewer(current_user: User):
    """Only the client side of the project (or an internal admin) reviews deliverables."""
    if not deliverable_service.can_review(current_user.membership):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the client or an admin can review deliverables"
        )


def _audit(db: Session, request: Request, current_user: User, event_type: AuditEventType,
           deliverable: ProjectDeliverable, details: Optional[dict] = None):
    details = {"number": deliverable.deliverable_number, "version": deliverable.version, **(details or {})}
    audit_request(db, request, current_user, event_type, "deliverable", deliverable.id, details=details)


@router.get("/{project_id}/deliverables", response_model=List[DeliverableSchema])
def list_deliverables(
    project_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("deliverable", "view"))
):
    project = get_accessible_project(db, project_id, current_user)
    return [_to_schema(d, current_user) for d in deliverable_service.list_deliverables(db, project)]


@router.post("/{project_id}/deliverables", response_model=DeliverableSchema, status_code=status.HTTP_201_CREATED)
def create_deliverable(
    project_id: UUID,
    deliverable_data: DeliverableCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("deliverable", "create"))
):
    project = get_accessible_project(db, project_id, current_user)
    try:
        deliverable = deliverable_service.create_deliverable(
            db,
            project,
            deliverable_number=deliverable_data.deliverable_number,
            version=deliverable_data.version.value,
            title=deliverable_data.title,
            type=deliverable_data.type.value,
            description=deliverable_data.description,
            url=deliverable_data.url,
            file_name=deliverable_data.file_name,
            file_size=deliverable_data.file_size,
            uploaded_by_id=current_user.id,
        )
    except DeliverableTransitionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    return _to_schema(deliverable, current_user)


@router.post("/{project_id}/deliverables/{deliverable_id}/submit", response_model=DeliverableSchema)
def submit_deliverable(
    project_id: UUID,
    deliverable_id: UUID,
    request: Request,
    submit_data: Optional[DeliverableSubmit] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("deliverable", "upload"))
):
    project = get_accessible_project(db, project_id, current_user)
    deliverable = _get_deliverable_or_404(db, project, deliverable_id)
    submit_data = submit_data or DeliverableSubmit()
    try:
        deliverable = deliverable_service.submit_deliverable(
            db,
            deliverable,
            submitted_by_id=current_user.id,
            url=submit_data.url,
            file_name=submit_data.file_name,
            file_size=submit_data.file_size,
        )
    except DeliverableTransitionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    _audit(db, request, current_user, AuditEventType.DELIVERABLE_SUBMITTED, deliverable)
    return _to_schema(deliverable, current_user)


@router.post("/{project_id}/deliverables/{deliverable_id}/approve", response_model=DeliverableSchema)
def approve_deliverable(
    project_id: UUID,
    deliverable_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("deliverable", "view"))
):
    _require_reviewer(current_user)
    project = get_accessible_project(db, project_id, current_user)
    deliverable = _get_deliverable_or_404(db, project, deliverable_id)
    try:
        deliverable = deliverable_service.approve_deliverable(db, deliverable, reviewer_id=current_user.id)
    except DeliverableTransitionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    _audit(db, request, current_user, AuditEventType.DELIVERABLE_APPROVED, deliverable)
    return _to_schema(deliverable, current_user)


@router.post("/{project_id}/deliverables/{deliverable_id}/request-revision", response_model=DeliverableSchema)
def request_deliverable_revision(
    project_id: UUID,
    deliverable_id: UUID,
    revision: RevisionRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("deliverable", "view"))
):
    _require_reviewer(current_user)
    project = get_accessible_project(db, project_id, current_user)
    deliverable = _get_deliverable_or_404(db, project, deliverable_id)
    try:
        deliverable = deliverable_service.request_revision(
            db, deliverable, revision.comment, reviewer_id=current_user.id
        )
    except DeliverableTransitionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    _audit(db, request, current_user, AuditEventType.DELIVERABLE_REVISION_REQUESTED, deliverable,
           {"comment": revision.comment})
    return _to_schema(deliverable, current_user)


@router.delete("/{project_id}/deliverables/{deliverable_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_deliverable(
    project_id: UUID,
    deliverable_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("deliverable", "delete"))
):
    project = get_accessible_project(db, project_id, current_user)
    deliverable = _get_deliverable_or_404(db, project, deliverable_id)
    deliverable_service.delete_deliverable(db, deliverable)
    return None
