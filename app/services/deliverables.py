"""
Deliverable review workflow.

    pending --submit--> submitted --approve--> approved
                           |
                           +--request_revision--> revision_requested --submit--> submitted

Every transition is an explicit user action. Vendors and delivery staff
submit; the client (or an internal admin) reviews.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.permissions import has_permission, CLIENT_ROLES
from app.models.membership import Membership, UserRole
from app.models.project import Project
from app.models.project_deliverable import ProjectDeliverable, DeliverableStatus, DeliverableVersion

logger = logging.getLogger(__name__)

VERSION_ORDER = [v.value for v in DeliverableVersion]

SUBMIT = "submit"
APPROVE = "approve"
REQUEST_REVISION = "request_revision"
DELETE = "delete"

# action -> (allowed source statuses, target status)
TRANSITIONS = {
    SUBMIT: (
        {DeliverableStatus.PENDING.value, DeliverableStatus.REVISION_REQUESTED.value},
        DeliverableStatus.SUBMITTED.value,
    ),
    APPROVE: ({DeliverableStatus.SUBMITTED.value}, DeliverableStatus.APPROVED.value),
    REQUEST_REVISION: ({DeliverableStatus.SUBMITTED.value}, DeliverableStatus.REVISION_REQUESTED.value),
}

# A later version may only be opened once the previous one has been reviewed
REVIEWED_STATUSES = {DeliverableStatus.APPROVED.value, DeliverableStatus.REVISION_REQUESTED.value}


class DeliverableTransitionError(Exception):
    def __init__(self, detail: str, status_code: int = 409):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


def can_submit(membership: Membership) -> bool:
    return has_permission(membership.role, "deliverable", "upload")


def can_review(membership: Membership) -> bool:
    return membership.role in CLIENT_ROLES or membership.role == UserRole.ADMIN.value


def available_actions(deliverable: ProjectDeliverable, membership: Membership) -> List[str]:
    """Transitions the member may trigger on the deliverable in its current state."""
    actions = []
    if can_submit(membership) and deliverable.status in TRANSITIONS[SUBMIT][0]:
        actions.append(SUBMIT)
    if can_review(membership) and deliverable.status == DeliverableStatus.SUBMITTED.value:
        actions.extend([APPROVE, REQUEST_REVISION])
    if has_permission(membership.role, "deliverable", "delete"):
        actions.append(DELETE)
    return actions


def list_deliverables(db: Session, project: Project) -> List[ProjectDeliverable]:
    return (
        db.query(ProjectDeliverable)
        .filter(
            ProjectDeliverable.project_id == project.id,
            ProjectDeliverable.org_id == project.org_id,
        )
        .order_by(ProjectDeliverable.deliverable_number, ProjectDeliverable.version)
        .all()
    )


def get_deliverable(db: Session, project: Project, deliverable_id: UUID) -> Optional[ProjectDeliverable]:
    return db.query(ProjectDeliverable).filter(
        ProjectDeliverable.id == deliverable_id,
        ProjectDeliverable.project_id == project.id,
        ProjectDeliverable.org_id == project.org_id,
    ).first()


def check_version_order(db: Session, project: Project, deliverable_number: int, version: str) -> None:
    existing = db.query(ProjectDeliverable).filter(
        ProjectDeliverable.project_id == project.id,
        ProjectDeliverable.deliverable_number == deliverable_number,
        ProjectDeliverable.version == version,
    ).first()
    if existing:
        raise DeliverableTransitionError(
            f"Deliverable {deliverable_number} already has a {version}"
        )

    index = VERSION_ORDER.index(version)
    if index == 0:
        return
    previous_version = VERSION_ORDER[index - 1]
    previous = db.query(ProjectDeliverable).filter(
        ProjectDeliverable.project_id == project.id,
        ProjectDeliverable.deliverable_number == deliverable_number,
        ProjectDeliverable.version == previous_version,
    ).first()
    if previous is None or previous.status not in REVIEWED_STATUSES:
        raise DeliverableTransitionError(
            f"{version} can only be created after {previous_version} is approved or sent back for revision"
        )


def create_deliverable(
    db: Session,
    project: Project,
    *,
    deliverable_number: int,
    version: str,
    title: str,
    type: str,
    description: Optional[str] = None,
    url: Optional[str] = None,
    file_name: Optional[str] = None,
    file_size: Optional[int] = None,
    uploaded_by_id: Optional[UUID] = None,
) -> ProjectDeliverable:
    check_version_order(db, project, deliverable_number, version)
    deliverable = ProjectDeliverable(
        org_id=project.org_id,
        project_id=project.id,
        deliverable_number=deliverable_number,
        version=version,
        title=title,
        description=description,
        type=type,
        url=url,
        file_name=file_name,
        file_size=file_size,
        status=DeliverableStatus.PENDING.value,
        uploaded_by_id=uploaded_by_id,
    )
    db.add(deliverable)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent create won the unique (project, number, version) slot
        db.rollback()
        raise DeliverableTransitionError(f"Deliverable {deliverable_number} already has a {version}")
    db.refresh(deliverable)
    logger.info(f"[DELIVERABLES] Created deliverable {deliverable.id} (#{deliverable_number} {version}) on project {project.id}")
    return deliverable


def _apply(deliverable: ProjectDeliverable, action: str) -> None:
    sources, target = TRANSITIONS[action]
    if deliverable.status not in sources:
        raise DeliverableTransitionError(
            f"Cannot {action.replace('_', ' ')} a deliverable that is {deliverable.status}"
        )
    deliverable.status = target


def submit_deliverable(
    db: Session,
    deliverable: ProjectDeliverable,
    submitted_by_id: Optional[UUID] = None,
    url: Optional[str] = None,
    file_name: Optional[str] = None,
    file_size: Optional[int] = None,
    now: Optional[datetime] = None,
) -> ProjectDeliverable:
    _apply(deliverable, SUBMIT)
    if url is not None:
        deliverable.url = url
    if file_name is not None:
        deliverable.file_name = file_name
    if file_size is not None:
        deliverable.file_size = file_size
    if submitted_by_id is not None:
        deliverable.uploaded_by_id = submitted_by_id
    deliverable.submitted_at = now or datetime.utcnow()
    db.commit()
    db.refresh(deliverable)
    logger.info(f"[DELIVERABLES] Deliverable {deliverable.id} submitted")
    return deliverable


def approve_deliverable(
    db: Session,
    deliverable: ProjectDeliverable,
    reviewer_id: Optional[UUID] = None,
    now: Optional[datetime] = None,
) -> ProjectDeliverable:
    _apply(deliverable, APPROVE)
    deliverable.reviewed_by_id = reviewer_id
    deliverable.reviewed_at = now or datetime.utcnow()
    db.commit()
    db.refresh(deliverable)
    logger.info(f"[DELIVERABLES] Deliverable {deliverable.id} approved")
    return deliverable


def request_revision(
    db: Session,
    deliverable: ProjectDeliverable,
    comment: str,
    reviewer_id: Optional[UUID] = None,
    now: Optional[datetime] = None,
) -> ProjectDeliverable:
    comment = (comment or "").strip()
    if not comment:
        raise DeliverableTransitionError("A comment is required when requesting a revision", status_code=422)
    _apply(deliverable, REQUEST_REVISION)
    deliverable.client_comment = comment
    deliverable.reviewed_by_id = reviewer_id
    deliverable.reviewed_at = now or datetime.utcnow()
    db.commit()
    db.refresh(deliverable)
    logger.info(f"[DELIVERABLES] Revision requested on deliverable {deliverable.id}")
    return deliverable


def delete_deliverable(db: Session, deliverable: ProjectDeliverable) -> None:
    db.delete(deliverable)
    db.commit()
