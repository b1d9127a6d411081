from app.models.organization import Organization
from app.models.user import User
from app.models.membership import Membership, UserRole, Space
from app.models.account import Account, AccountStatus
from app.models.contact import Contact, ContactType
from app.models.vendor import Vendor, VendorAvailability
from app.models.project import Project, ProjectStatus
from app.models.deal import Deal, DealStage
from app.models.task import Task, TaskStatus, TaskPriority
from app.models.invitation import Invitation, InvitationStatus
from app.models.project_deliverable import (
    ProjectDeliverable, DeliverableStatus, DeliverableType, DeliverableVersion,
)
from app.models.audit_log import AuditLog, AuditEventType

__all__ = [
    "Organization", "User", "Membership", "UserRole", "Space",
    "Account", "AccountStatus", "Contact", "ContactType",
    "Vendor", "VendorAvailability", "Project", "ProjectStatus", "Deal", "DealStage",
    "Task", "TaskStatus", "TaskPriority",
    "Invitation", "InvitationStatus",
    "ProjectDeliverable", "DeliverableStatus", "DeliverableType", "DeliverableVersion",
    "AuditLog", "AuditEventType",
]
