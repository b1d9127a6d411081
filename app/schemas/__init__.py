from app.schemas.user import UserLogin, LoginResponse, CurrentUser
from app.schemas.account import Account, AccountCreate, AccountUpdate
from app.schemas.contact import Contact, ContactCreate, ContactUpdate
from app.schemas.vendor import Vendor, VendorCreate, VendorUpdate
from app.schemas.project import Project, ProjectCreate, ProjectUpdate
from app.schemas.deal import Deal, DealCreate, DealUpdate, DealStageUpdate
from app.schemas.task import Task, TaskCreate, TaskUpdate
from app.schemas.deliverable import Deliverable, DeliverableCreate, DeliverableSubmit, RevisionRequest
from app.schemas.invitation import InvitationCreate, InvitationResponse, InvitationWithLink

__all__ = [
    "UserLogin", "LoginResponse", "CurrentUser",
    "Account", "AccountCreate", "AccountUpdate",
    "Contact", "ContactCreate", "ContactUpdate",
    "Vendor", "VendorCreate", "VendorUpdate",
    "Project", "ProjectCreate", "ProjectUpdate",
    "Deal", "DealCreate", "DealUpdate", "DealStageUpdate",
    "Task", "TaskCreate", "TaskUpdate",
    "Deliverable", "DeliverableCreate", "DeliverableSubmit", "RevisionRequest",
    "InvitationCreate", "InvitationResponse", "InvitationWithLink",
]
