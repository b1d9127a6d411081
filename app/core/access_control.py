"""
Row-level scoping of projects by the caller's membership.

Internal staff see every project of the organization, client users only the
projects of their account, vendors only the projects assigned to their
vendor record.
"""
from typing import Optional
from uuid import UUID

from sqlalchemy import false
from sqlalchemy.orm import Session, Query

from app.core.permissions import INTERNAL_ROLES, CLIENT_ROLES
from app.models.contact import Contact
from app.models.membership import Membership, UserRole
from app.models.project import Project


def get_vendor_id_for_membership(db: Session, membership: Membership) -> Optional[UUID]:
    if not membership.vendor_contact_id:
        return None
    contact = db.query(Contact).filter(
        Contact.id == membership.vendor_contact_id,
        Contact.org_id == membership.org_id,
    ).first()
    return contact.vendor_id if contact else None


def scope_projects_query(db: Session, query: Query, membership: Membership) -> Query:
    if membership.role in INTERNAL_ROLES:
        return query
    if membership.role in CLIENT_ROLES:
        if not membership.account_id:
            return query.filter(false())
        return query.filter(Project.account_id == membership.account_id)
    if membership.role == UserRole.VENDOR.value:
        vendor_id = get_vendor_id_for_membership(db, membership)
        if not vendor_id:
            return query.filter(false())
        return query.filter(Project.vendor_id == vendor_id)
    return query.filter(false())


def can_access_project(db: Session, project: Project, membership: Membership) -> bool:
    if project.org_id != membership.org_id:
        return False
    if membership.role in INTERNAL_ROLES:
        return True
    if membership.role in CLIENT_ROLES:
        return membership.account_id is not None and project.account_id == membership.account_id
    if membership.role == UserRole.VENDOR.value:
        vendor_id = get_vendor_id_for_membership(db, membership)
        return vendor_id is not None and project.vendor_id == vendor_id
    return False
