from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from app.db.session import get_db
from app.models.user import User
from app.models.account import Account
from app.models.contact import Contact, ContactType
from app.models.vendor import Vendor
from app.schemas.contact import Contact as ContactSchema, ContactCreate, ContactUpdate
from app.core.permissions import CLIENT_ROLES
from app.api.deps import require_permission

router = APIRouter()


def _scoped_contacts(db: Session, current_user: User):
    query = db.query(Contact).filter(Contact.org_id == current_user.selected_org_id)
    membership = current_user.membership
    if membership.role in CLIENT_ROLES:
        query = query.filter(Contact.account_id == membership.account_id)
    return query


def _get_contact_or_404(db: Session, contact_id: UUID, current_user: User) -> Contact:
    contact = _scoped_contacts(db, current_user).filter(Contact.id == contact_id).first()
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


def _check_links(db: Session, org_id: UUID, account_id: Optional[UUID], vendor_id: Optional[UUID]):
    """Linked account / vendor must exist in the same org."""
    if account_id is not None:
        if not db.query(Account.id).filter(Account.id == account_id, Account.org_id == org_id).first():
            raise HTTPException(status_code=404, detail="Account not found")
    if vendor_id is not None:
        if not db.query(Vendor.id).filter(Vendor.id == vendor_id, Vendor.org_id == org_id).first():
            raise HTTPException(status_code=404, detail="Vendor not found")


@router.get("", response_model=List[ContactSchema])
def list_contacts(
    account_id: Optional[UUID] = Query(None),
    vendor_id: Optional[UUID] = Query(None),
    contact_type: Optional[ContactType] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("account", "view"))
):
    query = _scoped_contacts(db, current_user)
    if account_id:
        query = query.filter(Contact.account_id == account_id)
    if vendor_id:
        query = query.filter(Contact.vendor_id == vendor_id)
    if contact_type:
        query = query.filter(Contact.contact_type == contact_type.value)
    return query.order_by(Contact.name).all()


@router.post("", response_model=ContactSchema, status_code=status.HTTP_201_CREATED)
def create_contact(
    contact_data: ContactCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("account", "create"))
):
    org_id = current_user.selected_org_id
    _check_links(db, org_id, contact_data.account_id, contact_data.vendor_id)

    existing = db.query(Contact).filter(
        Contact.org_id == org_id,
        Contact.email == contact_data.email,
        Contact.account_id == contact_data.account_id,
        Contact.vendor_id == contact_data.vendor_id,
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Contact with email {contact_data.email} already exists (ID: {existing.id})"
        )

    contact_dict = contact_data.model_dump()
    contact_dict["contact_type"] = contact_data.contact_type.value
    contact = Contact(**contact_dict, org_id=org_id)
    db.add(contact)
    db.commit()
    db.refresh(contact)
    return contact


@router.get("/{contact_id}", response_model=ContactSchema)
def get_contact(
    contact_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("account", "view"))
):
    return _get_contact_or_404(db, contact_id, current_user)


@router.patch("/{contact_id}", response_model=ContactSchema)
def update_contact(
    contact_id: UUID,
    contact_update: ContactUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("account", "update"))
):
    contact = _get_contact_or_404(db, contact_id, current_user)
    update_data = contact_update.model_dump(exclude_unset=True)
    _check_links(db, current_user.selected_org_id, update_data.get("account_id"), update_data.get("vendor_id"))
    if update_data.get("contact_type") is not None:
        update_data["contact_type"] = update_data["contact_type"].value
    if update_data.get("email"):
        update_data["email"] = update_data["email"].strip().lower()
    for field, value in update_data.items():
        setattr(contact, field, value)
    db.commit()
    db.refresh(contact)
    return contact


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contact(
    contact_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("account", "delete"))
):
    contact = _get_contact_or_404(db, contact_id, current_user)
    db.delete(contact)
    db.commit()
    return None
