from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from app.db.session import get_db
from app.models.user import User
from app.models.account import Account, AccountStatus
from app.schemas.account import Account as AccountSchema, AccountCreate, AccountUpdate
from app.core.permissions import CLIENT_ROLES
from app.api.deps import require_permission

router = APIRouter()


def _scoped_accounts(db: Session, current_user: User):
    # CRITICAL: Filter by org_id for multi-tenant isolation
    query = db.query(Account).filter(Account.org_id == current_user.selected_org_id)
    membership = current_user.membership
    if membership.role in CLIENT_ROLES:
        # Client users only ever see their own account
        query = query.filter(Account.id == membership.account_id)
    return query


def _get_account_or_404(db: Session, account_id: UUID, current_user: User) -> Account:
    account = _scoped_accounts(db, current_user).filter(Account.id == account_id).first()
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")
    return account


@router.get("", response_model=List[AccountSchema])
def list_accounts(
    account_status: Optional[AccountStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("account", "view"))
):
    query = _scoped_accounts(db, current_user)
    if account_status:
        query = query.filter(Account.status == account_status.value)
    return query.order_by(Account.name).all()


@router.post("", response_model=AccountSchema, status_code=status.HTTP_201_CREATED)
def create_account(
    account_data: AccountCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("account", "create"))
):
    account_dict = account_data.model_dump()
    account_dict["status"] = account_data.status.value
    # CRITICAL: Set org_id from selected org (token)
    account = Account(**account_dict, org_id=current_user.selected_org_id)
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


@router.get("/{account_id}", response_model=AccountSchema)
def get_account(
    account_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("account", "view"))
):
    return _get_account_or_404(db, account_id, current_user)


@router.patch("/{account_id}", response_model=AccountSchema)
def update_account(
    account_id: UUID,
    account_update: AccountUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("account", "update"))
):
    account = _get_account_or_404(db, account_id, current_user)
    update_data = account_update.model_dump(exclude_unset=True)
    if update_data.get("status") is not None:
        update_data["status"] = update_data["status"].value
    for field, value in update_data.items():
        setattr(account, field, value)
    db.commit()
    db.refresh(account)
    return account


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    account_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("account", "delete"))
):
    account = _get_account_or_404(db, account_id, current_user)
    db.delete(account)
    db.commit()
    return None
