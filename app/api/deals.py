from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional
from uuid import UUID
import logging
from app.db.session import get_db
from app.models.user import User
from app.models.account import Account
from app.models.contact import Contact
from app.models.membership import Membership
from app.models.deal import Deal, DealStage
from app.schemas.deal import Deal as DealSchema, DealCreate, DealUpdate, DealStageUpdate
from app.api.deps import require_permission

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_schema(deal: Deal) -> DealSchema:
    result = DealSchema.model_validate(deal)
    result.days_in_stage = deal.stage_age_days()
    return result


def _get_deal_or_404(db: Session, deal_id: UUID, current_user: User) -> Deal:
    deal = db.query(Deal).filter(
        Deal.id == deal_id,
        Deal.org_id == current_user.selected_org_id,
    ).first()
    if not deal:
        raise HTTPException(status_code=404, detail="Deal not found")
    return deal


def _check_links(db: Session, org_id: UUID, data: dict):
    """Linked account, contact and owner must all belong to the org."""
    if data.get("account_id") is not None:
        if not db.query(Account.id).filter(Account.id == data["account_id"], Account.org_id == org_id).first():
            raise HTTPException(status_code=404, detail="Account not found")
    if data.get("contact_id") is not None:
        if not db.query(Contact.id).filter(Contact.id == data["contact_id"], Contact.org_id == org_id).first():
            raise HTTPException(status_code=404, detail="Contact not found")
    if data.get("owner_id") is not None:
        if not db.query(Membership.id).filter(Membership.user_id == data["owner_id"], Membership.org_id == org_id).first():
            raise HTTPException(status_code=404, detail="Owner not found")


@router.get("", response_model=List[DealSchema])
def list_deals(
    stage: Optional[DealStage] = Query(None),
    account_id: Optional[UUID] = Query(None),
    owner_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("deal", "view"))
):
    """Pipeline of the selected org, in board order (position within stage)."""
    query = db.query(Deal).filter(Deal.org_id == current_user.selected_org_id)
    if stage:
        query = query.filter(Deal.stage == stage.value)
    if account_id:
        query = query.filter(Deal.account_id == account_id)
    if owner_id:
        query = query.filter(Deal.owner_id == owner_id)
    deals = query.order_by(Deal.position, Deal.created_at.desc()).all()
    return [_to_schema(d) for d in deals]


@router.post("", response_model=DealSchema, status_code=status.HTTP_201_CREATED)
def create_deal(
    deal_data: DealCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("deal", "create"))
):
    org_id = current_user.selected_org_id
    deal_dict = deal_data.model_dump()
    _check_links(db, org_id, deal_dict)
    deal_dict["stage"] = deal_data.stage.value
    if deal_dict["owner_id"] is None:
        deal_dict["owner_id"] = current_user.id
    deal = Deal(**deal_dict, org_id=org_id)
    db.add(deal)
    db.commit()
    db.refresh(deal)
    logger.info(f"[DEALS] Created deal {deal.id} in stage {deal.stage}")
    return _to_schema(deal)


@router.get("/{deal_id}", response_model=DealSchema)
def get_deal(
    deal_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("deal", "view"))
):
    return _to_schema(_get_deal_or_404(db, deal_id, current_user))


@router.patch("/{deal_id}", response_model=DealSchema)
def update_deal(
    deal_id: UUID,
    deal_update: DealUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("deal", "update"))
):
    deal = _get_deal_or_404(db, deal_id, current_user)
    update_data = deal_update.model_dump(exclude_unset=True)
    _check_links(db, current_user.selected_org_id, update_data)
    for field, value in update_data.items():
        setattr(deal, field, value)
    db.commit()
    db.refresh(deal)
    return _to_schema(deal)


@router.patch("/{deal_id}/stage", response_model=DealSchema)
def move_deal(
    deal_id: UUID,
    stage_update: DealStageUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("deal", "update"))
):
    """Move a deal on the board. Changing stage restarts the days-in-stage counter."""
    deal = _get_deal_or_404(db, deal_id, current_user)
    if deal.stage != stage_update.stage.value:
        logger.info(f"[DEALS] Deal {deal.id}: {deal.stage} -> {stage_update.stage.value}")
        deal.stage = stage_update.stage.value
        deal.stage_changed_at = datetime.utcnow()
    deal.position = stage_update.position
    db.commit()
    db.refresh(deal)
    return _to_schema(deal)


@router.delete("/{deal_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_deal(
    deal_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("deal", "delete"))
):
    deal = _get_deal_or_404(db, deal_id, current_user)
    db.delete(deal)
    db.commit()
    return None
