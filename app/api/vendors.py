from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from app.db.session import get_db
from app.models.user import User
from app.models.vendor import Vendor, VendorAvailability
from app.schemas.vendor import Vendor as VendorSchema, VendorCreate, VendorUpdate
from app.api.deps import require_permission

router = APIRouter()


def _get_vendor_or_404(db: Session, vendor_id: UUID, org_id: UUID) -> Vendor:
    # CRITICAL: Filter by org_id for multi-tenant isolation
    vendor = db.query(Vendor).filter(Vendor.id == vendor_id, Vendor.org_id == org_id).first()
    if not vendor:
        raise HTTPException(status_code=404, detail="Vendor not found")
    return vendor


@router.get("", response_model=List[VendorSchema])
def list_vendors(
    availability: Optional[VendorAvailability] = Query(None),
    skill: Optional[str] = Query(None, description="Only vendors listing this skill"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("vendor", "view"))
):
    query = db.query(Vendor).filter(Vendor.org_id == current_user.selected_org_id)
    if availability:
        query = query.filter(Vendor.availability == availability.value)
    vendors = query.order_by(Vendor.name).all()
    if skill:
        # skills is a JSON list, filter in Python so it works on every backend
        wanted = skill.strip().lower()
        vendors = [v for v in vendors if any(s.lower() == wanted for s in (v.skills or []))]
    return vendors


@router.post("", response_model=VendorSchema, status_code=status.HTTP_201_CREATED)
def create_vendor(
    vendor_data: VendorCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("vendor", "create"))
):
    vendor_dict = vendor_data.model_dump()
    vendor_dict["availability"] = vendor_data.availability.value
    vendor = Vendor(**vendor_dict, org_id=current_user.selected_org_id)
    db.add(vendor)
    db.commit()
    db.refresh(vendor)
    return vendor


@router.get("/{vendor_id}", response_model=VendorSchema)
def get_vendor(
    vendor_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("vendor", "view"))
):
    return _get_vendor_or_404(db, vendor_id, current_user.selected_org_id)


@router.patch("/{vendor_id}", response_model=VendorSchema)
def update_vendor(
    vendor_id: UUID,
    vendor_update: VendorUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("vendor", "update"))
):
    vendor = _get_vendor_or_404(db, vendor_id, current_user.selected_org_id)
    update_data = vendor_update.model_dump(exclude_unset=True)
    if update_data.get("availability") is not None:
        update_data["availability"] = update_data["availability"].value
    for field, value in update_data.items():
        setattr(vendor, field, value)
    db.commit()
    db.refresh(vendor)
    return vendor


@router.delete("/{vendor_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_vendor(
    vendor_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("vendor", "delete"))
):
    vendor = _get_vendor_or_404(db, vendor_id, current_user.selected_org_id)
    db.delete(vendor)
    db.commit()
    return None
