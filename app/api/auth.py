from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import timedelta
import logging
from app.db.session import get_db
from app.models.user import User
from app.models.membership import Membership
from app.models.organization import Organization
from app.schemas.user import UserLogin, LoginResponse, OrganizationChoice, CurrentUser, MembershipInfo
from app.core.security import verify_password, create_access_token
from app.core.config import settings
from app.core.permissions import get_role_permissions
from app.core.rate_limit import rate_limit
from app.api.deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def create_membership_token(user: User, membership: Membership) -> str:
    """Bearer token bound to one membership (org, role, space)."""
    return create_access_token(
        data={
            "sub": user.email,
            "user_id": str(user.id),
            "org_id": str(membership.org_id),  # Include org_id in token for multi-tenant isolation
            "role": membership.role,
            "space": membership.space,
        },
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


@router.post("/login", response_model=LoginResponse)
@rate_limit(max_requests=10, window_seconds=300)
def login(
    request: Request,
    user_credentials: UserLogin,
    db: Session = Depends(get_db)
):
    """
    Login endpoint. If the user holds memberships in several organizations and
    org_id is not provided, returns the organizations to choose from instead
    of a token.
    """
    # Normalize email and password to avoid copy-paste whitespace issues
    normalized_email = user_credentials.email.lower().strip()
    normalized_password = user_credentials.password.strip()

    user = db.query(User).filter(func.lower(User.email) == normalized_email).first()
    if not user or not user.is_active or not verify_password(normalized_password, user.hashed_password):
        # Don't reveal if user exists or not for security
        logger.info(f"[AUTH] Failed login attempt for {normalized_email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    memberships = db.query(Membership).filter(Membership.user_id == user.id).all()
    if not memberships:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User does not belong to any organization"
        )

    if user_credentials.org_id is not None:
        membership = next((m for m in memberships if m.org_id == user_credentials.org_id), None)
        if membership is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="User does not have access to this organization"
            )
    elif len(memberships) == 1:
        membership = memberships[0]
    else:
        orgs = db.query(Organization).filter(
            Organization.id.in_([m.org_id for m in memberships])
        ).all()
        org_names = {org.id: org.name for org in orgs}
        organizations = [
            OrganizationChoice(
                org_id=m.org_id,
                name=org_names.get(m.org_id, ""),
                role=m.role,
                space=m.space,
            )
            for m in memberships
        ]
        organizations.sort(key=lambda o: o.name)
        return LoginResponse(requires_org_selection=True, organizations=organizations)

    logger.info(f"[AUTH] User {user.id} logged into org {membership.org_id} as {membership.role}")
    return LoginResponse(
        requires_org_selection=False,
        access_token=create_membership_token(user, membership),
        token_type="bearer"
    )


@router.get("/me", response_model=CurrentUser)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Current user, the membership selected in the token and its permission matrix row."""
    membership = current_user.membership
    return CurrentUser(
        id=current_user.id,
        email=current_user.email,
        name=current_user.name,
        created_at=current_user.created_at,
        membership=MembershipInfo.model_validate(membership),
        permissions=get_role_permissions(membership.role),
    )
