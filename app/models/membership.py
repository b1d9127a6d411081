from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
import enum
from app.db.session import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    SALES = "sales"
    DELIVERY = "delivery"
    FINANCE = "finance"
    CLIENT_ADMIN = "client_admin"
    CLIENT_MEMBER = "client_member"
    VENDOR = "vendor"


class Space(str, enum.Enum):
    INTERNAL = "internal"
    CLIENT = "client"
    VENDOR = "vendor"


class Membership(Base):
    """
    A user's seat in an organization: role, space and the account or vendor
    contact the seat is scoped to.
    """
    __tablename__ = "memberships"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    org_id = Column(UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(50), nullable=False, default=UserRole.SALES.value)
    space = Column(String(50), nullable=False, default=Space.INTERNAL.value)
    account_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=True)  # client seats go with their account
    vendor_contact_id = Column(UUID(as_uuid=True), ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # One seat per user per organization
    __table_args__ = (
        UniqueConstraint("org_id", "user_id", name="uq_memberships_org_user"),
        CheckConstraint("space <> 'client' OR account_id IS NOT NULL", name="ck_memberships_client_account"),
    )
