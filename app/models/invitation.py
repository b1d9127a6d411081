from sqlalchemy import Column, String, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
from typing import Optional
import enum
from app.db.session import Base


class InvitationStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"  # derived from expires_at, never written
    REVOKED = "revoked"


class Invitation(Base):
    """
    Magic-link invitation binding an email to a role and space.
    Token is one-time use and expires; only its SHA-256 digest is stored.
    """
    __tablename__ = "invitations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    org_id = Column(UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)
    name = Column(String, nullable=True)
    role = Column(String(50), nullable=False)
    space = Column(String(50), nullable=False)
    status = Column(String(50), nullable=False, default=InvitationStatus.PENDING.value, index=True)
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)
    account_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=True)
    vendor_id = Column(UUID(as_uuid=True), ForeignKey("vendors.id", ondelete="CASCADE"), nullable=True)
    vendor_contact_id = Column(UUID(as_uuid=True), ForeignKey("contacts.id", ondelete="CASCADE"), nullable=True)
    created_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("space <> 'client' OR account_id IS NOT NULL", name="ck_invitations_client_account"),
        CheckConstraint("vendor_id IS NULL OR vendor_contact_id IS NULL", name="ck_invitations_single_vendor_link"),
    )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.utcnow()) > self.expires_at

    def display_status(self, now: Optional[datetime] = None) -> str:
        """
        Status as shown to users. A past expires_at wins over whatever is
        stored, accepted and revoked included.
        """
        if self.is_expired(now):
            return InvitationStatus.EXPIRED.value
        return self.status
