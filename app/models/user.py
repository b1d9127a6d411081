from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
from app.db.session import Base


class User(Base):
    """
    A person who can sign in. Users are global; what they can see is decided
    by their Membership in each organization.
    """
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True, index=True)  # stored lowercased
    name = Column(String, nullable=False)
    hashed_password = Column(String, nullable=True)  # null until an invitation is redeemed
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
