from sqlalchemy import Column, String, DateTime, Numeric, JSON, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
import enum
from app.db.session import Base


class VendorAvailability(str, enum.Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    UNAVAILABLE = "unavailable"


class Vendor(Base):
    """A sub-contractor company or freelancer working on projects."""
    __tablename__ = "vendors"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    org_id = Column(UUID(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    company = Column(String, nullable=True)
    skills = Column(JSON, nullable=True)  # list of strings
    daily_rate = Column(Numeric(10, 2), nullable=True)
    availability = Column(String(50), nullable=False, default=VendorAvailability.AVAILABLE.value)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
