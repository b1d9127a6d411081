from sqlalchemy import Column, String, DateTime, Text, Integer, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
import enum
from app.db.session import Base


class DealStage(str, enum.Enum):
    PROSPECT = "prospect"
    MEETING = "meeting"
    PROPOSAL = "proposal"
    AUDIT = "audit"
    NEGOTIATION = "negotiation"
    WON = "won"
    LOST = "lost"


class Deal(Base):
    """A sales opportunity moving through the pipeline stages."""
    __tablename__ = "deals"
    __table_args__ = (
        CheckConstraint("probability BETWEEN 0 AND 100", name="ck_deals_probability"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    org_id = Column(UUID(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True)
    account_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True, index=True)
    contact_id = Column(UUID(as_uuid=True), ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True)
    owner_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String, nullable=False, default="New deal")
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    probability = Column(Integer, nullable=False, default=0)
    stage = Column(String(50), nullable=False, default=DealStage.PROSPECT.value, index=True)
    position = Column(Integer, nullable=False, default=0)
    next_action = Column(Text, nullable=True)
    next_action_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    stage_changed_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def stage_age_days(self, now=None) -> int:
        now = now or datetime.utcnow()
        return max((now - self.stage_changed_at).days, 0)
