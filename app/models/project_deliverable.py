from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
import enum
from app.db.session import Base


class DeliverableStatus(str, enum.Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REVISION_REQUESTED = "revision_requested"


class DeliverableType(str, enum.Enum):
    LOOM = "loom"
    JSON = "json"
    PDF = "pdf"
    OTHER = "other"


class DeliverableVersion(str, enum.Enum):
    V1 = "v1"
    V2 = "v2"
    V3 = "v3"


class ProjectDeliverable(Base):
    """
    One version (v1..v3) of a numbered (1..3) project deliverable,
    reviewed by the client.
    """
    __tablename__ = "project_deliverables"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    org_id = Column(UUID(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True)
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    deliverable_number = Column(Integer, nullable=False)
    version = Column(String(10), nullable=False, default=DeliverableVersion.V1.value)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False, default=DeliverableType.OTHER.value)
    url = Column(String, nullable=True)
    file_name = Column(String, nullable=True)
    file_size = Column(Integer, nullable=True)
    status = Column(String(50), nullable=False, default=DeliverableStatus.PENDING.value, index=True)
    client_comment = Column(Text, nullable=True)
    uploaded_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    submitted_at = Column(DateTime, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("project_id", "deliverable_number", "version", name="uq_project_deliverables_number_version"),
        CheckConstraint("deliverable_number BETWEEN 1 AND 3", name="ck_project_deliverables_number"),
    )
