"""add project_deliverables

Revision ID: 003
Revises: 002
Create Date: 2026-01-20 09:30:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "003"
down_revision = "002"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "project_deliverables",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("org_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("deliverable_number", sa.Integer(), nullable=False),
        sa.Column("version", sa.String(10), nullable=False, server_default="v1"),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(20), nullable=False, server_default="other"),
        sa.Column("url", sa.String(), nullable=True),
        sa.Column("file_name", sa.String(), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="pending"),
        sa.Column("client_comment", sa.Text(), nullable=True),
        sa.Column("uploaded_by_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("reviewed_by_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("submitted_at", sa.DateTime(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("project_id", "deliverable_number", "version", name="uq_project_deliverables_number_version"),
        sa.CheckConstraint("deliverable_number BETWEEN 1 AND 3", name="ck_project_deliverables_number"),
    )
    op.create_index("ix_project_deliverables_org_id", "project_deliverables", ["org_id"])
    op.create_index("ix_project_deliverables_project_id", "project_deliverables", ["project_id"])
    op.create_index("ix_project_deliverables_status", "project_deliverables", ["status"])


def downgrade():
    op.drop_index("ix_project_deliverables_status", table_name="project_deliverables")
    op.drop_index("ix_project_deliverables_project_id", table_name="project_deliverables")
    op.drop_index("ix_project_deliverables_org_id", table_name="project_deliverables")
    op.drop_table("project_deliverables")
