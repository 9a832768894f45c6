"""create access_requests, one open request per contact+project

Revision ID: 003
Revises: 002
Create Date: 2026-10-18

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy import text

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

OPEN_WHERE = "status IN ('PENDING', 'APPROVED')"


def upgrade() -> None:
    op.create_table(
        "access_requests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("contact_id", sa.String(36), sa.ForeignKey("contacts.id"), nullable=False, index=True),
        sa.Column("project_id", sa.String(36), sa.ForeignKey("projects.id"), nullable=False, index=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("requested_role", sa.String(20), nullable=False),
        sa.Column("justification", sa.Text(), nullable=True),
        sa.Column("auto_approval_reason", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("processed_at", sa.DateTime(), nullable=True),
        sa.Column("processed_by_id", sa.String(36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("revoked_at", sa.DateTime(), nullable=True),
        sa.Column("revoked_by_id", sa.String(36), sa.ForeignKey("users.id"), nullable=True),
        sa.CheckConstraint(
            "NOT (auto_approval_reason IS NOT NULL AND processed_by_id IS NOT NULL)",
            name="ck_access_requests_single_approver",
        ),
    )
    # One open (PENDING/APPROVED) request per contact+project (partial unique index)
    op.create_index(
        "ix_access_requests_contact_project_open",
        "access_requests",
        ["contact_id", "project_id"],
        unique=True,
        postgresql_where=text(OPEN_WHERE),
        sqlite_where=text(OPEN_WHERE),
    )


def downgrade() -> None:
    op.drop_index(
        "ix_access_requests_contact_project_open",
        table_name="access_requests",
    )
    op.drop_table("access_requests")
