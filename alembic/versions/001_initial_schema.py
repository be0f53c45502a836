"""Initial schema with jobs table

Revision ID: 001
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JOB_STATUSES = ("waiting", "active", "completed", "failed")


def upgrade() -> None:
    op.create_table(
        "jobs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("type", sa.String(100), nullable=False),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*JOB_STATUSES, name="job_status", create_constraint=True),
            nullable=False,
            server_default="waiting",
        ),
        sa.Column("result", sa.JSON(none_as_null=True), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("retry_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    # FIFO polling
    op.create_index("ix_jobs_status_created", "jobs", ["status", "created_at"])

    # Timeout scans over active jobs only
    op.create_index(
        "ix_jobs_started",
        "jobs",
        ["started_at"],
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )

    # Cleanup of terminal jobs
    op.create_index("ix_jobs_status_completed", "jobs", ["status", "completed_at"])


def downgrade() -> None:
    op.drop_index("ix_jobs_status_completed", table_name="jobs")
    op.drop_index("ix_jobs_started", table_name="jobs")
    op.drop_index("ix_jobs_status_created", table_name="jobs")

    op.drop_table("jobs")

    # Drop enum (no-op outside PostgreSQL)
    sa.Enum(name="job_status").drop(op.get_bind(), checkfirst=True)
