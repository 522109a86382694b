"""Add monitored_users table with one active entry per user and reason

Revision ID: 8c3e5b7a1f42
Revises: 4a1f0c2d9e10
Create Date: 2025-05-27
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "8c3e5b7a1f42"
down_revision: Union[str, Sequence[str], None] = "4a1f0c2d9e10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "monitored_users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(), nullable=False),
        sa.Column("actions_count", sa.Integer(), nullable=False),
        sa.Column("time_window", sa.String(), nullable=False),
        sa.Column("first_detected", sa.DateTime(), nullable=False),
        sa.Column("last_updated", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_monitored_users_user_id"), "monitored_users", ["user_id"], unique=False)
    op.create_index(op.f("ix_monitored_users_last_updated"), "monitored_users", ["last_updated"], unique=False)
    op.create_index(op.f("ix_monitored_users_status"), "monitored_users", ["status"], unique=False)
    # Partial unique index: history rows (resolved/false_positive) are not constrained.
    op.create_index(
        "uq_monitored_users_active_reason",
        "monitored_users",
        ["user_id", "reason"],
        unique=True,
        sqlite_where=sa.text("status = 'active'"),
        postgresql_where=sa.text("status = 'active'"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("uq_monitored_users_active_reason", table_name="monitored_users")
    op.drop_index(op.f("ix_monitored_users_status"), table_name="monitored_users")
    op.drop_index(op.f("ix_monitored_users_last_updated"), table_name="monitored_users")
    op.drop_index(op.f("ix_monitored_users_user_id"), table_name="monitored_users")
    op.drop_table("monitored_users")
