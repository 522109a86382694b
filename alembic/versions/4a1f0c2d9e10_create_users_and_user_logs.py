"""Create users and user_logs tables

Revision ID: 4a1f0c2d9e10
Revises:
Create Date: 2025-05-20
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4a1f0c2d9e10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
    )
    op.create_table(
        "user_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("entity_type", sa.String(), nullable=True),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(), nullable=True),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_user_logs_user_id"), "user_logs", ["user_id"], unique=False)
    op.create_index(op.f("ix_user_logs_action"), "user_logs", ["action"], unique=False)
    op.create_index(op.f("ix_user_logs_timestamp"), "user_logs", ["timestamp"], unique=False)
    op.create_index("ix_user_logs_action_timestamp", "user_logs", ["action", "timestamp"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_user_logs_action_timestamp", table_name="user_logs")
    op.drop_index(op.f("ix_user_logs_timestamp"), table_name="user_logs")
    op.drop_index(op.f("ix_user_logs_action"), table_name="user_logs")
    op.drop_index(op.f("ix_user_logs_user_id"), table_name="user_logs")
    op.drop_table("user_logs")
    op.drop_table("users")
