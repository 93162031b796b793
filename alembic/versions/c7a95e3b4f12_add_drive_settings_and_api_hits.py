"""add google drive settings to users and api_hits table

Revision ID: c7a95e3b4f12
Revises: 8c4d2e6f1a90
Create Date: 2026-10-02 11:05:54.873619

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c7a95e3b4f12'
down_revision: Union[str, Sequence[str], None] = '8c4d2e6f1a90'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    with op.batch_alter_table("users") as batch_op:
        batch_op.add_column(sa.Column("drive_access_token", sa.Text(), nullable=True))
        batch_op.add_column(sa.Column("drive_refresh_token", sa.Text(), nullable=True))
        batch_op.add_column(
            sa.Column("drive_token_expiry", sa.DateTime(timezone=True), nullable=True)
        )
        batch_op.add_column(
            sa.Column(
                "drive_sync_enabled", sa.Boolean(), server_default=sa.false(), nullable=False
            )
        )

    op.create_table(
        "api_hits",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("endpoint", sa.String(length=500), nullable=False),
        sa.Column("hit_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("last_hit", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "endpoint", name="uq_api_hits_user_endpoint"),
    )
    op.create_index("ix_api_hits_user_id", "api_hits", ["user_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_api_hits_user_id", table_name="api_hits")
    op.drop_table("api_hits")

    with op.batch_alter_table("users") as batch_op:
        batch_op.drop_column("drive_sync_enabled")
        batch_op.drop_column("drive_token_expiry")
        batch_op.drop_column("drive_refresh_token")
        batch_op.drop_column("drive_access_token")
