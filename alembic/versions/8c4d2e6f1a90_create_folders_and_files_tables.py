"""create folders, files and file_shares tables

Revision ID: 8c4d2e6f1a90
Revises: 3b1f0c9a7d21
Create Date: 2026-09-29 15:40:07.208114

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8c4d2e6f1a90'
down_revision: Union[str, Sequence[str], None] = '3b1f0c9a7d21'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "folders",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_id", "name", name="uq_folders_owner_name"),
    )
    op.create_index("ix_folders_owner_id", "folders", ["owner_id"])

    # access_level / drive_sync_status are stored as plain strings so the
    # allowed values can change without an ALTER TYPE on PostgreSQL
    op.create_table(
        "files",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("blob_ref", sa.String(length=500), nullable=False),
        sa.Column("size", sa.BigInteger(), nullable=False),
        sa.Column("mime_type", sa.String(length=255), nullable=False),
        sa.Column(
            "uploaded_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("download_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("folder_id", sa.Integer(), nullable=True),
        sa.Column("access_level", sa.String(length=20), server_default="only_me", nullable=False),
        sa.Column("share_token", sa.String(length=128), nullable=True),
        sa.Column("share_token_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.Column(
            "drive_sync_status", sa.String(length=20), server_default="not_synced", nullable=False
        ),
        sa.Column("drive_file_id", sa.String(length=255), nullable=True),
        sa.Column("drive_link", sa.String(length=1024), nullable=True),
        sa.Column("drive_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("drive_sync_error", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["folder_id"], ["folders.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("share_token"),
    )
    op.create_index("ix_files_file_name", "files", ["file_name"])
    op.create_index("ix_files_owner_id", "files", ["owner_id"])
    op.create_index("idx_files_owner_name", "files", ["owner_id", "file_name"])

    op.create_table(
        "file_shares",
        sa.Column("file_id", sa.String(length=32), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["file_id"], ["files.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("file_id", "user_id"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("file_shares")
    op.drop_index("idx_files_owner_name", table_name="files")
    op.drop_index("ix_files_owner_id", table_name="files")
    op.drop_index("ix_files_file_name", table_name="files")
    op.drop_table("files")
    op.drop_index("ix_folders_owner_id", table_name="folders")
    op.drop_table("folders")
