"""Create notes table

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates the `notes` table with attachment columns for both storage
       variants (attachment_url for disk, file_data for inline).

Rollback: downgrade() drops the table (destructive, all notes are lost).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Column rationale is documented on the model in noteapp/models/note.py."""
    op.create_table(
        "notes",
        sa.Column(
            "id",
            sa.Integer(),
            autoincrement=True,
            nullable=False,
            comment="Server-generated identifier",
        ),
        sa.Column(
            "title",
            sa.String(255),
            nullable=False,
            comment="Note title (non-empty)",
        ),
        sa.Column(
            "content",
            sa.Text(),
            nullable=False,
            server_default=sa.text("''"),
            comment="Note body",
        ),
        sa.Column(
            "file_name",
            sa.String(255),
            nullable=True,
            comment="Original file name of the attachment",
        ),
        sa.Column(
            "file_type",
            sa.String(255),
            nullable=True,
            comment="MIME type of the attachment",
        ),
        sa.Column(
            "attachment_url",
            sa.String(512),
            nullable=True,
            comment="Public path of an attachment stored on disk",
        ),
        sa.Column(
            "file_data",
            sa.LargeBinary(),
            nullable=True,
            comment="Attachment bytes stored inline",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this note was created (UTC)",
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this note was last modified (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # GET /api/notes orders by updated_at DESC
    op.create_index(
        "idx_notes_updated_at",
        "notes",
        [sa.text("updated_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_notes_updated_at", table_name="notes")
    op.drop_table("notes")
