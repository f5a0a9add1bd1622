"""Create book and library_snapshot tables.

Revision ID: 0001
Revises:
Create Date: 2026-10-16 09:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "book",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("authors", sa.String(), nullable=False),
        sa.Column("acquired_time", sa.BigInteger(), nullable=True),
        sa.Column("read_status", sa.String(length=16), nullable=True),
        sa.Column("cover_image_url", sa.String(), nullable=True),
        sa.Column("source", sa.String(length=32), nullable=True),
        sa.Column("added_date", sa.BigInteger(), nullable=True),
        sa.Column("memo", sa.Text(), nullable=True),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("superseding_id", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_book")),
    )
    with op.batch_alter_table("book", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_book_position"), ["position"], unique=False)

    op.create_table(
        "library_snapshot",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("total_books", sa.Integer(), nullable=False),
        sa.Column("manually_added", sa.Integer(), nullable=False),
        sa.Column("imported_from_bulk", sa.Integer(), nullable=False),
        sa.Column("last_import_date", sa.BigInteger(), nullable=True),
        sa.Column("saved_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_library_snapshot")),
    )


def downgrade() -> None:
    op.drop_table("library_snapshot")
    with op.batch_alter_table("book", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_book_position"))
    op.drop_table("book")
