"""SQLAlchemy table metadata for stored library snapshots."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Dialect,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

# One row per book; ``position`` keeps the collection's insertion order.
book_table = Table(
    "book",
    metadata,
    Column("id", String, primary_key=True),
    Column("position", Integer, nullable=False, index=True),
    Column("title", String, nullable=False, default=""),
    Column("authors", String, nullable=False, default=""),
    Column("acquired_time", BigInteger, nullable=True),
    Column("read_status", String(16), nullable=True),
    Column("cover_image_url", String, nullable=True),
    Column("source", String(32), nullable=True),
    Column("added_date", BigInteger, nullable=True),
    Column("memo", Text, nullable=True),
    Column("rating", Float, nullable=True),
    Column("superseding_id", String, nullable=True),
)

# Single row; its presence marks that a current-format snapshot was saved.
library_snapshot_table = Table(
    "library_snapshot",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("total_books", Integer, nullable=False, default=0),
    Column("manually_added", Integer, nullable=False, default=0),
    Column("imported_from_bulk", Integer, nullable=False, default=0),
    Column("last_import_date", BigInteger, nullable=True),
    Column("saved_at", UTCDateTime(), nullable=False),
)
