"""SQLAlchemy adapter package for shelfkeeper."""

from __future__ import annotations

from .gateway import SqlAlchemySnapshotGateway, startup
from .mappings import book_table, library_snapshot_table, metadata

__all__ = [
    "SqlAlchemySnapshotGateway",
    "book_table",
    "library_snapshot_table",
    "metadata",
    "startup",
]
