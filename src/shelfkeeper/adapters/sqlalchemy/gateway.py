"""SQLAlchemy-backed snapshot gateway.

A save replaces every stored row inside one transaction, so a failed write
leaves the previous snapshot intact.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, delete, insert, select
from sqlalchemy.exc import SQLAlchemyError

from shelfkeeper.config import get_database_config
from shelfkeeper.domain.errors import SnapshotReadError, SnapshotWriteError
from shelfkeeper.domain.normalization import WIRE_FIELDS

from .mappings import book_table, library_snapshot_table
from .migrations import upgrade_head

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine, RowMapping

    from shelfkeeper.domain.ports import SnapshotDocument

log = logging.getLogger(__name__)

SNAPSHOT_ROW_ID = 1

_METADATA_COLUMNS: dict[str, str] = {
    "totalBooks": "total_books",
    "manuallyAdded": "manually_added",
    "importedFromBulk": "imported_from_bulk",
    "lastImportDate": "last_import_date",
}


def startup(*, engine: Engine | None = None, database_uri: str | None = None) -> Engine:
    """Create the engine (unless given) and upgrade the schema to head."""

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri,
        future=True,
    )
    upgrade_head(engine=resolved_engine)
    return resolved_engine


class SqlAlchemySnapshotGateway:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def load_snapshot(self) -> SnapshotDocument | None:
        try:
            with self._engine.connect() as connection:
                header = connection.execute(select(library_snapshot_table)).mappings().first()
                if header is None:
                    return None
                rows = connection.execute(
                    select(book_table).order_by(book_table.c.position)
                ).mappings()
                books = [_row_to_wire(row) for row in rows]
        except SQLAlchemyError as exc:
            raise SnapshotReadError(f"Could not read snapshot from database: {exc}") from exc

        return {
            "books": books,
            "metadata": {wire: header[column] for wire, column in _METADATA_COLUMNS.items()},
        }

    def save_snapshot(self, document: SnapshotDocument) -> None:
        books = document.get("books") or []
        metadata = document.get("metadata") or {}
        rows = [_wire_to_row(entry, position) for position, entry in enumerate(books)]
        try:
            with self._engine.begin() as connection:
                self._replace(connection, rows, metadata)
        except SQLAlchemyError as exc:
            raise SnapshotWriteError(f"Could not write snapshot to database: {exc}") from exc
        log.debug("Stored snapshot with %s books", len(rows))

    def _replace(
        self,
        connection: Connection,
        rows: list[dict[str, Any]],
        metadata: Mapping[str, Any],
    ) -> None:
        connection.execute(delete(book_table))
        if rows:
            connection.execute(insert(book_table), rows)
        connection.execute(delete(library_snapshot_table))
        connection.execute(insert(library_snapshot_table).values(**_metadata_row(metadata)))


def _metadata_row(metadata: Mapping[str, Any]) -> dict[str, Any]:
    row: dict[str, Any] = {"id": SNAPSHOT_ROW_ID, "saved_at": datetime.now(UTC)}
    for wire, column in _METADATA_COLUMNS.items():
        row[column] = metadata.get(wire)
    for column in ("total_books", "manually_added", "imported_from_bulk"):
        row[column] = row[column] or 0
    return row


def _wire_to_row(entry: Mapping[str, Any], position: int) -> dict[str, Any]:
    row: dict[str, Any] = {"position": position}
    for attribute, wire in WIRE_FIELDS.items():
        row[attribute] = entry.get(wire)
    row["title"] = row["title"] or ""
    row["authors"] = row["authors"] or ""
    return row


def _row_to_wire(row: RowMapping) -> dict[str, Any]:
    entry: dict[str, Any] = {}
    for attribute, wire in WIRE_FIELDS.items():
        value = row[attribute]
        if value is None:
            continue
        if attribute == "rating" and float(value).is_integer():
            value = int(value)
        entry[wire] = value
    return entry
