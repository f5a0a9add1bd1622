"""Snapshot document codec.

Current format::

    {"books": [<wire record>, ...],
     "metadata": {"totalBooks": .., "manuallyAdded": .., "importedFromBulk": ..,
                  "lastImportDate": ..}}

Legacy format (read-only, converted once)::

    {"exportDate": <millis or ISO-8601>, "stats": {...},
     "books": {<key>: <legacy record>, ...}}
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from shelfkeeper.domain.errors import InvalidIdentifierError, SnapshotFormatError
from shelfkeeper.domain.identifiers import resolve_identifier
from shelfkeeper.domain.model import BookSource
from shelfkeeper.domain.normalization import normalize, to_wire

if TYPE_CHECKING:
    from collections.abc import Iterable

    from shelfkeeper.domain.model import BookRecord, EpochMillis, LibraryMetadata
    from shelfkeeper.domain.ports.persistence import SnapshotDocument

log = logging.getLogger(__name__)


def snapshot_document(books: Iterable[BookRecord], metadata: LibraryMetadata) -> SnapshotDocument:
    return {
        "books": [to_wire(book) for book in books],
        "metadata": metadata_to_wire(metadata),
    }


def metadata_to_wire(metadata: LibraryMetadata) -> dict[str, object]:
    return {
        "totalBooks": metadata.total_books,
        "manuallyAdded": metadata.manually_added,
        "importedFromBulk": metadata.imported_from_bulk,
        "lastImportDate": metadata.last_import_date,
    }


def books_from_snapshot(document: Mapping[str, object]) -> list[BookRecord]:
    """Decode a current-format document, normalizing each stored record.

    Entries without a usable identifier, or repeating an earlier identifier, are
    dropped with a warning so the loaded collection keeps ids unique.
    """

    entries = document.get("books")
    if not isinstance(entries, list):
        raise SnapshotFormatError("Snapshot 'books' must be a list")

    books: list[BookRecord] = []
    seen: set[str] = set()
    for position, raw in enumerate(entries):
        if not isinstance(raw, Mapping):
            log.warning("Dropping snapshot entry %s: not an object", position)
            continue
        try:
            book_id = resolve_identifier(raw)
        except InvalidIdentifierError as exc:
            log.warning("Dropping snapshot entry %s: %s", position, exc)
            continue
        if book_id in seen:
            log.warning("Dropping snapshot entry %s: repeated id %s", position, book_id)
            continue
        seen.add(book_id)
        books.append(normalize(raw, book_id))
    return books


def books_from_legacy(document: Mapping[str, object], *, now: EpochMillis) -> list[BookRecord]:
    """Convert a keyed legacy snapshot; every record is attributed to bulk import."""

    entries = document.get("books")
    if not isinstance(entries, Mapping):
        raise SnapshotFormatError("Legacy snapshot 'books' must be a mapping")

    exported_at = parse_timestamp_millis(document.get("exportDate"))
    books: list[BookRecord] = []
    seen: set[str] = set()
    for key, raw in entries.items():
        if not isinstance(raw, Mapping) or not str(key).strip():
            log.warning("Dropping legacy entry %r: not a keyed object", key)
            continue
        book = normalize(raw, str(key).strip())
        if book.id in seen:
            log.warning("Dropping legacy entry %r: repeated id %s", key, book.id)
            continue
        seen.add(book.id)
        added = book.added_date if book.added_date is not None else exported_at
        books.append(
            replace(
                book,
                source=BookSource.BULK_IMPORT,
                added_date=added if added is not None else now,
            )
        )
    return books


def parse_timestamp_millis(value: object) -> EpochMillis | None:
    """Accept epoch millis or an ISO-8601 string; anything else is ``None``."""

    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.isdigit():
            return int(text)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            log.warning("Unparseable timestamp %r", value)
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return int(parsed.timestamp() * 1000)
    return None
