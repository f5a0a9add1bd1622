"""Derived counters for the library.

Counters are recomputed from the full record sequence after every mutation. This
is a linear rescan, fine for a personal catalogue; nothing else may write them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from shelfkeeper.domain.model import BookSource, LibraryMetadata, LibraryStatistics, ReadStatus

if TYPE_CHECKING:
    from collections.abc import Iterable

    from shelfkeeper.domain.model import BookRecord, EpochMillis


def compute_metadata(books: Iterable[BookRecord]) -> LibraryMetadata:
    total = 0
    manual = 0
    bulk = 0
    last_import: EpochMillis | None = None
    for book in books:
        total += 1
        if book.source is BookSource.MANUAL_ADD:
            manual += 1
        elif book.source is BookSource.BULK_IMPORT:
            bulk += 1
            if book.added_date is not None:
                last_import = (
                    book.added_date if last_import is None else max(last_import, book.added_date)
                )
    return LibraryMetadata(
        total_books=total,
        manually_added=manual,
        imported_from_bulk=bulk,
        last_import_date=last_import,
    )


def compute_statistics(books: Iterable[BookRecord]) -> LibraryStatistics:
    book_list = list(books)
    metadata = compute_metadata(book_list)
    read = sum(1 for book in book_list if book.read_status is ReadStatus.READ)
    from_catalog = sum(1 for book in book_list if book.source is BookSource.EXTERNAL_CATALOG)
    return LibraryStatistics(
        total=metadata.total_books,
        read=read,
        unread=metadata.total_books - read,
        manually_added=metadata.manually_added,
        imported_from_bulk=metadata.imported_from_bulk,
        from_catalog=from_catalog,
        last_import_date=metadata.last_import_date,
    )
