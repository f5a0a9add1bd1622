"""In-memory, insertion-ordered book collection."""

from __future__ import annotations

import math
from contextlib import contextmanager
from typing import TYPE_CHECKING

from shelfkeeper.domain.errors import DuplicateIdentifierError, NotFoundError
from shelfkeeper.domain.model import MUTABLE_FIELDS, OPTIONAL_FIELDS, UNSET, ReadStatus
from shelfkeeper.domain.statistics import compute_metadata

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from shelfkeeper.domain.model import BookRecord, LibraryMetadata

_TEXT_FIELDS = frozenset({"title", "authors", "cover_image_url", "memo", "superseding_id"})


class LibraryCollection:
    """Books keyed by ``id``; dict insertion order is the display order.

    Every mutation refreshes ``metadata`` and marks the collection dirty until a
    caller confirms a successful save with ``mark_saved``.
    """

    def __init__(self, books: Iterable[BookRecord] = ()) -> None:
        self._books: dict[str, BookRecord] = _index(books)
        self._metadata = compute_metadata(self._books.values())
        self._dirty = False
        self._deferred = 0

    def __len__(self) -> int:
        return len(self._books)

    def __iter__(self) -> Iterator[BookRecord]:
        return iter(self._books.values())

    def __contains__(self, book_id: object) -> bool:
        return book_id in self._books

    @property
    def books(self) -> tuple[BookRecord, ...]:
        return tuple(self._books.values())

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(self._books)

    @property
    def metadata(self) -> LibraryMetadata:
        return self._metadata

    @property
    def dirty(self) -> bool:
        return self._dirty

    def mark_saved(self) -> None:
        self._dirty = False

    def find_by_id(self, book_id: str) -> BookRecord | None:
        return self._books.get(book_id)

    def search(self, query: str) -> list[BookRecord]:
        needle = query.lower()
        return [
            book
            for book in self._books.values()
            if needle in book.title.lower() or needle in book.authors.lower()
        ]

    def insert(self, book: BookRecord) -> None:
        self._insert(book)
        self._touch()

    def update_fields(self, book_id: str, changes: Mapping[str, object]) -> BookRecord:
        """Apply ``changes`` to the record; ``UNSET`` removes an optional field."""

        book = self._books.get(book_id)
        if book is None:
            raise NotFoundError(book_id)
        _validate_changes(changes)
        for name, value in changes.items():
            setattr(book, name, None if value is UNSET else value)
        self._touch()
        return book

    def remove(self, book_id: str) -> BookRecord:
        try:
            book = self._books.pop(book_id)
        except KeyError:
            raise NotFoundError(book_id) from None
        self._touch()
        return book

    def clear(self) -> None:
        self._books.clear()
        self._touch()

    def replace_all(self, books: Iterable[BookRecord]) -> None:
        """Swap in a new record sequence (initial load or migration)."""

        self._books = _index(books)
        self._touch()

    @contextmanager
    def deferred_refresh(self) -> Iterator[LibraryCollection]:
        """Recompute metadata once on exit instead of after every mutation."""

        self._deferred += 1
        try:
            yield self
        finally:
            self._deferred -= 1
            if not self._deferred:
                self.refresh_metadata()

    def refresh_metadata(self) -> LibraryMetadata:
        self._metadata = compute_metadata(self._books.values())
        return self._metadata

    def _insert(self, book: BookRecord) -> None:
        if book.id in self._books:
            raise DuplicateIdentifierError(book.id)
        self._books[book.id] = book

    def _touch(self) -> None:
        self._dirty = True
        if not self._deferred:
            self.refresh_metadata()


def _index(books: Iterable[BookRecord]) -> dict[str, BookRecord]:
    indexed: dict[str, BookRecord] = {}
    for book in books:
        if book.id in indexed:
            raise DuplicateIdentifierError(book.id)
        indexed[book.id] = book
    return indexed


def _validate_changes(changes: Mapping[str, object]) -> None:
    for name, value in changes.items():
        if name not in MUTABLE_FIELDS:
            raise ValueError(f"Field cannot be updated: {name}")
        if value is UNSET and name not in OPTIONAL_FIELDS:
            raise ValueError(f"Required field cannot be removed: {name}")
        if value is None and name not in OPTIONAL_FIELDS:
            raise ValueError(f"Required field cannot be empty: {name}")
        if value is None or value is UNSET:
            continue
        if not _accepts(name, value):
            raise ValueError(f"Invalid value for {name}: {value!r}")


def _accepts(name: str, value: object) -> bool:
    if name in _TEXT_FIELDS:
        return isinstance(value, str)
    if name == "read_status":
        return isinstance(value, ReadStatus)
    if isinstance(value, bool):
        return False
    if name == "acquired_time":
        return isinstance(value, int)
    # rating
    return isinstance(value, (int, float)) and math.isfinite(value)
