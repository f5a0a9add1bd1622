"""Application-facing library operations.

Every mutating call validates its input, mutates the collection, and then
persists one full snapshot through the ``SnapshotGateway``. A failed write
surfaces as ``SnapshotWriteError``; the in-memory state is kept and the
collection stays dirty so a later ``save`` can retry.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from shelfkeeper.domain.collection import LibraryCollection
from shelfkeeper.domain.errors import (
    DuplicateIdentifierError,
    InvalidIdentifierError,
    NotFoundError,
    SnapshotFormatError,
    SnapshotReadError,
    SnapshotWriteError,
    TransportError,
)
from shelfkeeper.domain.identifiers import (
    CATALOG_LINK_PATTERNS,
    MARKETPLACE_LINK_PATTERNS,
    extract_identifier_from_url,
    is_valid_catalog_volume_id,
    looks_like_catalog_link,
    resolve_identifier,
)
from shelfkeeper.domain.links import marketplace_cover_url
from shelfkeeper.domain.model import BookRecord, BookSource, ReadStatus
from shelfkeeper.domain.normalization import normalize
from shelfkeeper.domain.ports import BookFragment
from shelfkeeper.domain.reconciliation import MergePolicy, reconcile_batch
from shelfkeeper.domain.snapshot import books_from_legacy, books_from_snapshot, snapshot_document
from shelfkeeper.domain.statistics import compute_statistics

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from shelfkeeper.domain.model import EpochMillis, LibraryMetadata, LibraryStatistics
    from shelfkeeper.domain.ports import (
        BookMetadataLookup,
        CatalogVolumeLookup,
        LegacySnapshotSource,
        SnapshotDocument,
        SnapshotGateway,
    )
    from shelfkeeper.domain.reconciliation import ImportResult

log = logging.getLogger(__name__)

DEFAULT_TITLE: Final[str] = "Untitled"
DEFAULT_AUTHORS: Final[str] = "Unknown author"


class LoadOrigin(StrEnum):
    SNAPSHOT = "snapshot"
    LEGACY = "legacy"
    EMPTY = "empty"


def now_millis() -> EpochMillis:
    return int(datetime.now(UTC).timestamp() * 1000)


class LibraryService:
    def __init__(
        self,
        *,
        gateway: SnapshotGateway,
        collection: LibraryCollection | None = None,
        metadata_lookup: BookMetadataLookup | None = None,
        volume_lookup: CatalogVolumeLookup | None = None,
        clock: Callable[[], EpochMillis] = now_millis,
    ) -> None:
        self.collection = collection if collection is not None else LibraryCollection()
        self._gateway = gateway
        self._metadata_lookup = metadata_lookup
        self._volume_lookup = volume_lookup
        self._clock = clock

    # --- Loading -------------------------------------------------------------

    def initialize(self, legacy_source: LegacySnapshotSource | None = None) -> LoadOrigin:
        """Load the library: current snapshot, else legacy (converted once), else empty."""

        books = self._load_current()
        if books is not None:
            self.collection.replace_all(books)
            self.collection.mark_saved()
            log.info("Loaded %s books from snapshot", len(self.collection))
            return LoadOrigin.SNAPSHOT

        legacy = self._load_legacy(legacy_source) if legacy_source is not None else None
        if legacy is not None:
            self.collection.replace_all(legacy)
            log.info("Converted %s books from legacy snapshot", len(self.collection))
            self._persist()
            return LoadOrigin.LEGACY

        self.collection.replace_all(())
        self.collection.mark_saved()
        log.info("Starting with an empty library")
        return LoadOrigin.EMPTY

    def _load_current(self) -> list[BookRecord] | None:
        try:
            document = self._gateway.load_snapshot()
        except SnapshotReadError as exc:
            log.warning("Could not read current snapshot, trying legacy: %s", exc)
            return None
        if document is None:
            return None
        try:
            return books_from_snapshot(document)
        except SnapshotFormatError as exc:
            log.warning("Ignoring malformed snapshot: %s", exc)
            return None

    def _load_legacy(self, source: LegacySnapshotSource) -> list[BookRecord] | None:
        try:
            document = source.load_legacy_snapshot()
        except SnapshotReadError as exc:
            log.warning("Could not read legacy snapshot: %s", exc)
            return None
        if document is None:
            return None
        try:
            return books_from_legacy(document, now=self._clock())
        except SnapshotFormatError as exc:
            log.warning("Ignoring malformed legacy snapshot: %s", exc)
            return None

    # --- Bulk input ----------------------------------------------------------

    def migrate_initial(self, raw_records: Iterable[object]) -> ImportResult:
        """Replace the whole collection with ``raw_records``."""

        staging = LibraryCollection()
        result = reconcile_batch(
            raw_records,
            staging,
            policy=MergePolicy.INSERT_ONLY,
            clock=self._clock,
        )
        self.collection.replace_all(staging.books)
        self._persist(result=result)
        return result

    def import_batch(
        self,
        raw_records: Iterable[object],
        *,
        policy: MergePolicy = MergePolicy.MERGE_WITH_UPDATE,
    ) -> ImportResult:
        with self.collection.deferred_refresh():
            result = reconcile_batch(raw_records, self.collection, policy=policy, clock=self._clock)
        self._persist(result=result)
        return result

    # --- Single records ------------------------------------------------------

    def add_manually(self, raw: Mapping[str, object]) -> BookRecord:
        book_id = resolve_identifier(raw)
        self._ensure_absent(book_id)
        book = self._manual_record(raw, book_id)
        self.collection.insert(book)
        log.info("Added %s (%s)", book.id, book.title or "no title")
        self._persist()
        return book

    def add_from_marketplace_link(self, url: str) -> BookRecord:
        book_id = extract_identifier_from_url(url.strip(), MARKETPLACE_LINK_PATTERNS)
        if book_id is None:
            raise InvalidIdentifierError(f"No marketplace identifier found in link: {url}")
        self._ensure_absent(book_id)
        fragment = self._enrich(book_id)
        return self.add_manually(_fragment_to_raw(fragment))

    def add_from_catalog(self, url_or_id: str) -> BookRecord:
        value = url_or_id.strip()
        if looks_like_catalog_link(value):
            extracted = extract_identifier_from_url(value, CATALOG_LINK_PATTERNS)
            if extracted is None:
                raise InvalidIdentifierError(f"No catalog volume id found in link: {url_or_id}")
            value = extracted
        if not is_valid_catalog_volume_id(value):
            raise InvalidIdentifierError(f"Not a valid catalog volume id: {value!r}")
        self._ensure_absent(value)

        fragment = self._enrich_volume(value)
        now = self._clock()
        book = BookRecord(
            id=value,
            title=fragment.title,
            authors=fragment.authors,
            acquired_time=now,
            cover_image_url=fragment.cover_image_url,
            source=BookSource.EXTERNAL_CATALOG,
            added_date=now,
        )
        self.collection.insert(book)
        log.info("Added catalog volume %s (%s)", book.id, book.title or "no title")
        self._persist()
        return book

    def update_book(self, book_id: str, changes: Mapping[str, object]) -> BookRecord:
        book = self.collection.update_fields(book_id, _coerce_changes(changes))
        self._persist()
        return book

    def delete_book(self, book_id: str, *, hard_delete: bool = False) -> bool:
        if book_id not in self.collection:
            raise NotFoundError(book_id)
        if hard_delete:
            self.collection.remove(book_id)
            log.info("Deleted %s", book_id)
        else:
            log.info("Delete of %s requested without hard_delete; collection unchanged", book_id)
        self._persist()
        return True

    def clear_all(self) -> None:
        count = len(self.collection)
        self.collection.clear()
        log.info("Cleared %s books", count)
        self._persist()

    # --- Read side -----------------------------------------------------------

    @property
    def books(self) -> tuple[BookRecord, ...]:
        return self.collection.books

    @property
    def metadata(self) -> LibraryMetadata:
        return self.collection.metadata

    def find_by_id(self, book_id: str) -> BookRecord | None:
        return self.collection.find_by_id(book_id)

    def search(self, query: str) -> list[BookRecord]:
        return self.collection.search(query)

    def statistics(self) -> LibraryStatistics:
        return compute_statistics(self.collection)

    def snapshot(self) -> SnapshotDocument:
        return snapshot_document(self.collection, self.collection.metadata)

    # --- Persistence ---------------------------------------------------------

    def save(self) -> None:
        self._gateway.save_snapshot(self.snapshot())
        self.collection.mark_saved()

    def _persist(self, *, result: ImportResult | None = None) -> None:
        try:
            self.save()
        except SnapshotWriteError as exc:
            log.error("Snapshot write failed; library kept in memory: %s", exc)
            if result is not None and exc.result is None:
                raise SnapshotWriteError(str(exc), result=result) from exc
            raise

    # --- Helpers -------------------------------------------------------------

    def _ensure_absent(self, book_id: str) -> None:
        if book_id in self.collection:
            raise DuplicateIdentifierError(book_id)

    def _manual_record(self, raw: Mapping[str, object], book_id: str) -> BookRecord:
        base = normalize(raw, book_id)
        now = self._clock()
        return replace(
            base,
            id=book_id,
            title=DEFAULT_TITLE if raw.get("title") is None else base.title,
            authors=DEFAULT_AUTHORS if raw.get("authors") is None else base.authors,
            acquired_time=base.acquired_time if base.acquired_time is not None else now,
            cover_image_url=base.cover_image_url or marketplace_cover_url(book_id),
            source=base.source or BookSource.MANUAL_ADD,
            added_date=now,
        )

    def _enrich(self, book_id: str) -> BookFragment:
        if self._metadata_lookup is None:
            return _placeholder(book_id)
        try:
            fragment = self._metadata_lookup.lookup(book_id)
        except TransportError as exc:
            log.warning("Metadata lookup for %s failed, using placeholder: %s", book_id, exc)
            return _placeholder(book_id)
        if fragment is None or not fragment.title:
            log.info("No catalog match for %s, using placeholder", book_id)
            return _placeholder(book_id)
        if fragment.cover_image_url is None:
            return replace(fragment, cover_image_url=marketplace_cover_url(book_id))
        return fragment

    def _enrich_volume(self, volume_id: str) -> BookFragment:
        if self._volume_lookup is None:
            return _placeholder(volume_id)
        try:
            fragment = self._volume_lookup.lookup_volume(volume_id)
        except TransportError as exc:
            log.warning("Volume lookup for %s failed, using placeholder: %s", volume_id, exc)
            return _placeholder(volume_id)
        if fragment is None:
            log.info("Catalog has no volume %s, using placeholder", volume_id)
            return _placeholder(volume_id)
        return fragment


def _placeholder(book_id: str) -> BookFragment:
    return BookFragment(identifier=book_id, cover_image_url=marketplace_cover_url(book_id))


def _fragment_to_raw(fragment: BookFragment) -> dict[str, object]:
    # Empty strings keep the placeholder's blank title/authors instead of defaults
    raw: dict[str, object] = {
        "id": fragment.identifier,
        "title": fragment.title,
        "authors": fragment.authors,
    }
    if fragment.cover_image_url:
        raw["coverImageUrl"] = fragment.cover_image_url
    return raw


def _coerce_changes(changes: Mapping[str, object]) -> dict[str, object]:
    coerced = dict(changes)
    status = coerced.get("read_status")
    if isinstance(status, str) and not isinstance(status, ReadStatus):
        try:
            coerced["read_status"] = ReadStatus(status)
        except ValueError:
            raise ValueError(f"Unknown read status: {status!r}") from None
    return coerced
