"""Batch reconciliation of raw records against the library collection.

Candidates are processed strictly in arrival order. Each one is resolved and
normalized, then the selected ``MergePolicy`` decides between insert, update in
place, skip, or duplicate. A failing candidate is reported and the batch carries
on. The engine only mutates the collection; persisting the result is the
caller's job and happens once per batch.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from shelfkeeper.domain.errors import DuplicateIdentifierError, LibraryError
from shelfkeeper.domain.identifiers import IDENTIFIER_FIELDS, first_present, resolve_identifier
from shelfkeeper.domain.model import UNSET, BookSource
from shelfkeeper.domain.normalization import normalize

from .contracts import (
    REASON_ALREADY_PRESENT,
    REASON_REPEATED_IN_BATCH,
    TRACKED_FIELDS,
    ImportEntry,
    ImportResult,
    MergePolicy,
    Outcome,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from shelfkeeper.domain.collection import LibraryCollection
    from shelfkeeper.domain.model import BookRecord, EpochMillis

log = logging.getLogger(__name__)


def should_update(existing: BookRecord, candidate: BookRecord) -> bool:
    """Return whether any tracked field differs between the two records."""

    return any(getattr(existing, name) != getattr(candidate, name) for name in TRACKED_FIELDS)


def tracked_changes(candidate: BookRecord) -> dict[str, object]:
    changes: dict[str, object] = {}
    for name in TRACKED_FIELDS:
        value = getattr(candidate, name)
        changes[name] = UNSET if value is None else value
    return changes


@dataclass(slots=True)
class BatchReconciler:
    """Reconcile one batch of raw records into ``collection``."""

    collection: LibraryCollection
    policy: MergePolicy
    clock: Callable[[], EpochMillis]
    source: BookSource = BookSource.BULK_IMPORT
    _frozen_ids: frozenset[str] = field(default_factory=frozenset, init=False)

    def reconcile(self, raw_records: Iterable[object]) -> ImportResult:
        records = list(raw_records)
        result = ImportResult(policy=self.policy, total=len(records))
        # Insert-only checks against the ids present before the batch starts
        self._frozen_ids = self.collection.ids

        for raw in records:
            try:
                candidate = self._prepare(raw)
            except (LibraryError, ValueError, TypeError) as exc:
                log.warning("Skipping unusable record %r: %s", _title_of(raw), exc)
                result.errors.append(
                    ImportEntry(book_id=_raw_id_of(raw), title=_title_of(raw), reason=str(exc))
                )
                result.record(Outcome.ERROR)
                continue

            if self.policy is MergePolicy.MERGE_WITH_UPDATE:
                outcome = self._merge(candidate, result)
            else:
                outcome = self._insert_only(candidate, result)
            result.record(outcome)

        log.info(
            "Reconciled batch (%s): total=%s, added=%s, updated=%s, skipped=%s, "
            "duplicate=%s, error=%s",
            self.policy,
            result.total,
            result.added,
            result.updated,
            result.skipped,
            result.duplicate,
            result.error,
        )
        return result

    def _prepare(self, raw: object) -> BookRecord:
        if not isinstance(raw, Mapping):
            raise TypeError(f"Expected a record object, got {type(raw).__name__}")
        book_id = resolve_identifier(raw)
        return normalize(raw, book_id)

    def _merge(self, candidate: BookRecord, result: ImportResult) -> Outcome:
        existing = self.collection.find_by_id(candidate.id)
        if existing is None:
            result.imported.append(self._insert(candidate))
            return Outcome.ADDED
        if not should_update(existing, candidate):
            return Outcome.SKIPPED
        self.collection.update_fields(existing.id, tracked_changes(candidate))
        return Outcome.UPDATED

    def _insert_only(self, candidate: BookRecord, result: ImportResult) -> Outcome:
        if candidate.id in self._frozen_ids:
            result.duplicates.append(
                ImportEntry(
                    book_id=candidate.id,
                    title=candidate.title,
                    reason=REASON_ALREADY_PRESENT,
                )
            )
            return Outcome.DUPLICATE
        try:
            result.imported.append(self._insert(candidate))
        except DuplicateIdentifierError:
            result.duplicates.append(
                ImportEntry(
                    book_id=candidate.id,
                    title=candidate.title,
                    reason=REASON_REPEATED_IN_BATCH,
                )
            )
            return Outcome.DUPLICATE
        return Outcome.ADDED

    def _insert(self, candidate: BookRecord) -> BookRecord:
        book = replace(candidate, source=self.source, added_date=self.clock())
        self.collection.insert(book)
        return book


def reconcile_batch(
    raw_records: Iterable[object],
    collection: LibraryCollection,
    *,
    policy: MergePolicy,
    clock: Callable[[], EpochMillis],
    source: BookSource = BookSource.BULK_IMPORT,
) -> ImportResult:
    """Reconcile ``raw_records`` into ``collection`` and return the batch summary."""

    reconciler = BatchReconciler(collection=collection, policy=policy, clock=clock, source=source)
    return reconciler.reconcile(raw_records)


def _title_of(raw: object) -> str | None:
    if isinstance(raw, Mapping):
        title = raw.get("title")
        return title if isinstance(title, str) else None
    return None


def _raw_id_of(raw: object) -> str | None:
    if isinstance(raw, Mapping):
        value = first_present(raw, IDENTIFIER_FIELDS)
        return str(value) if value is not None else None
    return None
