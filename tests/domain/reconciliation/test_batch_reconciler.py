from __future__ import annotations

import json
import logging

import pytest

from shelfkeeper.domain.collection import LibraryCollection
from shelfkeeper.domain.model import BookRecord, BookSource, ReadStatus
from shelfkeeper.domain.reconciliation import (
    TRACKED_FIELDS,
    MergePolicy,
    reconcile_batch,
    should_update,
)
from shelfkeeper.domain.reconciliation.contracts import (
    REASON_ALREADY_PRESENT,
    REASON_REPEATED_IN_BATCH,
)

NOW = 1_700_000_000_000


def _clock() -> int:
    return NOW


def _batch() -> list[object]:
    return [
        {"id": "B000000001", "title": "One", "acquiredTime": 10, "readStatus": "READ"},
        {"asin": "B000000002", "title": "Two", "acquiredTime": 20},
        {"id": "B000000003", "title": "Three", "productImage": "ignored"},
    ]


def test_merge_inserts_new_records_with_bulk_stamp() -> None:
    collection = LibraryCollection()

    result = reconcile_batch(
        _batch(), collection, policy=MergePolicy.MERGE_WITH_UPDATE, clock=_clock
    )

    assert (result.total, result.added, result.updated, result.skipped) == (3, 3, 0, 0)
    assert [book.id for book in collection] == ["B000000001", "B000000002", "B000000003"]
    assert all(book.source is BookSource.BULK_IMPORT for book in collection)
    assert all(book.added_date == NOW for book in collection)
    assert [book.id for book in result.imported] == ["B000000001", "B000000002", "B000000003"]


def test_merge_reimport_of_unchanged_batch_is_idempotent() -> None:
    collection = LibraryCollection()
    reconcile_batch(_batch(), collection, policy=MergePolicy.MERGE_WITH_UPDATE, clock=_clock)

    result = reconcile_batch(
        _batch(), collection, policy=MergePolicy.MERGE_WITH_UPDATE, clock=_clock
    )

    assert result.added == 0
    assert result.updated == 0
    assert result.skipped == result.total == 3
    assert not result.changed


def test_merge_updates_tracked_fields_in_place() -> None:
    existing = BookRecord(
        id="X1",
        acquired_time=50,
        read_status=ReadStatus.UNKNOWN,
        source=BookSource.MANUAL_ADD,
        added_date=1,
        memo="keep me",
    )
    collection = LibraryCollection([existing])

    result = reconcile_batch(
        [{"id": "X1", "acquiredTime": 100, "readStatus": "READ"}],
        collection,
        policy=MergePolicy.MERGE_WITH_UPDATE,
        clock=_clock,
    )

    assert (result.updated, result.added, result.skipped) == (1, 0, 0)
    book = collection.find_by_id("X1")
    assert book is not None
    assert book.acquired_time == 100
    assert book.read_status is ReadStatus.READ
    # untracked fields and provenance survive the update
    assert book.memo == "keep me"
    assert book.source is BookSource.MANUAL_ADD
    assert book.added_date == 1


def test_merge_sees_records_inserted_earlier_in_the_same_batch() -> None:
    collection = LibraryCollection()

    result = reconcile_batch(
        [{"id": "X1", "title": "First"}, {"id": "X1", "title": "Second"}],
        collection,
        policy=MergePolicy.MERGE_WITH_UPDATE,
        clock=_clock,
    )

    assert (result.added, result.updated) == (1, 1)
    assert len(collection) == 1
    book = collection.find_by_id("X1")
    assert book is not None
    assert book.title == "Second"


def test_insert_only_freezes_duplicate_detection_at_batch_start() -> None:
    collection = LibraryCollection()

    result = reconcile_batch(
        [{"id": "NEW1", "title": "First"}, {"id": "NEW1", "title": "Second"}],
        collection,
        policy=MergePolicy.INSERT_ONLY,
        clock=_clock,
    )

    assert result.added == 1
    assert result.duplicate == 1
    assert len(collection) == 1
    book = collection.find_by_id("NEW1")
    assert book is not None
    assert book.title == "First"
    assert result.duplicates[0].reason == REASON_REPEATED_IN_BATCH


def test_insert_only_never_touches_existing_records() -> None:
    existing = BookRecord(id="X1", title="Original", read_status=ReadStatus.UNKNOWN)
    collection = LibraryCollection([existing])

    result = reconcile_batch(
        [{"id": "X1", "title": "Changed", "readStatus": "READ"}, {"id": "X2"}],
        collection,
        policy=MergePolicy.INSERT_ONLY,
        clock=_clock,
    )

    assert (result.added, result.duplicate, result.updated) == (1, 1, 0)
    assert result.duplicates[0].book_id == "X1"
    assert result.duplicates[0].title == "Changed"
    assert result.duplicates[0].reason == REASON_ALREADY_PRESENT
    assert collection.find_by_id("X1") == existing


def test_unusable_records_are_reported_and_the_batch_continues(
    caplog: pytest.LogCaptureFixture,
) -> None:
    collection = LibraryCollection()

    with caplog.at_level(logging.WARNING):
        result = reconcile_batch(
            [{"title": "No id"}, "not a record", {"id": "X1"}],
            collection,
            policy=MergePolicy.MERGE_WITH_UPDATE,
            clock=_clock,
        )

    assert result.error == 2
    assert result.added == 1
    assert [entry.title for entry in result.errors] == ["No id", None]
    assert "Skipping unusable record" in caplog.text


def test_counts_always_add_up_to_total() -> None:
    collection = LibraryCollection([BookRecord(id="B000000001", title="One", acquired_time=10)])

    result = reconcile_batch(
        [*_batch(), {"title": "broken"}],
        collection,
        policy=MergePolicy.MERGE_WITH_UPDATE,
        clock=_clock,
    )

    assert result.total == 4
    assert result.added + result.updated + result.skipped + result.duplicate + result.error == 4


def test_uniqueness_holds_across_policies() -> None:
    collection = LibraryCollection()
    batch = [{"id": f"ID{index % 3}"} for index in range(9)]

    reconcile_batch(batch, collection, policy=MergePolicy.INSERT_ONLY, clock=_clock)
    reconcile_batch(batch, collection, policy=MergePolicy.MERGE_WITH_UPDATE, clock=_clock)

    ids = [book.id for book in collection]
    assert len(ids) == len(set(ids)) == 3


def test_should_update_compares_tracked_fields_only() -> None:
    existing = BookRecord(id="X1", title="T", memo="a")

    assert not should_update(existing, BookRecord(id="X1", title="T", memo="b"))
    assert should_update(existing, BookRecord(id="X1", title="T2"))
    assert set(TRACKED_FIELDS) == {"acquired_time", "read_status", "title", "cover_image_url"}


def test_non_finite_numbers_do_not_abort_the_batch() -> None:
    collection = LibraryCollection()
    batch = json.loads(
        '[{"id": "X1", "acquiredTime": 1e400}, {"id": "X2", "rating": NaN},'
        ' {"id": "X3", "acquiredTime": -Infinity}]'
    )

    result = reconcile_batch(
        batch, collection, policy=MergePolicy.MERGE_WITH_UPDATE, clock=_clock
    )

    assert (result.total, result.added, result.error) == (3, 3, 0)
    assert [book.acquired_time for book in collection] == [None, None, None]
    assert collection.find_by_id("X2").rating is None
