from __future__ import annotations

import pytest

from shelfkeeper.domain.collection import LibraryCollection
from shelfkeeper.domain.errors import DuplicateIdentifierError, NotFoundError
from shelfkeeper.domain.model import UNSET, BookRecord, BookSource, ReadStatus


def _book(book_id: str, **kwargs: object) -> BookRecord:
    return BookRecord(id=book_id, **kwargs)  # type: ignore[arg-type]


def test_insert_into_empty_collection_updates_metadata() -> None:
    collection = LibraryCollection()

    collection.insert(
        _book(
            "B000ABCDEF",
            title="T1",
            read_status=ReadStatus.UNKNOWN,
            source=BookSource.MANUAL_ADD,
        )
    )

    assert len(collection) == 1
    assert collection.metadata.total_books == 1
    assert collection.metadata.manually_added == 1
    assert collection.dirty


def test_insert_rejects_repeated_identifier() -> None:
    collection = LibraryCollection([_book("X1")])

    with pytest.raises(DuplicateIdentifierError) as excinfo:
        collection.insert(_book("X1", title="again"))

    assert excinfo.value.book_id == "X1"
    assert len(collection) == 1


def test_construction_rejects_repeated_identifiers() -> None:
    with pytest.raises(DuplicateIdentifierError):
        LibraryCollection([_book("X1"), _book("X1")])


def test_insertion_order_is_preserved() -> None:
    collection = LibraryCollection([_book("C"), _book("A"), _book("B")])

    assert [book.id for book in collection] == ["C", "A", "B"]


def test_search_matches_title_or_authors_case_insensitively() -> None:
    collection = LibraryCollection(
        [
            _book("1", title="Norwegian Wood", authors="Haruki Murakami"),
            _book("2", title="Kafka on the Shore", authors="Haruki Murakami"),
            _book("3", title="Kokoro", authors="Natsume Soseki"),
        ]
    )

    assert [book.id for book in collection.search("murakami")] == ["1", "2"]
    assert [book.id for book in collection.search("KOKORO")] == ["3"]
    assert collection.search("nothing") == []


def test_update_fields_changes_record_in_place() -> None:
    collection = LibraryCollection([_book("X1", title="Old", memo="note")])

    updated = collection.update_fields("X1", {"title": "New", "memo": UNSET})

    assert updated.title == "New"
    assert updated.memo is None
    assert collection.find_by_id("X1") is updated


def test_update_fields_unknown_identifier_raises() -> None:
    collection = LibraryCollection()

    with pytest.raises(NotFoundError):
        collection.update_fields("missing", {"title": "x"})
    assert not collection.dirty


@pytest.mark.parametrize(
    "changes",
    [
        {"id": "other"},
        {"source": BookSource.MANUAL_ADD},
        {"added_date": 1},
        {"title": UNSET},
        {"read_status": None},
        {"read_status": "READ"},
        {"authors": 5},
        {"title": ["a"]},
        {"memo": 3},
        {"title": "ok", "superseding_id": 7},
        {"acquired_time": "yesterday"},
        {"acquired_time": True},
        {"rating": "five"},
        {"rating": float("nan")},
    ],
)
def test_update_fields_rejects_invalid_changes(changes: dict[str, object]) -> None:
    collection = LibraryCollection([_book("X1", title="Keep")])

    with pytest.raises(ValueError):  # noqa: PT011
        collection.update_fields("X1", changes)

    assert collection.find_by_id("X1") == _book("X1", title="Keep")


def test_remove_and_clear() -> None:
    collection = LibraryCollection([_book("X1"), _book("X2")])

    removed = collection.remove("X1")

    assert removed.id == "X1"
    assert "X1" not in collection
    with pytest.raises(NotFoundError):
        collection.remove("X1")

    collection.clear()
    assert len(collection) == 0
    assert collection.metadata.total_books == 0


def test_mark_saved_clears_dirty_flag() -> None:
    collection = LibraryCollection()
    collection.insert(_book("X1"))

    collection.mark_saved()

    assert not collection.dirty


def test_replace_all_swaps_contents() -> None:
    collection = LibraryCollection([_book("OLD")])

    collection.replace_all([_book("N1"), _book("N2", source=BookSource.BULK_IMPORT)])

    assert [book.id for book in collection] == ["N1", "N2"]
    assert collection.metadata.imported_from_bulk == 1


def test_deferred_refresh_recomputes_metadata_on_exit() -> None:
    collection = LibraryCollection()

    with collection.deferred_refresh():
        collection.insert(_book("X1", source=BookSource.MANUAL_ADD))
        collection.insert(_book("X2", source=BookSource.MANUAL_ADD))
        assert collection.metadata.total_books == 0

    assert collection.metadata.total_books == 2
    assert collection.metadata.manually_added == 2
