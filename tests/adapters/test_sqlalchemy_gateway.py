"""Exercise the SQLAlchemy snapshot gateway against in-memory SQLite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, inspect, select

from shelfkeeper.adapters.sqlalchemy import (
    SqlAlchemySnapshotGateway,
    book_table,
    library_snapshot_table,
    startup,
)
from shelfkeeper.domain.errors import SnapshotReadError, SnapshotWriteError
from shelfkeeper.domain.library_service import LibraryService, LoadOrigin

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Engine

DOCUMENT: dict[str, object] = {
    "books": [
        {
            "id": "B000000002",
            "title": "Second",
            "authors": "Writer",
            "acquiredTime": 1_600_000_000_000,
            "readStatus": "READ",
            "coverImageUrl": "https://covers.example/2.jpg",
            "source": "bulk_import",
            "addedDate": 1_650_000_000_000,
            "memo": "lent to a friend",
            "rating": 4,
            "supersedingId": "B000000009",
        },
        {"id": "isbn-1", "title": "First", "authors": "", "readStatus": "UNKNOWN", "rating": 3.5},
    ],
    "metadata": {
        "totalBooks": 2,
        "manuallyAdded": 0,
        "importedFromBulk": 1,
        "lastImportDate": 1_650_000_000_000,
    },
}


def test_startup_creates_schema() -> None:
    engine = startup(engine=create_engine("sqlite+pysqlite:///:memory:", future=True))
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()

    assert {"book", "library_snapshot", "alembic_version"} <= tables


def test_load_without_saved_snapshot(sqlite_engine: Engine) -> None:
    assert SqlAlchemySnapshotGateway(sqlite_engine).load_snapshot() is None


def test_save_then_load_keeps_order_and_fields(sqlite_engine: Engine) -> None:
    gateway = SqlAlchemySnapshotGateway(sqlite_engine)

    gateway.save_snapshot(DOCUMENT)

    assert gateway.load_snapshot() == DOCUMENT


def test_save_replaces_previous_rows(sqlite_engine: Engine) -> None:
    gateway = SqlAlchemySnapshotGateway(sqlite_engine)
    gateway.save_snapshot(DOCUMENT)

    gateway.save_snapshot({"books": [], "metadata": {"totalBooks": 0}})

    with sqlite_engine.connect() as connection:
        assert connection.execute(select(book_table)).first() is None
        header = connection.execute(select(library_snapshot_table)).mappings().one()
    assert header["total_books"] == 0
    assert header["saved_at"].tzinfo is not None
    assert gateway.load_snapshot() == {
        "books": [],
        "metadata": {
            "totalBooks": 0,
            "manuallyAdded": 0,
            "importedFromBulk": 0,
            "lastImportDate": None,
        },
    }


def test_errors_are_translated() -> None:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    gateway = SqlAlchemySnapshotGateway(engine)
    try:
        with pytest.raises(SnapshotReadError):
            gateway.load_snapshot()
        with pytest.raises(SnapshotWriteError):
            gateway.save_snapshot(DOCUMENT)
    finally:
        engine.dispose()


def test_library_survives_reload(sqlite_engine: Engine, fixed_clock: Callable[[], int]) -> None:
    service = LibraryService(gateway=SqlAlchemySnapshotGateway(sqlite_engine), clock=fixed_clock)
    assert service.initialize() is LoadOrigin.EMPTY
    service.add_manually({"id": "B000000001", "title": "Kept", "rating": 5})
    service.import_batch([{"asin": "B000000002", "title": "Imported"}])

    reloaded = LibraryService(gateway=SqlAlchemySnapshotGateway(sqlite_engine), clock=fixed_clock)

    assert reloaded.initialize() is LoadOrigin.SNAPSHOT
    assert reloaded.books == service.books
    assert reloaded.metadata == service.metadata


def test_identifier_columns_have_no_length_limit(sqlite_engine: Engine) -> None:
    long_id = "volume-" + "x" * 120
    document = {
        "books": [{"id": long_id, "title": "Long", "authors": "", "supersedingId": long_id * 2}],
        "metadata": {"totalBooks": 1},
    }
    gateway = SqlAlchemySnapshotGateway(sqlite_engine)

    gateway.save_snapshot(document)

    assert book_table.c.id.type.length is None
    assert book_table.c.superseding_id.type.length is None
    loaded = gateway.load_snapshot()
    assert loaded is not None
    assert loaded["books"][0]["supersedingId"] == long_id * 2
