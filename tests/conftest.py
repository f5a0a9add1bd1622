from __future__ import annotations

import copy
import os
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from shelfkeeper.adapters.sqlalchemy.migrations import upgrade_head
from shelfkeeper.domain.errors import SnapshotWriteError
from shelfkeeper.domain.library_service import LibraryService

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

FIXED_NOW = 1_700_000_000_000


class InMemorySnapshotGateway:
    """Keeps deep copies of saved documents; can be told to fail writes."""

    def __init__(self, document: dict[str, Any] | None = None) -> None:
        self.document = copy.deepcopy(document)
        self.saves: list[dict[str, Any]] = []
        self.fail_writes = False

    def load_snapshot(self) -> dict[str, Any] | None:
        return copy.deepcopy(self.document)

    def save_snapshot(self, document: dict[str, Any]) -> None:
        if self.fail_writes:
            raise SnapshotWriteError("disk full")
        self.document = copy.deepcopy(document)
        self.saves.append(self.document)


class InMemoryLegacySource:
    def __init__(self, document: dict[str, Any] | None) -> None:
        self.document = document

    def load_legacy_snapshot(self) -> dict[str, Any] | None:
        return copy.deepcopy(self.document)


@pytest.fixture
def fixed_clock() -> Callable[[], int]:
    return lambda: FIXED_NOW


@pytest.fixture
def memory_gateway() -> InMemorySnapshotGateway:
    return InMemorySnapshotGateway()


@pytest.fixture
def library_service(
    memory_gateway: InMemorySnapshotGateway,
    fixed_clock: Callable[[], int],
) -> LibraryService:
    service = LibraryService(gateway=memory_gateway, clock=fixed_clock)
    service.initialize()
    return service


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def make_gateway() -> type[InMemorySnapshotGateway]:
    return InMemorySnapshotGateway


@pytest.fixture
def make_legacy_source() -> type[InMemoryLegacySource]:
    return InMemoryLegacySource
