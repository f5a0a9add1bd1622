"""Book records and the derived library counters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from shelfkeeper.domain.model.enums import BookSource, ReadStatus

if TYPE_CHECKING:
    from shelfkeeper.domain.model.primitives import BookId, EpochMillis, Rating


class _Unset:
    """Sentinel for "remove this optional field" in partial updates."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()

# Fields callers may change after creation; id, added_date and source are fixed.
MUTABLE_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "title",
        "authors",
        "acquired_time",
        "read_status",
        "cover_image_url",
        "memo",
        "rating",
        "superseding_id",
    }
)
OPTIONAL_FIELDS: Final[frozenset[str]] = frozenset(
    {"acquired_time", "cover_image_url", "memo", "rating", "superseding_id"}
)


@dataclass(slots=True, kw_only=True)
class BookRecord:
    """One owned book.

    ``superseding_id`` is set when the provider re-issued the identifier: the record
    keeps its original ``id`` for lookup and uniqueness, while links and display use
    the effective identifier (see ``shelfkeeper.domain.links.effective_id``).
    """

    id: BookId
    title: str = ""
    authors: str = ""
    acquired_time: EpochMillis | None = None
    read_status: ReadStatus = ReadStatus.UNKNOWN
    cover_image_url: str | None = None
    source: BookSource | None = None
    added_date: EpochMillis | None = None
    memo: str | None = None
    rating: Rating | None = None
    superseding_id: BookId | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("BookRecord.id must not be empty")

    @property
    def is_read(self) -> bool:
        return self.read_status is ReadStatus.READ


@dataclass(frozen=True, slots=True)
class LibraryMetadata:
    """Counters derived from the record sequence; never set independently."""

    total_books: int = 0
    manually_added: int = 0
    imported_from_bulk: int = 0
    last_import_date: EpochMillis | None = None


@dataclass(frozen=True, slots=True)
class LibraryStatistics:
    total: int = 0
    read: int = 0
    unread: int = 0
    manually_added: int = 0
    imported_from_bulk: int = 0
    from_catalog: int = 0
    last_import_date: EpochMillis | None = None


__all__ = [
    "MUTABLE_FIELDS",
    "OPTIONAL_FIELDS",
    "UNSET",
    "BookRecord",
    "BookSource",
    "LibraryMetadata",
    "LibraryStatistics",
    "ReadStatus",
]
