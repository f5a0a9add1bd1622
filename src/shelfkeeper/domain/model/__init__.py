"""Public domain model surface."""

from __future__ import annotations

from shelfkeeper.domain.model.book import (
    MUTABLE_FIELDS,
    OPTIONAL_FIELDS,
    UNSET,
    BookRecord,
    LibraryMetadata,
    LibraryStatistics,
)
from shelfkeeper.domain.model.enums import (
    LEGACY_SOURCE_ALIASES,
    BookSource,
    IdentifierKind,
    ReadStatus,
)
from shelfkeeper.domain.model.primitives import BookId, EpochMillis, Rating, RawRecord

__all__ = [  # noqa: RUF022
    # records
    "BookRecord",
    "LibraryMetadata",
    "LibraryStatistics",
    "MUTABLE_FIELDS",
    "OPTIONAL_FIELDS",
    "UNSET",
    # enums
    "BookSource",
    "IdentifierKind",
    "LEGACY_SOURCE_ALIASES",
    "ReadStatus",
    # primitives
    "BookId",
    "EpochMillis",
    "Rating",
    "RawRecord",
]
