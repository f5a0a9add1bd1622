"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ReadStatus(StrEnum):
    READ = "READ"
    UNKNOWN = "UNKNOWN"


class BookSource(StrEnum):
    MANUAL_ADD = "manual_add"
    BULK_IMPORT = "bulk_import"
    EXTERNAL_CATALOG = "external_catalog"


class IdentifierKind(StrEnum):
    """Shape of a book identifier."""

    MARKETPLACE = "marketplace"  # 10-char uppercase alphanumeric product code
    GENERIC = "generic"


# Source values written by earlier releases
LEGACY_SOURCE_ALIASES: dict[str, BookSource] = {
    "kindle_import": BookSource.BULK_IMPORT,
    "google_books": BookSource.EXTERNAL_CATALOG,
}
