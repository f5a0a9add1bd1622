"""Ports for catalog metadata lookups."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class BookFragment:
    """Best-effort metadata returned by a catalog for one identifier."""

    identifier: str
    title: str = ""
    authors: str = ""
    cover_image_url: str | None = None


@runtime_checkable
class BookMetadataLookup(Protocol):
    """Search a catalog by marketplace or ISBN-like identifier.

    Returns ``None`` when nothing matches; raises ``TransportError`` when the catalog
    could not be reached.
    """

    def lookup(self, identifier: str) -> BookFragment | None: ...


@runtime_checkable
class CatalogVolumeLookup(Protocol):
    """Fetch one catalog volume by its own id."""

    def lookup_volume(self, volume_id: str) -> BookFragment | None: ...
