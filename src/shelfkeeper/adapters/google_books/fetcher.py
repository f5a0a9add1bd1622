"""Google Books lookup entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from .client import GoogleBooksClient
from .translator import translate_volume

if TYPE_CHECKING:
    from shelfkeeper.config.google_books import CatalogConfig
    from shelfkeeper.domain.ports import BookFragment

    from .schema import Volume, VolumeSearch

log = getLogger(__name__)


class VolumeLookupClient(Protocol):
    def search_volumes(self, *, query: str, max_results: int = 1) -> VolumeSearch: ...

    def fetch_volume(self, *, volume_id: str) -> Volume | None: ...


class GoogleBooksCatalog:
    """Catalog lookups backed by Google Books.

    ``lookup`` tries an ISBN search first and falls back to a free-text search
    for the identifier; ``lookup_volume`` fetches a volume by its own id.
    Transport failures propagate as ``CatalogAPIError``.
    """

    def __init__(
        self,
        *,
        config: CatalogConfig,
        client: VolumeLookupClient | None = None,
    ) -> None:
        self._client = client or GoogleBooksClient(config=config)

    def lookup(self, identifier: str) -> BookFragment | None:
        for query in (f"isbn:{identifier}", identifier):
            results = self._client.search_volumes(query=query, max_results=1)
            if results.items:
                log.debug("Google Books matched %s with query %r", identifier, query)
                return translate_volume(results.items[0], identifier=identifier)
        log.info("Google Books returned no results for %s", identifier)
        return None

    def lookup_volume(self, volume_id: str) -> BookFragment | None:
        volume = self._client.fetch_volume(volume_id=volume_id)
        if volume is None:
            return None
        return translate_volume(volume, identifier=volume_id)
