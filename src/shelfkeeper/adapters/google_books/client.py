"""Google Books API client."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from shelfkeeper.adapters.http_resilience import ResilientClient
from shelfkeeper.domain.errors import TransportError

from .schema import ErrorResponse, Volume, VolumeSearch

if TYPE_CHECKING:
    from collections.abc import Callable

    from shelfkeeper.config.google_books import CatalogConfig
    from shelfkeeper.config.http_resilience import ResilienceConfig

log = getLogger(__name__)


class CatalogAPIError(TransportError):
    """Raised when Google Books cannot be reached or answers with an error payload."""

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class GoogleBooksClient:
    """Low-level HTTP client for the Google Books volumes API."""

    def __init__(
        self,
        *,
        config: CatalogConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    def search_volumes(self, *, query: str, max_results: int = 1) -> VolumeSearch:
        return asyncio.run(self._search_volumes_async(query=query, max_results=max_results))

    def fetch_volume(self, *, volume_id: str) -> Volume | None:
        """Return the volume, or ``None`` if the catalog does not know the id."""

        return asyncio.run(self._fetch_volume_async(volume_id=volume_id))

    async def _search_volumes_async(self, *, query: str, max_results: int) -> VolumeSearch:
        params = self._params({"q": query, "maxResults": str(max_results)})
        async with self._client_factory(self._resilience) as client:
            payload = await self._perform_request(client=client, path="volumes", params=params)
        if payload is None:
            return VolumeSearch()
        try:
            return VolumeSearch.model_validate(payload)
        except ValidationError as exc:
            raise CatalogAPIError(f"Unexpected Google Books search payload: {exc}") from exc

    async def _fetch_volume_async(self, *, volume_id: str) -> Volume | None:
        params = self._params({})
        async with self._client_factory(self._resilience) as client:
            payload = await self._perform_request(
                client=client,
                path=f"volumes/{volume_id}",
                params=params,
            )
        if payload is None:
            return None
        try:
            return Volume.model_validate(payload)
        except ValidationError as exc:
            raise CatalogAPIError(f"Unexpected Google Books volume payload: {exc}") from exc

    async def _perform_request(
        self,
        *,
        client: ResilientClient,
        path: str,
        params: dict[str, str],
    ) -> dict[str, object] | None:
        if self._resilience.base_url is None:
            raise CatalogAPIError("Missing Google Books base_url in resilience configuration")
        try:
            response = await client.get(path, params=params)
            if response.status_code == httpx.codes.NOT_FOUND:
                log.info("Google Books has no resource at %s", path)
                return None
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise CatalogAPIError(f"Google Books request failed: {exc}") from exc
        except ValueError as exc:
            raise CatalogAPIError("Google Books returned a non-JSON body") from exc

        if isinstance(payload, dict) and "error" in payload:
            error_payload = ErrorResponse.model_validate(payload)
            log.error(
                "Google Books API error %s: %s",
                error_payload.error.code,
                error_payload.error.message,
            )
            raise CatalogAPIError(error_payload.error.message, code=error_payload.error.code)

        if not isinstance(payload, dict):
            raise CatalogAPIError("Unexpected Google Books response payload")
        return payload

    def _params(self, params: dict[str, str]) -> dict[str, str]:
        if self._config.api_key:
            params["key"] = self._config.api_key
        return params
