"""JSON file and remote adapters for snapshots and bulk import input."""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx

from shelfkeeper.adapters.http_resilience import ResilientClient
from shelfkeeper.config import MissingConfigurationError
from shelfkeeper.domain.errors import (
    BulkInputError,
    SnapshotFormatError,
    SnapshotReadError,
    SnapshotWriteError,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from shelfkeeper.config import ImportConfig, ResilienceConfig
    from shelfkeeper.domain.ports import SnapshotDocument

log = getLogger(__name__)


def _read_document(path: Path) -> SnapshotDocument | None:
    if not path.exists():
        log.debug("No snapshot file at %s", path)
        return None
    try:
        payload: Any = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise SnapshotReadError(f"Could not read {path}: {exc}") from exc
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SnapshotFormatError(f"{path} is not valid UTF-8 JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise SnapshotFormatError(f"{path} does not hold a JSON object")
    return payload


class JsonFileSnapshotGateway:
    """Snapshot stored as one JSON document; writes go through a temporary file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load_snapshot(self) -> SnapshotDocument | None:
        return _read_document(self.path)

    def save_snapshot(self, document: SnapshotDocument) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(document, handle, ensure_ascii=False, indent=2)
                Path(tmp_name).replace(self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise SnapshotWriteError(f"Could not write {self.path}: {exc}") from exc
        log.info("Wrote snapshot to %s", self.path)


class JsonLegacySnapshotSource:
    def __init__(self, path: Path) -> None:
        self.path = path

    def load_legacy_snapshot(self) -> SnapshotDocument | None:
        return _read_document(self.path)


def records_from_bytes(data: bytes) -> list[object]:
    """Decode bulk import input: a JSON list, or an object wrapping one under ``books``."""

    try:
        payload: Any = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise BulkInputError(f"Bulk import input is not valid JSON: {exc}") from exc
    if isinstance(payload, dict) and isinstance(payload.get("books"), list):
        payload = payload["books"]
    if not isinstance(payload, list):
        raise BulkInputError("Bulk import input must be a JSON list of records")
    return payload


def read_records_file(path: Path) -> list[object]:
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise BulkInputError(f"Could not read {path}: {exc}") from exc
    return records_from_bytes(data)


class RemoteBulkSource:
    """Fetch bulk import input from the configured URL."""

    def __init__(
        self,
        *,
        config: ImportConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        if config.remote_url is None:
            raise MissingConfigurationError(
                "Missing configuration for: SHELFKEEPER_BULK_IMPORT_URL"
            )
        self._url = config.remote_url
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    def __call__(self) -> list[object]:
        return asyncio.run(self._fetch_async())

    async def _fetch_async(self) -> list[object]:
        try:
            async with self._client_factory(self._resilience) as client:
                response = await client.get(self._url)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise BulkInputError(f"Could not fetch bulk import input: {exc}") from exc
        records = records_from_bytes(response.content)
        log.info("Fetched %s records from %s", len(records), self._url)
        return records
