from __future__ import annotations

import json
from collections.abc import Callable  # noqa: TC003
from typing import TYPE_CHECKING

import httpx
import pytest

from shelfkeeper.adapters.files import (
    JsonFileSnapshotGateway,
    JsonLegacySnapshotSource,
    RemoteBulkSource,
    read_records_file,
    records_from_bytes,
)
from shelfkeeper.adapters.http_resilience import ResilienceConfig, ResilientClient
from shelfkeeper.config import ImportConfig, MissingConfigurationError
from shelfkeeper.domain.errors import (
    BulkInputError,
    SnapshotFormatError,
    SnapshotWriteError,
)
from shelfkeeper.domain.library_service import LibraryService, LoadOrigin

if TYPE_CHECKING:
    from pathlib import Path


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            transport=httpx.MockTransport(async_handler),
        )
        return client

    return factory


def test_snapshot_file_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "library.json"
    gateway = JsonFileSnapshotGateway(path)
    document = {
        "books": [{"id": "X1", "title": "日本語のタイトル"}],
        "metadata": {"totalBooks": 1},
    }

    assert gateway.load_snapshot() is None
    gateway.save_snapshot(document)

    assert gateway.load_snapshot() == document
    assert "日本語のタイトル" in path.read_text(encoding="utf-8")
    assert [entry.name for entry in path.parent.iterdir()] == ["library.json"]


def test_snapshot_write_failure_keeps_previous_file(tmp_path: Path) -> None:
    path = tmp_path / "library.json"
    gateway = JsonFileSnapshotGateway(path)
    gateway.save_snapshot({"books": [], "metadata": {}})

    with pytest.raises(TypeError):
        gateway.save_snapshot({"books": [object()]})

    assert json.loads(path.read_text(encoding="utf-8")) == {"books": [], "metadata": {}}
    assert [entry.name for entry in tmp_path.iterdir()] == ["library.json"]


def test_snapshot_write_to_unwritable_location(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(SnapshotWriteError):
        JsonFileSnapshotGateway(blocker / "library.json").save_snapshot({"books": []})


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]"])
def test_malformed_snapshot_file(tmp_path: Path, content: str) -> None:
    path = tmp_path / "library.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(SnapshotFormatError):
        JsonLegacySnapshotSource(path).load_legacy_snapshot()


def test_snapshot_in_another_encoding_is_malformed(tmp_path: Path) -> None:
    path = tmp_path / "library.json"
    path.write_bytes('{"books": {"X1": {"title": "Caf\u00e9"}}}'.encode("latin-1"))

    with pytest.raises(SnapshotFormatError, match="UTF-8"):
        JsonLegacySnapshotSource(path).load_legacy_snapshot()

    service = LibraryService(gateway=JsonFileSnapshotGateway(tmp_path / "current.json"))
    assert service.initialize(JsonLegacySnapshotSource(path)) is LoadOrigin.EMPTY


def test_records_from_bytes_accepts_list_or_wrapped_list() -> None:
    assert records_from_bytes(b'[{"id": "X1"}]') == [{"id": "X1"}]
    assert records_from_bytes(b'{"books": [{"id": "X2"}]}') == [{"id": "X2"}]


@pytest.mark.parametrize("data", [b"{", b'{"books": {}}', b'"text"', b"\xff\xfe"])
def test_records_from_bytes_rejects_other_shapes(data: bytes) -> None:
    with pytest.raises(BulkInputError):
        records_from_bytes(data)


def test_read_records_file_missing(tmp_path: Path) -> None:
    with pytest.raises(BulkInputError):
        read_records_file(tmp_path / "missing.json")


def test_remote_source_requires_url() -> None:
    with pytest.raises(MissingConfigurationError):
        RemoteBulkSource(config=ImportConfig())


def test_remote_source_fetches_records() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json=[{"id": "X1"}, {"asin": "X2"}])

    source = RemoteBulkSource(
        config=ImportConfig(remote_url="https://data.example/books.json"),
        client_factory=_make_client_factory(handler),
    )

    assert source() == [{"id": "X1"}, {"asin": "X2"}]
    assert seen == ["https://data.example/books.json"]


def test_remote_source_wraps_http_errors() -> None:
    source = RemoteBulkSource(
        config=ImportConfig(remote_url="https://data.example/books.json"),
        client_factory=_make_client_factory(lambda _: httpx.Response(503)),
    )

    with pytest.raises(BulkInputError, match="Could not fetch"):
        source()
