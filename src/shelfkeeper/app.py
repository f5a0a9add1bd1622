"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from shelfkeeper.adapters.files import (
    JsonFileSnapshotGateway,
    JsonLegacySnapshotSource,
    RemoteBulkSource,
    read_records_file,
)
from shelfkeeper.adapters.google_books import GoogleBooksCatalog
from shelfkeeper.adapters.sqlalchemy import SqlAlchemySnapshotGateway, startup
from shelfkeeper.config import get_catalog_config, get_import_config, get_storage_config
from shelfkeeper.domain.library_service import LibraryService, now_millis
from shelfkeeper.domain.reconciliation import MergePolicy

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from shelfkeeper.domain.model import EpochMillis
    from shelfkeeper.domain.ports import BulkRecordSource, LegacySnapshotSource, SnapshotGateway
    from shelfkeeper.domain.reconciliation import ImportResult

log = getLogger(__name__)


def open_library(
    *,
    gateway: SnapshotGateway | None = None,
    catalog: GoogleBooksCatalog | None = None,
    legacy_source: LegacySnapshotSource | None = None,
    clock: Callable[[], EpochMillis] = now_millis,
) -> LibraryService:
    """Wire the configured adapters and load the library."""

    if gateway is None:
        gateway = SqlAlchemySnapshotGateway(startup())
    if catalog is None:
        catalog = GoogleBooksCatalog(config=get_catalog_config())
    if legacy_source is None:
        legacy_source = JsonLegacySnapshotSource(get_storage_config().legacy_snapshot_path())

    service = LibraryService(
        gateway=gateway,
        metadata_lookup=catalog,
        volume_lookup=catalog,
        clock=clock,
    )
    origin = service.initialize(legacy_source)
    log.info("Library ready (%s): %s books", origin, len(service.collection))
    return service


def import_file(
    service: LibraryService,
    path: Path,
    *,
    policy: MergePolicy = MergePolicy.MERGE_WITH_UPDATE,
) -> ImportResult:
    log.info("Starting import from %s (%s)", path, policy)
    return service.import_batch(read_records_file(path), policy=policy)


def import_remote(
    service: LibraryService,
    *,
    source: BulkRecordSource | None = None,
    policy: MergePolicy = MergePolicy.MERGE_WITH_UPDATE,
) -> ImportResult:
    effective_source = source or RemoteBulkSource(config=get_import_config())
    return service.import_batch(effective_source(), policy=policy)


def migrate_file(service: LibraryService, path: Path) -> ImportResult:
    log.info("Replacing library with records from %s", path)
    return service.migrate_initial(read_records_file(path))


def export_library(service: LibraryService, path: Path | None = None) -> Path:
    """Write the current snapshot as JSON; defaults to the data directory."""

    destination = path or get_storage_config().export_path()
    JsonFileSnapshotGateway(destination).save_snapshot(service.snapshot())
    return destination
