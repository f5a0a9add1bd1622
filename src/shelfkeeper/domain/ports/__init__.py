"""Domain port definitions for adapters."""

from __future__ import annotations

from .enrichment import BookFragment, BookMetadataLookup, CatalogVolumeLookup
from .fetching import BulkRecordSource
from .persistence import LegacySnapshotSource, SnapshotDocument, SnapshotGateway

__all__ = [
    "BookFragment",
    "BookMetadataLookup",
    "BulkRecordSource",
    "CatalogVolumeLookup",
    "LegacySnapshotSource",
    "SnapshotDocument",
    "SnapshotGateway",
]
