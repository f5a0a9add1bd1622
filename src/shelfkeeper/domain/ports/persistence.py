"""Ports for persisting library snapshots."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

type SnapshotDocument = dict[str, Any]


@runtime_checkable
class SnapshotGateway(Protocol):
    """Whole-snapshot storage. ``save_snapshot`` replaces whatever was stored before."""

    def load_snapshot(self) -> SnapshotDocument | None: ...

    def save_snapshot(self, document: SnapshotDocument) -> None: ...


@runtime_checkable
class LegacySnapshotSource(Protocol):
    """Read-only access to a snapshot in the older keyed format."""

    def load_legacy_snapshot(self) -> SnapshotDocument | None: ...
