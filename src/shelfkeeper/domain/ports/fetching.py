"""Ports for retrieving bulk import input."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class BulkRecordSource(Protocol):
    """Callable port returning raw records in arrival order."""

    def __call__(self) -> list[object]: ...


__all__ = ["BulkRecordSource"]
