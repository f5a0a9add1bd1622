"""Reconciliation of incoming book batches against the collection.

Flow per candidate, in arrival order:
1) resolve the identifier (current field, then legacy alias)
2) normalize into a ``BookRecord``
3) look up the existing record (live, or against the ids frozen at batch start)
4) insert, update tracked fields in place, skip, or report a duplicate
"""

from __future__ import annotations

from .contracts import (
    TRACKED_FIELDS,
    ImportEntry,
    ImportResult,
    MergePolicy,
    Outcome,
)
from .engine import BatchReconciler, reconcile_batch, should_update

__all__ = [
    "TRACKED_FIELDS",
    "BatchReconciler",
    "ImportEntry",
    "ImportResult",
    "MergePolicy",
    "Outcome",
    "reconcile_batch",
    "should_update",
]
