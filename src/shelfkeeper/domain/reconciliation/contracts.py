"""Shared reconciliation contract components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from shelfkeeper.domain.model import BookRecord

# Fields compared (and overwritten) when a bulk re-import meets an existing record.
TRACKED_FIELDS: Final[tuple[str, ...]] = (
    "acquired_time",
    "read_status",
    "title",
    "cover_image_url",
)

REASON_ALREADY_PRESENT: Final[str] = "already in library"
REASON_REPEATED_IN_BATCH: Final[str] = "repeated within batch"


class MergePolicy(StrEnum):
    """How a batch treats candidates whose identifier is already known.

    ``MERGE_WITH_UPDATE`` looks each candidate up against the live collection and
    refreshes tracked fields in place. ``INSERT_ONLY`` checks against the ids that
    existed when the batch started and never touches existing records.
    """

    MERGE_WITH_UPDATE = "merge_with_update"
    INSERT_ONLY = "insert_only"


class Outcome(StrEnum):
    ADDED = "added"
    UPDATED = "updated"
    SKIPPED = "skipped"
    DUPLICATE = "duplicate"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ImportEntry:
    """One candidate reported in a batch result."""

    book_id: str | None
    title: str | None
    reason: str | None = None


@dataclass(slots=True)
class ImportResult:
    """Summary of one reconciled batch."""

    policy: MergePolicy
    total: int = 0
    added: int = 0
    updated: int = 0
    skipped: int = 0
    duplicate: int = 0
    error: int = 0
    imported: list[BookRecord] = field(default_factory=list["BookRecord"])
    duplicates: list[ImportEntry] = field(default_factory=list[ImportEntry])
    errors: list[ImportEntry] = field(default_factory=list[ImportEntry])

    def record(self, outcome: Outcome) -> None:
        current = getattr(self, outcome.value)
        setattr(self, outcome.value, current + 1)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.updated)
