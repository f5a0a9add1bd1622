"""Error taxonomy for library operations."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shelfkeeper.domain.reconciliation.contracts import ImportResult


class LibraryError(RuntimeError):
    """Base class for failures surfaced by the library core."""


class InvalidIdentifierError(LibraryError, ValueError):
    """Raised when a record carries no usable identifier."""


class DuplicateIdentifierError(LibraryError):
    """Raised when a record with the same identifier already exists."""

    def __init__(self, book_id: str) -> None:
        super().__init__(f"Book already in library: {book_id}")
        self.book_id = book_id


class NotFoundError(LibraryError, KeyError):
    """Raised when an operation names an identifier that is not in the library."""

    def __init__(self, book_id: str) -> None:
        super().__init__(f"Book not found: {book_id}")
        self.book_id = book_id

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class TransportError(LibraryError):
    """Raised when an external collaborator (catalog, storage) fails."""


class SnapshotReadError(TransportError):
    """Raised when the persisted snapshot cannot be read."""


class SnapshotFormatError(SnapshotReadError):
    """Raised when a snapshot document does not have the expected shape."""


class SnapshotWriteError(TransportError):
    """Raised when the snapshot could not be written.

    The in-memory mutation that triggered the write is kept; ``result`` carries the
    outcome of the operation when there is one to report.
    """

    def __init__(self, message: str, *, result: ImportResult | None = None) -> None:
        super().__init__(message)
        self.result = result


class BulkInputError(TransportError):
    """Raised when bulk import input cannot be fetched or is not a list of records."""
