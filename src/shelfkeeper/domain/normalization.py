"""Map raw records (current or legacy shape) onto ``BookRecord``.

``normalize`` is pure: it performs no I/O, never raises for missing fields, and
only sets optional attributes when the incoming value is present. ``to_wire`` is
the inverse used when writing snapshots.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Final

from shelfkeeper.domain.identifiers import (
    IDENTIFIER_FIELDS,
    SUPERSEDING_ID_FIELDS,
    first_present,
)
from shelfkeeper.domain.model import (
    LEGACY_SOURCE_ALIASES,
    BookRecord,
    BookSource,
    ReadStatus,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from shelfkeeper.domain.model import EpochMillis, Rating, RawRecord

log = logging.getLogger(__name__)

# attribute name -> wire name
WIRE_FIELDS: Final[dict[str, str]] = {
    "id": "id",
    "title": "title",
    "authors": "authors",
    "acquired_time": "acquiredTime",
    "read_status": "readStatus",
    "cover_image_url": "coverImageUrl",
    "source": "source",
    "added_date": "addedDate",
    "memo": "memo",
    "rating": "rating",
    "superseding_id": "supersedingId",
}


def normalize(raw: Mapping[str, object], fallback_id: str) -> BookRecord:
    """Build a canonical ``BookRecord`` from ``raw``.

    The identifier is taken from the current field, then the legacy alias, then
    ``fallback_id`` (for keyed legacy snapshots or a pre-resolved identifier).
    """

    book_id = (_as_text(first_present(raw, IDENTIFIER_FIELDS)) or "").strip() or fallback_id
    superseding = (_as_text(first_present(raw, SUPERSEDING_ID_FIELDS)) or "").strip() or None

    return BookRecord(
        id=book_id,
        title=_as_text(raw.get("title")) or "",
        authors=_as_authors(raw.get("authors")),
        acquired_time=_as_millis(raw.get("acquiredTime"), field="acquiredTime"),
        read_status=_as_read_status(raw.get("readStatus")),
        cover_image_url=_as_text(raw.get("coverImageUrl")),
        source=_as_source(raw.get("source")),
        added_date=_as_millis(raw.get("addedDate"), field="addedDate"),
        memo=_as_text(raw.get("memo")),
        rating=_as_rating(raw.get("rating")),
        superseding_id=superseding,
    )


def to_wire(book: BookRecord) -> RawRecord:
    """Serialise ``book`` with wire field names, omitting absent optionals."""

    wire: RawRecord = {}
    for attribute, name in WIRE_FIELDS.items():
        value = getattr(book, attribute)
        if value is None:
            continue
        wire[name] = value.value if isinstance(value, (ReadStatus, BookSource)) else value
    return wire


def _as_text(value: object) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    log.warning("Dropping non-text value of type %s", type(value).__name__)
    return None


def _as_authors(value: object) -> str:
    # Catalog payloads sometimes hand over author lists
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value if item)
    return _as_text(value) or ""


def _as_millis(value: object, *, field: str) -> EpochMillis | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value):
            return int(value)
    elif isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    log.warning("Dropping unparseable %s value: %r", field, value)
    return None


def _as_rating(value: object) -> Rating | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    number: float | None = None
    if isinstance(value, float):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            pass
    if number is None or not math.isfinite(number):
        log.warning("Dropping unparseable rating value: %r", value)
        return None
    if isinstance(value, str) and number.is_integer():
        return int(number)
    return number


def _as_read_status(value: object) -> ReadStatus:
    if value is None or value == "":
        return ReadStatus.UNKNOWN
    if isinstance(value, ReadStatus):
        return value
    try:
        return ReadStatus(str(value))
    except ValueError:
        log.warning("Unknown readStatus %r, treating as UNKNOWN", value)
        return ReadStatus.UNKNOWN


def _as_source(value: object) -> BookSource | None:
    if value is None or value == "":
        return None
    if isinstance(value, BookSource):
        return value
    text = str(value)
    if text in LEGACY_SOURCE_ALIASES:
        return LEGACY_SOURCE_ALIASES[text]
    try:
        return BookSource(text)
    except ValueError:
        log.warning("Unknown source %r, leaving unset", value)
        return None
