"""Identifier resolution and classification.

Records reach us in two shapes: the current one keyed by ``id`` and an older one
keyed by ``asin`` (with ``updatedAsin`` for re-issued identifiers). Candidate field
lists are ordered; the first present value wins.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

from shelfkeeper.domain.errors import InvalidIdentifierError
from shelfkeeper.domain.model import IdentifierKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

IDENTIFIER_FIELDS: Final[tuple[str, ...]] = ("id", "asin")
SUPERSEDING_ID_FIELDS: Final[tuple[str, ...]] = ("supersedingId", "updatedAsin")

_MARKETPLACE_ID = re.compile(r"[A-Z0-9]{10}")
_CATALOG_VOLUME_ID = re.compile(r"[A-Za-z0-9_-]{5,20}")
_URL_MARKERS: Final[tuple[str, ...]] = ("://", ".com", ".co.jp")
_WHITESPACE = re.compile(r"\s")

# Specific host forms first; the bare 10-char path segment is a last resort.
MARKETPLACE_LINK_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"amazon\.co\.jp/dp/([A-Z0-9]{10})"),
    re.compile(r"amazon\.co\.jp/.*/dp/([A-Z0-9]{10})"),
    re.compile(r"amazon\.com/dp/([A-Z0-9]{10})"),
    re.compile(r"amazon\.com/.*/dp/([A-Z0-9]{10})"),
    re.compile(r"/([A-Z0-9]{10})(?:/|\?|$)"),
)

CATALOG_LINK_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"[?&]id=([^&]+)"),
    re.compile(r"/books/edition/[^/]+/([^/?]+)"),
)

_CATALOG_HOST_MARKERS: Final[tuple[str, ...]] = ("google.com", "play.google.com", "google.co.jp")


def _is_present(value: object) -> bool:
    return value is not None and value != ""


def first_present(raw: Mapping[str, object], fields: Iterable[str]) -> object | None:
    """Return the value of the first field in ``fields`` that is present in ``raw``."""

    for name in fields:
        value = raw.get(name)
        if _is_present(value):
            return value
    return None


def resolve_identifier(raw: Mapping[str, object]) -> str:
    """Return the canonical identifier of ``raw`` or raise ``InvalidIdentifierError``."""

    value = first_present(raw, IDENTIFIER_FIELDS)
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        fields = ", ".join(IDENTIFIER_FIELDS)
        raise InvalidIdentifierError(f"Record has no usable identifier (looked at: {fields})")
    return value.strip()


def classify(book_id: str) -> IdentifierKind:
    if _MARKETPLACE_ID.fullmatch(book_id):
        return IdentifierKind.MARKETPLACE
    return IdentifierKind.GENERIC


def is_marketplace_id(book_id: str | None) -> bool:
    return book_id is not None and classify(book_id) is IdentifierKind.MARKETPLACE


def is_valid_catalog_volume_id(value: object) -> bool:
    """Check that ``value`` looks like a bare catalog volume id and not a URL."""

    if not isinstance(value, str) or not value:
        return False
    if any(marker in value for marker in _URL_MARKERS):
        return False
    if _WHITESPACE.search(value):
        return False
    return _CATALOG_VOLUME_ID.fullmatch(value) is not None


def extract_identifier_from_url(
    url: str,
    patterns: Iterable[re.Pattern[str]],
) -> str | None:
    for pattern in patterns:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def looks_like_catalog_link(value: str) -> bool:
    return any(marker in value for marker in _CATALOG_HOST_MARKERS)
