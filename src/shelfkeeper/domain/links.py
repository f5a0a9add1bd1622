"""Link and cover derivation for book records.

All derivations key off the effective identifier (``superseding_id`` if the
provider re-issued the id, else ``id``); lookup and uniqueness keep using ``id``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final
from urllib.parse import quote

from shelfkeeper.domain.identifiers import is_marketplace_id
from shelfkeeper.domain.model import BookSource

if TYPE_CHECKING:
    from shelfkeeper.domain.model import BookRecord

MARKETPLACE_PRODUCT_URL: Final[str] = "https://www.amazon.co.jp/dp/{book_id}"
MARKETPLACE_COVER_URL: Final[str] = (
    "https://images-na.ssl-images-amazon.com/images/P/{book_id}.01.L.jpg"
)
CATALOG_DETAIL_URL: Final[str] = "https://books.google.co.jp/books/about/?id={book_id}"
PLACEHOLDER_COVER: Final[str] = "images/no-cover.png"


@dataclass(frozen=True, slots=True)
class BookLink:
    url: str
    label: str


def effective_id(book: BookRecord) -> str:
    return book.superseding_id or book.id


def can_link_to_marketplace(book: BookRecord) -> bool:
    return is_marketplace_id(effective_id(book))


def marketplace_url(book: BookRecord, affiliate_tag: str | None = None) -> str | None:
    book_id = effective_id(book)
    if not is_marketplace_id(book_id):
        return None
    url = MARKETPLACE_PRODUCT_URL.format(book_id=book_id)
    if affiliate_tag:
        url += f"?tag={quote(affiliate_tag)}"
    return url


def catalog_url(book: BookRecord) -> str | None:
    if book.source is not BookSource.EXTERNAL_CATALOG:
        return None
    return CATALOG_DETAIL_URL.format(book_id=quote(book.id))


def book_link(book: BookRecord, affiliate_tag: str | None = None) -> BookLink | None:
    """Pick the outbound link matching where the record came from."""

    if book.source is BookSource.EXTERNAL_CATALOG:
        url = catalog_url(book)
        return BookLink(url=url, label="Google Books") if url else None
    url = marketplace_url(book, affiliate_tag)
    return BookLink(url=url, label="Amazon") if url else None


def marketplace_cover_url(book_id: str) -> str | None:
    if not is_marketplace_id(book_id):
        return None
    return MARKETPLACE_COVER_URL.format(book_id=book_id)


def cover_image_url(book: BookRecord) -> str:
    if book.cover_image_url:
        return book.cover_image_url
    return marketplace_cover_url(effective_id(book)) or PLACEHOLDER_COVER
