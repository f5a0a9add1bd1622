"""Translate Google Books volumes into catalog fragments."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from shelfkeeper.domain.ports import BookFragment

if TYPE_CHECKING:
    from .schema import ImageLinks, Volume

# Largest first
IMAGE_SIZE_PREFERENCE: Final[tuple[str, ...]] = (
    "extra_large",
    "large",
    "medium",
    "small",
    "thumbnail",
    "small_thumbnail",
)


def best_image_url(links: ImageLinks | None) -> str | None:
    if links is None:
        return None
    for size in IMAGE_SIZE_PREFERENCE:
        url = getattr(links, size)
        if url:
            return _force_https(url)
    return None


def translate_volume(volume: Volume, *, identifier: str) -> BookFragment:
    """Build a fragment keyed by ``identifier``, which may differ from the volume id."""

    info = volume.volume_info
    return BookFragment(
        identifier=identifier,
        title=info.title or "",
        authors=", ".join(author for author in info.authors if author),
        cover_image_url=best_image_url(info.image_links),
    )


def _force_https(url: str) -> str:
    if url.startswith("http://"):
        return "https://" + url.removeprefix("http://")
    return url
