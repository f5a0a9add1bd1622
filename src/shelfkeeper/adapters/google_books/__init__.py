"""Google Books catalog adapter."""

from __future__ import annotations

from .client import CatalogAPIError, GoogleBooksClient
from .fetcher import GoogleBooksCatalog
from .schema import ImageLinks, Volume, VolumeInfo, VolumeSearch
from .translator import best_image_url, translate_volume

__all__ = [
    "CatalogAPIError",
    "GoogleBooksCatalog",
    "GoogleBooksClient",
    "ImageLinks",
    "Volume",
    "VolumeInfo",
    "VolumeSearch",
    "best_image_url",
    "translate_volume",
]
