"""Import and link settings for the library service."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env_var
from .http_resilience import CacheConfig, ResilienceConfig

BULK_IMPORT_TIMEOUT_SECONDS = 15.0


def _bulk_import_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="bulk_import",
        timeout_seconds=BULK_IMPORT_TIMEOUT_SECONDS,
        cache=CacheConfig(enabled=False),
    )


@dataclass(frozen=True, slots=True)
class ImportConfig:
    remote_url: str | None = None
    resilience: ResilienceConfig = field(default_factory=_bulk_import_resilience)


@dataclass(frozen=True, slots=True)
class LinkConfig:
    affiliate_tag: str | None = None


def get_import_config() -> ImportConfig:
    return ImportConfig(remote_url=optional_env_var("SHELFKEEPER_BULK_IMPORT_URL"))


def get_link_config() -> LinkConfig:
    return LinkConfig(affiliate_tag=optional_env_var("SHELFKEEPER_AFFILIATE_TAG"))
