"""Google Books configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

GOOGLE_BOOKS_BASE_URL = "https://www.googleapis.com/books/v1/"
GOOGLE_BOOKS_TIMEOUT_SECONDS = 10.0


def cache_catalog_payload(payload: object) -> bool:
    """Keep error payloads (quota, backend errors) out of the response cache."""

    return not (isinstance(payload, dict) and "error" in payload)


@dataclass(frozen=True, slots=True)
class CatalogConfig:
    """Holds catalog (Google Books) API configuration values."""

    resilience: ResilienceConfig
    api_key: str | None = None


def get_catalog_config(*, resilience: ResilienceConfig | None = None) -> CatalogConfig:
    return CatalogConfig(
        api_key=optional_env_var("GOOGLE_BOOKS_API_KEY"),
        resilience=resilience
        or ResilienceConfig(
            name="google_books",
            base_url=GOOGLE_BOOKS_BASE_URL,
            timeout_seconds=GOOGLE_BOOKS_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
            retry=RetryPolicy(total=2),
            cache=CacheConfig(backend="sqlite", should_cache=cache_catalog_payload),
        ),
    )
