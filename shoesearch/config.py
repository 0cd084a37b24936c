"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    store_base_url: str = _get_env("STORE_BASE_URL", "https://www.allbirds.com")
    catalog_path: str = _get_env("CATALOG_PATH", "/products.json")
    # The store has ~250 products, one page covers the whole catalog.
    catalog_limit: int = int(_get_env("CATALOG_LIMIT", "250"))
    cache_ttl_seconds: int = int(_get_env("CACHE_TTL_SECONDS", "300"))
    max_results: int = int(_get_env("MAX_RESULTS", "5"))
    image_width: int = int(_get_env("IMAGE_WIDTH", "200"))
    image_format: str = _get_env("IMAGE_FORMAT", "pjpg")
    request_timeout: float = float(_get_env("REQUEST_TIMEOUT", "15"))
    user_agent: str = _get_env("USER_AGENT", DEFAULT_USER_AGENT)
    log_level: str = _get_env("LOG_LEVEL", "INFO")

    @property
    def catalog_url(self) -> str:
        return f"{self.store_base_url.rstrip('/')}{self.catalog_path}?limit={self.catalog_limit}"


settings = Settings()
