"""Shopify catalog client.

The store exposes its whole listing at ``/products.json``. The payload is
trusted for its overall shape only: every field is read defensively so that a
malformed entry degrades to empty values instead of breaking the search.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import quote

import httpx

from .config import settings
from .errors import CatalogFetchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogVariant:
    title: str
    price: Optional[str] = None
    available: Optional[bool] = None


@dataclass(frozen=True)
class CatalogProduct:
    title: str
    handle: str
    variants: tuple[CatalogVariant, ...] = field(default_factory=tuple)
    images: tuple[str, ...] = field(default_factory=tuple)


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _prepare_variant(raw: dict) -> CatalogVariant:
    price = raw.get("price")
    available = raw.get("available")
    return CatalogVariant(
        title=_as_str(raw.get("title")),
        price=_as_str(price) if price is not None else None,
        available=available if isinstance(available, bool) else None,
    )


def _prepare_product(raw: dict) -> CatalogProduct:
    variants = tuple(_prepare_variant(v) for v in _as_list(raw.get("variants")) if isinstance(v, dict))
    images = tuple(
        img["src"]
        for img in _as_list(raw.get("images"))
        if isinstance(img, dict) and isinstance(img.get("src"), str) and img["src"]
    )
    return CatalogProduct(
        title=_as_str(raw.get("title")),
        handle=_as_str(raw.get("handle")),
        variants=variants,
        images=images,
    )


def parse_products(payload: Any) -> list[CatalogProduct]:
    """Turn a ``{"products": [...]}`` document into catalog products.

    Entries without a handle cannot be linked to and are skipped, as are
    repeated handles after their first occurrence.
    """
    if not isinstance(payload, dict):
        logger.warning("Catalog payload is %s, expected an object", type(payload).__name__)
        return []

    products: list[CatalogProduct] = []
    seen: set[str] = set()
    for raw in _as_list(payload.get("products")):
        if not isinstance(raw, dict):
            continue
        product = _prepare_product(raw)
        if not product.handle:
            logger.debug("Skipping catalog entry without handle: %r", product.title)
            continue
        if product.handle in seen:
            logger.warning("Duplicate catalog handle %s ignored", product.handle)
            continue
        seen.add(product.handle)
        products.append(product)
    return products


def product_url(handle: str, size: Optional[str] = None, base_url: Optional[str] = None) -> str:
    base = (base_url or settings.store_base_url).rstrip("/")
    url = f"{base}/products/{handle}"
    if size:
        url += f"?size={quote(size, safe='')}"
    return url


class CatalogClient:
    """Fetches the full product listing from the store."""

    def __init__(self, client: Optional[httpx.Client] = None, url: Optional[str] = None) -> None:
        self.url = url or settings.catalog_url
        self.client = client or httpx.Client(
            timeout=settings.request_timeout,
            follow_redirects=True,
        )

    def fetch_all(self) -> list[CatalogProduct]:
        try:
            response = self.client.get(
                self.url,
                headers={"User-Agent": settings.user_agent, "Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise CatalogFetchError(f"Failed to fetch catalog products: {exc}") from exc

        if not response.is_success:
            raise CatalogFetchError(
                f"HTTP {response.status_code}: Failed to fetch catalog products",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise CatalogFetchError("Catalog response is not valid JSON") from exc

        products = parse_products(payload)
        logger.info("Fetched %s catalog products from %s", len(products), self.url)
        return products

    def close(self) -> None:
        self.client.close()

