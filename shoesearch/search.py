"""Catalog filtering and the public search entry point."""
from __future__ import annotations

import asyncio
import logging
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from functools import lru_cache
from time import perf_counter
from typing import Iterable, List, Optional, Protocol, Sequence

from .cache import CatalogCache, get_catalog_cache
from .catalog import CatalogProduct, CatalogVariant, product_url
from .config import settings
from .errors import CatalogFetchError
from .images import get_image_fetcher
from .models import SearchResponse, ShoeResult
from .query import InterpretedQuery, interpret_query

logger = logging.getLogger(__name__)

PRICE_PLACEHOLDER = "See price"
GENDERS = ("men", "women")


class ImageSource(Protocol):
    def fetch_data_uri(self, url: str) -> str: ...


@lru_cache(maxsize=256)
def _word_pattern(term: str) -> re.Pattern[str]:
    # Whole-word match: the term may not touch another word character on either side.
    return re.compile(rf"(?<!\w){re.escape(term)}(?!\w)", re.IGNORECASE)


def has_word(title: str, term: str) -> bool:
    return _word_pattern(term).search(title) is not None


def matches_terms(title: str, terms: Iterable[str]) -> bool:
    return all(has_word(title, term) for term in terms)


def matches_gender(title: str, gender: Optional[str]) -> bool:
    if gender == "women":
        return has_word(title, "women")
    if gender == "men":
        return has_word(title, "men") and not has_word(title, "women")
    return True


def normalize_gender(gender: Optional[str]) -> Optional[str]:
    if not gender:
        return None
    value = gender.strip().lower()
    if value not in GENDERS:
        logger.warning("Ignoring unknown gender %r", gender)
        return None
    return value


def _same_size(variant: CatalogVariant, size: str) -> bool:
    return variant.title.lower() == size.lower()


def has_size_in_stock(product: CatalogProduct, size: str) -> bool:
    return any(_same_size(v, size) and v.available is not False for v in product.variants)


def filter_products(
    products: Sequence[CatalogProduct],
    interpreted: InterpretedQuery,
    gender: Optional[str] = None,
) -> List[CatalogProduct]:
    """Apply the term, gender and size filters, keeping catalog order."""
    matches = [p for p in products if matches_terms(p.title, interpreted.terms)]
    if gender:
        matches = [p for p in matches if matches_gender(p.title, gender)]
    if interpreted.size:
        matches = [p for p in matches if has_size_in_stock(p, interpreted.size)]
    return matches


def pick_variant(product: CatalogProduct, size: Optional[str]) -> Optional[CatalogVariant]:
    if size:
        return next((v for v in product.variants if _same_size(v, size)), None)
    return product.variants[0] if product.variants else None


def format_price(price: Optional[str]) -> str:
    if not price:
        return PRICE_PLACEHOLDER
    try:
        amount = Decimal(price).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # Covers non-numbers, infinities and exponents too large to quantize.
        logger.debug("Unparseable price %r", price)
        return PRICE_PLACEHOLDER
    if amount.is_nan():
        logger.debug("Unparseable price %r", price)
        return PRICE_PLACEHOLDER
    return f"${amount}"


def build_shoe(product: CatalogProduct, size: Optional[str], image: str) -> ShoeResult:
    variant = pick_variant(product, size)
    return ShoeResult(
        name=product.title,
        price=format_price(variant.price if variant else None),
        imageUrl=image,
        productUrl=product_url(product.handle, size),
        size=size,
        handle=product.handle,
    )


async def _fetch_images(products: Sequence[CatalogProduct], images: ImageSource) -> List[str]:
    async def fetch(product: CatalogProduct) -> str:
        if not product.images:
            return ""
        return await asyncio.to_thread(images.fetch_data_uri, product.images[0])

    results = await asyncio.gather(*(fetch(p) for p in products), return_exceptions=True)
    uris: List[str] = []
    for product, result in zip(products, results):
        if isinstance(result, Exception):
            logger.warning("Image for %s dropped: %s", product.handle, result)
            uris.append("")
        elif isinstance(result, BaseException):
            raise result
        else:
            uris.append(result)
    return uris


def _error_response(interpreted: InterpretedQuery, gender: Optional[str], exc: Exception) -> SearchResponse:
    return SearchResponse(
        query=interpreted.query,
        size=interpreted.size,
        gender=gender,
        shoes=[],
        totalFound=0,
        error=str(exc) or exc.__class__.__name__,
    )


async def search_catalog(
    interpreted: InterpretedQuery,
    gender: Optional[str] = None,
    *,
    cache: Optional[CatalogCache] = None,
    images: Optional[ImageSource] = None,
) -> SearchResponse:
    """Run an interpreted query against the cached catalog.

    Never raises: a catalog failure comes back as an empty response with
    ``error`` set.
    """
    gender = normalize_gender(gender)
    t0 = perf_counter()
    try:
        cache = cache or get_catalog_cache()
        products = await asyncio.to_thread(cache.get_products)
        t1 = perf_counter()

        matches = filter_products(products, interpreted, gender)
        selected = matches[: settings.max_results]
        image_uris = await _fetch_images(selected, images or get_image_fetcher())
        shoes = [build_shoe(p, interpreted.size, img) for p, img in zip(selected, image_uris)]
    except CatalogFetchError as exc:
        logger.error("catalog unavailable q=%r: %s", interpreted.query, exc)
        return _error_response(interpreted, gender, exc)
    except Exception as exc:  # noqa: BLE001 - errors are returned as data
        logger.exception("search failed q=%r", interpreted.query)
        return _error_response(interpreted, gender, exc)
    t2 = perf_counter()

    logger.info(
        "timing: total=%.2fms catalog=%.2fms post=%.2fms q=%r terms=%s size=%s gender=%s found=%s",
        (t2 - t0) * 1000,
        (t1 - t0) * 1000,
        (t2 - t1) * 1000,
        interpreted.query,
        list(interpreted.terms),
        interpreted.size,
        gender,
        len(matches),
    )
    return SearchResponse(
        query=interpreted.query,
        size=interpreted.size,
        gender=gender,
        shoes=shoes,
        totalFound=len(matches),
        error=None,
    )


async def search_shoes(
    query: str,
    size: Optional[str] = None,
    gender: Optional[str] = None,
    *,
    cache: Optional[CatalogCache] = None,
    images: Optional[ImageSource] = None,
) -> SearchResponse:
    interpreted = interpret_query(query, size)
    return await search_catalog(interpreted, gender, cache=cache, images=images)
