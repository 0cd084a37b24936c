"""Shared fixtures: small catalogs, fake clocks and image stubs."""
from __future__ import annotations

from typing import Iterable, List

import pytest

from shoesearch.cache import CatalogCache
from shoesearch.catalog import CatalogProduct, CatalogVariant


def make_product(
    title: str,
    handle: str | None = None,
    sizes: Iterable[str] = ("8", "9", "10"),
    price: str | None = "98.00",
    available: bool | None = True,
    image: str | None = None,
) -> CatalogProduct:
    handle = handle or title.lower().replace("'", "").replace(" ", "-")
    return CatalogProduct(
        title=title,
        handle=handle,
        variants=tuple(CatalogVariant(title=s, price=price, available=available) for s in sizes),
        images=(image or f"https://cdn.example.com/{handle}.png",),
    )


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingFetcher:
    def __init__(self, products: List[CatalogProduct]) -> None:
        self.products = products
        self.calls = 0
        self.error: Exception | None = None

    def __call__(self) -> List[CatalogProduct]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.products)


class StubImages:
    """Returns a fake data URI per URL and records what was requested."""

    def __init__(self, failing: Iterable[str] = ()) -> None:
        self.failing = set(failing)
        self.requested: List[str] = []

    def fetch_data_uri(self, url: str) -> str:
        self.requested.append(url)
        if url in self.failing:
            raise RuntimeError(f"cannot load {url}")
        return f"data:image/png;base64,{url.rsplit('/', 1)[-1]}"


@pytest.fixture
def wool_catalog() -> List[CatalogProduct]:
    return [
        make_product("Men's Wool Runner"),
        make_product("Women's Wool Runner"),
        make_product("Trail Runner"),
    ]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fetcher(wool_catalog) -> CountingFetcher:
    return CountingFetcher(wool_catalog)


@pytest.fixture
def catalog_cache(fetcher, clock) -> CatalogCache:
    return CatalogCache(fetcher, ttl_seconds=300, clock=clock)


@pytest.fixture
def images() -> StubImages:
    return StubImages()
