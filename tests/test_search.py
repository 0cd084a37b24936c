"""Tests for catalog filtering and the search entry point."""

import asyncio

import pytest

from conftest import CountingFetcher, StubImages, make_product
from shoesearch.cache import CatalogCache
from shoesearch.catalog import CatalogProduct, CatalogVariant
from shoesearch.errors import CatalogFetchError
from shoesearch.query import interpret_query
from shoesearch.search import (
    filter_products,
    format_price,
    has_word,
    matches_gender,
    pick_variant,
    search_shoes,
)


def _run(coro):
    return asyncio.run(coro)


def _titles(products):
    return [p.title for p in products]


def test_word_matching_is_whole_word_and_case_insensitive():
    assert has_word("Run Club Tee", "run")
    assert has_word("RUN club", "run")
    assert not has_word("Running Shorts", "run")
    assert not has_word("Rerun", "run")
    assert has_word("Men's Tree Runner", "men's")


def test_terms_are_regex_escaped():
    assert has_word("Tree Runner (Limited)", "(limited)")
    assert not has_word("Tree Runner", "tree.runner")
    assert not has_word("Tree Runner", "r+")


def test_gender_matching():
    assert matches_gender("Men's Runner", "men")
    assert not matches_gender("Women's Runner", "men")
    assert matches_gender("Women's Runner", "women")
    assert not matches_gender("Men's Runner", "women")
    assert not matches_gender("Tree Runner", "men")
    assert matches_gender("Tree Runner", None)


def test_all_terms_must_match(wool_catalog):
    matches = filter_products(wool_catalog, interpret_query("wool runner"))

    assert _titles(matches) == ["Men's Wool Runner", "Women's Wool Runner"]


def test_empty_terms_match_everything(wool_catalog):
    assert filter_products(wool_catalog, interpret_query("shoes")) == wool_catalog


def test_gender_filter(wool_catalog):
    parsed = interpret_query("runner")

    assert _titles(filter_products(wool_catalog, parsed, "men")) == ["Men's Wool Runner"]
    assert _titles(filter_products(wool_catalog, parsed, "women")) == ["Women's Wool Runner"]


def test_size_filter_requires_available_variant():
    catalog = [
        make_product("Tree Runner", sizes=("9", "10")),
        make_product("Tree Dasher", sizes=("9",), available=False),
        make_product("Tree Breezer", sizes=("9",), available=None),
        make_product("Tree Lounger", sizes=("8", "10")),
    ]

    matches = filter_products(catalog, interpret_query("tree", "42"))

    assert _titles(matches) == ["Tree Runner", "Tree Breezer"]


def test_size_filter_compares_case_insensitively():
    catalog = [make_product("Wool Cap", sizes=("S/M", "L/XL"))]

    assert _titles(filter_products(catalog, interpret_query("cap", "s/m"))) == ["Wool Cap"]


def test_pick_variant_prefers_requested_size():
    product = CatalogProduct(
        title="Tree Runner",
        handle="tree-runner",
        variants=(CatalogVariant("8", "95.00", True), CatalogVariant("9", "110.00", True)),
    )

    assert pick_variant(product, "9").price == "110.00"
    assert pick_variant(product, None).title == "8"
    assert pick_variant(CatalogProduct(title="x", handle="x"), None) is None


@pytest.mark.parametrize(
    "price, expected",
    [("98.00", "$98"), ("98.50", "$99"), ("98.49", "$98"), ("0.00", "$0"), (None, "See price"), ("", "See price"), ("n/a", "See price"), ("NaN", "See price"), ("Infinity", "See price"), ("1e30", "See price")],
)
def test_format_price(price, expected):
    assert format_price(price) == expected


def test_wool_runner_end_to_end(catalog_cache, images):
    response = _run(search_shoes("wool runner", cache=catalog_cache, images=images))

    assert response.error is None
    assert response.totalFound == 2
    assert [s.name for s in response.shoes] == ["Men's Wool Runner", "Women's Wool Runner"]
    assert response.size is None
    assert response.gender is None

    shoe = response.shoes[0]
    assert shoe.handle == "mens-wool-runner"
    assert shoe.price == "$98"
    assert shoe.productUrl == "https://www.allbirds.com/products/mens-wool-runner"
    assert shoe.imageUrl == "data:image/png;base64,mens-wool-runner.png"


def test_search_with_size_and_gender(catalog_cache, images):
    response = _run(search_shoes("runner", size="42", gender="men", cache=catalog_cache, images=images))

    assert response.size == "9"
    assert response.gender == "men"
    assert [s.name for s in response.shoes] == ["Men's Wool Runner"]
    assert response.shoes[0].size == "9"
    assert response.shoes[0].productUrl.endswith("/products/mens-wool-runner?size=9")


def test_size_typed_in_query(catalog_cache, images):
    response = _run(search_shoes("women runner 43", cache=catalog_cache, images=images))

    assert response.size == "10"
    assert [s.name for s in response.shoes] == ["Women's Wool Runner"]


def test_results_are_truncated_but_total_is_not(clock, images):
    catalog = [make_product(f"Tree Runner {i}", handle=f"tree-runner-{i}") for i in range(8)]
    cache = CatalogCache(CountingFetcher(catalog), ttl_seconds=300, clock=clock)

    response = _run(search_shoes("tree runner", cache=cache, images=images))

    assert response.totalFound == 8
    assert [s.handle for s in response.shoes] == [f"tree-runner-{i}" for i in range(5)]
    assert len(images.requested) == 5


def test_no_match_is_not_an_error(catalog_cache, images):
    response = _run(search_shoes("sandals", cache=catalog_cache, images=images))

    assert response.error is None
    assert response.shoes == []
    assert response.totalFound == 0


def test_catalog_failure_is_returned_as_data(fetcher, clock, images):
    fetcher.error = CatalogFetchError("HTTP 503: Failed to fetch catalog products", status_code=503)
    cache = CatalogCache(fetcher, ttl_seconds=300, clock=clock)

    response = _run(search_shoes("runner 9", gender="women", cache=cache, images=images))

    assert response.shoes == []
    assert response.totalFound == 0
    assert response.error == "HTTP 503: Failed to fetch catalog products"
    assert response.query == "runner 9"
    assert response.size == "9"
    assert response.gender == "women"


def test_unexpected_failure_is_returned_as_data(clock, images):
    def broken():
        raise KeyError("products")

    cache = CatalogCache(broken, ttl_seconds=300, clock=clock)

    response = _run(search_shoes("runner", cache=cache, images=images))

    assert response.error
    assert response.shoes == []


def test_image_failure_does_not_abort_search(catalog_cache):
    images = StubImages(failing={"https://cdn.example.com/mens-wool-runner.png"})

    response = _run(search_shoes("wool runner", cache=catalog_cache, images=images))

    assert response.error is None
    assert [s.imageUrl for s in response.shoes] == ["", "data:image/png;base64,womens-wool-runner.png"]


def test_product_without_images_or_variants(clock, images):
    cache = CatalogCache(CountingFetcher([CatalogProduct(title="Gift Card", handle="gift-card")]), clock=clock)

    response = _run(search_shoes("gift card", cache=cache, images=images))

    assert response.shoes[0].imageUrl == ""
    assert response.shoes[0].price == "See price"
    assert images.requested == []


def test_unknown_gender_is_ignored(catalog_cache, images):
    response = _run(search_shoes("wool runner", gender="kids", cache=catalog_cache, images=images))

    assert response.gender is None
    assert response.totalFound == 2


def test_repeated_searches_hit_catalog_once(catalog_cache, fetcher, images):
    _run(search_shoes("wool", cache=catalog_cache, images=images))
    _run(search_shoes("trail", cache=catalog_cache, images=images))

    assert fetcher.calls == 1


def test_bad_price_only_affects_its_own_card(clock, images):
    catalog = [
        make_product("Tree Runner", handle="tree-runner-odd", price="1e30"),
        make_product("Tree Runner Go", handle="tree-runner-go", price="98.00"),
    ]
    cache = CatalogCache(CountingFetcher(catalog), ttl_seconds=300, clock=clock)

    response = _run(search_shoes("tree runner", cache=cache, images=images))

    assert response.error is None
    assert response.totalFound == 2
    assert [s.price for s in response.shoes] == ["See price", "$98"]
