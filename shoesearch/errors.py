"""Exceptions raised while talking to the store."""
from __future__ import annotations


class ShoeSearchError(Exception):
    """Base class for shoe search failures."""


class CatalogFetchError(ShoeSearchError):
    """The catalog endpoint was unreachable or answered with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ImageFetchError(ShoeSearchError):
    """A product image could not be retrieved. Never leaves the image fetcher."""
