"""Pydantic models for request/response payloads."""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

Gender = Literal["men", "women"]


class ShoeResult(BaseModel):
    name: str
    price: str = Field(..., description='Whole-dollar price such as "$98", or "See price"')
    imageUrl: str = Field("", description="Inline data URI, empty when the image could not be fetched")
    productUrl: str
    size: Optional[str] = None
    handle: str


class SearchResponse(BaseModel):
    query: str
    size: Optional[str] = None
    gender: Optional[Gender] = None
    shoes: list[ShoeResult] = Field(default_factory=list)
    totalFound: int = 0
    error: Optional[str] = None


class CacheStatus(BaseModel):
    cached: bool
    products: int
    age_seconds: Optional[float] = None
    ttl_seconds: float
