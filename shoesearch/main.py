"""FastAPI application wiring the shoe search."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Query

from .cache import close_catalog_cache, get_catalog_cache
from .config import settings
from .errors import CatalogFetchError
from .images import close_image_fetcher
from .models import CacheStatus, Gender, SearchResponse
from .search import search_shoes

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL = logging.getLevelName(settings.log_level.upper())

# ``force=True`` replaces uvicorn's default handlers so the timing lines show up.
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT, force=True)
for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(name).setLevel(LOG_LEVEL)
# httpx logs every request at INFO; keep it for debugging only.
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)
logger.info("Logging configured at %s", settings.log_level.upper())

app = FastAPI(title="Allbirds Shoe Search")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    close_catalog_cache()
    close_image_fetcher()
    logger.info("HTTP clients closed")


@app.get("/health", response_model=CacheStatus)
async def health() -> CacheStatus:
    cache = get_catalog_cache()
    snapshot = cache.snapshot
    return CacheStatus(
        cached=snapshot is not None,
        products=len(snapshot.products) if snapshot else 0,
        age_seconds=cache.age(),
        ttl_seconds=cache.ttl_seconds,
    )


@app.get("/search", response_model=SearchResponse)
async def search(
    query: str = Query(..., description='Search query, e.g. "tree runner", "wool runner", "trail"'),
    size: Optional[str] = Query(None, description="Shoe size to filter by, EU (e.g. 42) or US (e.g. 9)"),
    gender: Optional[Gender] = Query(None, description="Filter by gender: 'men' or 'women'"),
) -> SearchResponse:
    if not query.strip():
        raise HTTPException(status_code=400, detail="Query must not be empty")
    return await search_shoes(query, size, gender)


@app.post("/refresh")
async def refresh() -> dict:
    cache = get_catalog_cache()
    try:
        snapshot = await asyncio.to_thread(cache.refresh)
    except CatalogFetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return {"products": len(snapshot.products)}
