"""FastAPI application wiring the search service."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query

from .cache import get_cache, run_sweeper
from .config import settings
from .es_client import get_client
from .importer import import_if_empty, reindex_data
from .indexing import ensure_index, index_is_empty
from .models import SearchResponse
from .retriever import RetrievalError
from .search_service import SearchService, get_search_service

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL = logging.getLevelName(settings.log_level.upper())

# Force a predictable logging setup even when run under uvicorn, so the
# enhancement and timing lines are visible. ``force=True`` replaces uvicorn's
# default handlers.
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT, force=True)
for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "elastic_transport", "openai", "httpx"):
    logging.getLogger(name).setLevel(LOG_LEVEL)

logger = logging.getLogger(__name__)
logger.info("Logging configured at %s", settings.log_level.upper())

app = FastAPI(title="Product Search Service")

_sweeper: asyncio.Task | None = None


@app.on_event("startup")
async def startup_event() -> None:
    global _sweeper
    _sweeper = asyncio.create_task(run_sweeper(get_cache(), settings.enhancement_cache_sweep_seconds))
    es = get_client()
    await ensure_index(es)
    if settings.load_on_startup:
        imported = await import_if_empty(es)
        if imported:
            logger.info("Imported %s products on startup", imported)


@app.on_event("shutdown")
async def shutdown_event() -> None:
    if _sweeper is not None:
        _sweeper.cancel()


@app.get("/health")
async def health() -> dict:
    es = get_client()
    status = await asyncio.to_thread(es.cluster.health)
    empty = await index_is_empty(es)
    return {
        "elasticsearch": status.get("status"),
        "index": settings.es_index,
        "empty": empty,
        "cache": type(get_cache()).__name__,
    }


@app.get("/api/v1/search/product", response_model=SearchResponse)
async def search(
    query: Optional[str] = Query(None, description="Search query"),
    service: SearchService = Depends(get_search_service),
) -> SearchResponse:
    if query is None or not query.strip():
        raise HTTPException(status_code=400, detail="Search query is required")
    try:
        return await service.search(query)
    except RetrievalError as exc:
        raise HTTPException(status_code=500, detail="Search failed") from exc


@app.post("/reindex")
async def reindex() -> dict:
    es = get_client()
    count = await reindex_data(es)
    return {"indexed": count}
