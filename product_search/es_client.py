"""Elasticsearch client factory.

The catalog is queried through the official synchronous client; callers wrap
blocking calls in ``asyncio.to_thread``. Retries are disabled so a store
outage surfaces as one failed request instead of a slow one.
"""
from __future__ import annotations

import logging
from functools import lru_cache

from elasticsearch import Elasticsearch

from .config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_client() -> Elasticsearch:
    logger.info("Connecting to Elasticsearch at %s timeout=%ss", settings.es_host, settings.es_request_timeout)
    return Elasticsearch(
        settings.es_host,
        request_timeout=settings.es_request_timeout,
        max_retries=0,
        retry_on_timeout=False,
    )
