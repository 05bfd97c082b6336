"""Load a JSON product catalog into the search index for local runs."""
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Iterable

from elasticsearch import Elasticsearch, helpers

from .config import settings
from .models import ProductCandidate

logger = logging.getLogger(__name__)


def _load_products(path: Path) -> list[dict]:
    if not path.exists():
        logger.warning("Products file %s is missing", path)
        return []
    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, list):
        logger.warning("Products file %s does not hold a JSON list", path)
        return []
    return data


def _document_id(raw: dict) -> Any:
    """Plain id from a record; Mongo exports wrap it as ``{"$oid": ...}``."""
    value = raw.get("id") or raw.get("_id") or raw.get("productId")
    if isinstance(value, dict):
        value = value.get("$oid")
    return value


def _prepare_product(raw: dict) -> dict:
    """Normalize a raw record into the indexed document shape."""
    raw = dict(raw)
    raw["id"] = _document_id(raw)
    raw.setdefault("price", raw.get("sellingPrice"))
    product = ProductCandidate.model_validate(raw)
    return product.model_dump(mode="json")


def _iter_actions(index: str, products: Iterable[dict]) -> Iterable[dict]:
    for position, product in enumerate(products):
        doc_id = product.pop("id") or str(position)
        yield {
            "_index": index,
            "_id": doc_id,
            "_source": product,
        }


async def import_products(es: Elasticsearch) -> int:
    raw_products = _load_products(Path(settings.products_path))
    if not raw_products:
        return 0
    products = [_prepare_product(item) for item in raw_products]
    actions = list(_iter_actions(settings.es_index, products))
    await asyncio.to_thread(helpers.bulk, es, actions)
    logger.info("Indexed %s products into %s", len(actions), settings.es_index)
    return len(actions)


async def import_if_empty(es: Elasticsearch) -> int:
    stats = await asyncio.to_thread(es.count, index=settings.es_index)
    if stats.get("count", 0) > 0:
        return 0
    return await import_products(es)


async def reindex_data(es: Elasticsearch) -> int:
    from .indexing import drop_index, ensure_index

    await drop_index(es)
    await ensure_index(es)
    return await import_products(es)
