"""Candidate retrieval from the Elasticsearch catalog index.

The store only narrows the catalog down to a bounded candidate set; ordering
is decided afterwards by :mod:`product_search.scoring`. A candidate matches
when its title or description contains any term of the corrected query. A
category inferred by the enhancer widens the match set instead of filtering
it, and is rewarded by the scorer.
"""
from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional, Protocol

from elasticsearch import Elasticsearch
from elasticsearch.exceptions import ApiError, TransportError

from .models import Category, ProductCandidate

logger = logging.getLogger(__name__)

TEXT_FIELDS = ["title^2", "description"]
SUBSTRING_FIELDS = {"title": 2.0, "description": 1.0}
_WILDCARD_SPECIALS = re.compile(r"([*?\\])")


class RetrievalError(Exception):
    """The catalog store could not be queried."""


class CandidateRetriever(Protocol):
    async def find(self, corrected_query: str, category: Optional[Category] = None) -> List[ProductCandidate]: ...


def build_candidate_query(corrected_query: str, category: Optional[Category], limit: int) -> Dict[str, Any]:
    should: List[dict] = [
        {
            "multi_match": {
                "query": corrected_query,
                "fields": TEXT_FIELDS,
                "operator": "or",
            }
        }
    ]
    # Wildcards run against indexed tokens, so "phone" also finds "iPhone".
    for term in dict.fromkeys(corrected_query.lower().split()):
        escaped = _WILDCARD_SPECIALS.sub(r"\\\1", term)
        pattern = f"*{escaped}*"
        for field, boost in SUBSTRING_FIELDS.items():
            should.append(
                {"wildcard": {field: {"value": pattern, "case_insensitive": True, "boost": boost}}}
            )
    if category is not None and category != Category.OTHER:
        should.append({"term": {"category": category.value}})

    query = {
        "size": limit,
        "query": {
            "bool": {
                "should": should,
                "minimum_should_match": 1,
            }
        },
    }
    logger.debug("ES query payload=%s", query)
    return query


def hit_to_candidate(hit: Dict[str, Any]) -> ProductCandidate:
    source = dict(hit.get("_source") or {})
    source.setdefault("id", hit.get("_id"))
    return ProductCandidate.model_validate(source)


class ElasticsearchRetriever:
    def __init__(self, es: Elasticsearch, index: str, limit: int = 150) -> None:
        self.es = es
        self.index = index
        self.limit = limit

    async def find(self, corrected_query: str, category: Optional[Category] = None) -> List[ProductCandidate]:
        body = build_candidate_query(corrected_query, category, self.limit)
        try:
            response = await asyncio.to_thread(self.es.search, index=self.index, body=body)
        except (ApiError, TransportError) as exc:
            logger.exception("Candidate retrieval failed for %r", corrected_query)
            raise RetrievalError(str(exc)) from exc

        hits = response.get("hits", {}).get("hits", [])
        candidates = [hit_to_candidate(hit) for hit in hits[: self.limit]]
        logger.info(
            "retrieve q=%r category=%s hits=%s took=%sms",
            corrected_query,
            category.value if category else None,
            len(candidates),
            response.get("took", 0),
        )
        return candidates
