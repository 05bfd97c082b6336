"""End-to-end search pipeline: enhance, retrieve, score, assemble."""
from __future__ import annotations

import logging
from functools import lru_cache
from time import perf_counter

from .config import settings
from .enhancer import QueryEnhancer, build_enhancer
from .es_client import get_client
from .models import SearchMeta, SearchResponse
from .ranking import assemble, rank
from .retriever import CandidateRetriever, ElasticsearchRetriever
from .scoring import RankScorer

logger = logging.getLogger(__name__)


class SearchService:
    def __init__(
        self,
        enhancer: QueryEnhancer,
        retriever: CandidateRetriever,
        scorer: RankScorer | None = None,
    ) -> None:
        self.enhancer = enhancer
        self.retriever = retriever
        self.scorer = scorer or RankScorer()

    async def search(self, raw_query: str) -> SearchResponse:
        """Run the pipeline for a validated, non-blank query.

        Enhancement failures are absorbed by the enhancer; retrieval failures
        propagate as :class:`~product_search.retriever.RetrievalError`.
        """

        t0 = perf_counter()
        enhancement = await self.enhancer.enhance(raw_query)
        t1 = perf_counter()
        candidates = await self.retriever.find(enhancement.corrected_query, enhancement.intent.category)
        t2 = perf_counter()
        scored = rank(candidates, enhancement.corrected_query, enhancement.intent, self.scorer)
        results = assemble(scored)
        t3 = perf_counter()

        total_ms = (t3 - t0) * 1000
        logger.info(
            "timing: total=%.2fms enhance=%.2fms retrieve=%.2fms rank=%.2fms q=%r corrected=%r method=%s hits=%s",
            total_ms,
            (t1 - t0) * 1000,
            (t2 - t1) * 1000,
            (t3 - t2) * 1000,
            raw_query,
            enhancement.corrected_query,
            enhancement.method.value,
            len(results),
        )
        if results:
            top = sorted((item.score for item in scored), reverse=True)[:3]
            logger.debug("top scores=%s", ["%.1f" % value for value in top])

        corrected = enhancement.corrected_query
        meta = SearchMeta(
            totalResults=len(results),
            query=raw_query,
            correctedQuery=corrected if corrected != raw_query else None,
            intent=enhancement.intent,
            enhancementMethod=enhancement.method,
            latencyMs=round(total_ms, 2),
        )
        return SearchResponse(data=results, meta=meta)


@lru_cache(maxsize=1)
def get_search_service() -> SearchService:
    retriever = ElasticsearchRetriever(get_client(), settings.es_index, settings.retrieval_limit)
    return SearchService(build_enhancer(), retriever)
