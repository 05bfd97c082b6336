"""Query enhancement: cached LLM call raced against a deadline, with fallback.

Order of resolution for a raw query:

1. a valid cache entry for the exact string -> ``llm-cached``;
2. no LLM client configured -> manual fallback;
3. LLM call started as a task and awaited for at most ``timeout_seconds``.
   A timely, well-formed answer is cached and returned as ``llm``. A late
   task is detached and left to finish on its own; its result is discarded;
4. :class:`LexicalCorrector` then :class:`IntentExtractor` -> ``manual-fallback``.

:meth:`QueryEnhancer.enhance` never raises for enhancement failures.
"""
from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Optional, Protocol

from .cache import EnhancementCache, get_cache
from .config import settings
from .corrections import LexicalCorrector
from .intent import IntentExtractor
from .llm_client import build_llm_client
from .models import EnhancementMethod, EnhancementResult, Intent

logger = logging.getLogger(__name__)


class ExternalEnhancer(Protocol):
    async def enhance(self, query: str) -> tuple[str, Intent]: ...


class QueryEnhancer:
    def __init__(
        self,
        cache: EnhancementCache,
        client: Optional[ExternalEnhancer] = None,
        corrector: Optional[LexicalCorrector] = None,
        extractor: Optional[IntentExtractor] = None,
        timeout_seconds: float = 0.8,
    ) -> None:
        self.cache = cache
        self.client = client
        self.corrector = corrector or LexicalCorrector()
        self.extractor = extractor or IntentExtractor()
        self.timeout_seconds = timeout_seconds
        # Strong references to abandoned LLM calls until they complete.
        self._detached: set[asyncio.Task] = set()

    async def enhance(self, query: str) -> EnhancementResult:
        cached = self.cache.get(query)
        if cached is not None:
            logger.info("LLM cache hit q=%r", query)
            return EnhancementResult(cached.corrected_query, cached.intent, EnhancementMethod.LLM_CACHED)

        if self.client is None:
            return self.fallback(query)

        enhanced = await self._race(query)
        if enhanced is None:
            return self.fallback(query)

        corrected, intent = enhanced
        self.cache.put(query, corrected, intent)
        return EnhancementResult(corrected, intent, EnhancementMethod.LLM)

    def fallback(self, query: str) -> EnhancementResult:
        corrected = self.corrector.correct(query)
        intent = self.extractor.extract(corrected)
        logger.info("manual fallback q=%r corrected=%r", query, corrected)
        return EnhancementResult(corrected, intent, EnhancementMethod.MANUAL_FALLBACK)

    async def _race(self, query: str) -> Optional[tuple[str, Intent]]:
        start = perf_counter()
        try:
            task = asyncio.ensure_future(self.client.enhance(query))
        except Exception as exc:
            logger.warning("LLM enhancement could not start: %s, using manual fallback", exc)
            return None

        done, _ = await asyncio.wait({task}, timeout=self.timeout_seconds)
        elapsed_ms = (perf_counter() - start) * 1000
        if task not in done:
            self._detach(task)
            logger.warning(
                "LLM enhancement timed out after %.0fms q=%r, using manual fallback",
                elapsed_ms,
                query,
            )
            return None

        try:
            corrected, intent = task.result()
        except Exception as exc:
            logger.warning("LLM enhancement failed: %s, using manual fallback", exc)
            return None

        logger.info(
            "LLM response in %.0fms corrected=%r intent=%s",
            elapsed_ms,
            corrected,
            intent.model_dump(mode="json"),
        )
        return corrected, intent

    def _detach(self, task: asyncio.Task) -> None:
        self._detached.add(task)
        task.add_done_callback(self._discard)

    def _discard(self, task: asyncio.Task) -> None:
        self._detached.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug("late LLM enhancement failed: %s", exc)
        else:
            logger.debug("late LLM enhancement discarded")


def build_enhancer() -> QueryEnhancer:
    return QueryEnhancer(
        cache=get_cache(),
        client=build_llm_client(),
        timeout_seconds=settings.llm_timeout_ms / 1000,
    )
