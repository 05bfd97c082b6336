"""Client for the external LLM query enhancer.

Talks to any OpenAI-compatible chat completion endpoint (Groq by default).
The reply must be a JSON document; anything else raises
:class:`EnhancementError` so the caller can fall back to the heuristics.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError, field_validator

from .config import settings
from .models import Category, Intent, PricePreference

logger = logging.getLogger(__name__)

ENHANCER_PROMPT = """You are an e-commerce search query enhancer for electronics products.
Your task:
1. Correct spelling mistakes (e.g., "ifone" -> "iphone", "eyarfone" -> "earphone")
2. Extract user intent:
   - Price preference: cheap/expensive/neutral (Hinglish: sasta, sastha, kam price = cheap)
   - Latest preference: true if user wants newest models
   - Color: if mentioned
   - Storage: if mentioned (e.g., 128GB)
   - Category: phones/laptops/tablets/accessories if obvious, else null

Return ONLY valid JSON, no extra text:
{
  "corrected": "corrected query string",
  "intent": {
    "pricePreference": "cheap|expensive|neutral",
    "latestPreferred": true|false,
    "color": "colorname or null",
    "storage": "128GB or null",
    "category": "phones|laptops|tablets|accessories or null"
  }
}"""

_STORAGE_TOKEN = re.compile(r"^\d+(GB|TB)$")
_NULL_WORDS = {"", "null", "none", "n/a"}


class EnhancementError(Exception):
    """The enhancer answered, but not with a usable payload."""


class _IntentPayload(BaseModel):
    pricePreference: PricePreference = PricePreference.NEUTRAL
    latestPreferred: bool = False
    color: Optional[str] = None
    storage: Optional[str] = None
    category: Optional[Category] = None

    @field_validator("pricePreference", mode="before")
    @classmethod
    def _price(cls, value: Any) -> Any:
        return PricePreference.NEUTRAL if value is None else str(value).strip().lower()

    @field_validator("latestPreferred", mode="before")
    @classmethod
    def _latest(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("color", mode="before")
    @classmethod
    def _color(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        color = str(value).strip().lower()
        return None if color in _NULL_WORDS else color

    @field_validator("storage", mode="before")
    @classmethod
    def _storage(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        storage = "".join(str(value).split()).upper()
        return storage if _STORAGE_TOKEN.match(storage) else None

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value: Any) -> Optional[Category]:
        if value is None:
            return None
        try:
            category = Category(str(value).strip().lower())
        except ValueError:
            return None
        return None if category is Category.OTHER else category


class _EnhancementPayload(BaseModel):
    corrected: str
    intent: _IntentPayload = _IntentPayload()

    @field_validator("intent", mode="before")
    @classmethod
    def _intent(cls, value: Any) -> Any:
        return {} if value is None else value


def parse_enhancement(content: str, query: str) -> tuple[str, Intent]:
    """Validate a raw completion and return ``(corrected_query, intent)``.

    A blank ``corrected`` value means the model saw nothing to fix and the raw
    query is kept.
    """

    text = (content or "").strip()
    if not text:
        raise EnhancementError("empty completion")
    try:
        payload = _EnhancementPayload.model_validate(json.loads(text))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise EnhancementError(f"malformed completion: {exc}") from exc
    corrected = payload.corrected.strip() or query
    intent = Intent(**payload.intent.model_dump())
    return corrected, intent


class LLMEnhancerClient:
    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        model: str | None = None,
        timeout_seconds: float = 5.0,
    ) -> None:
        self.model = model or settings.llm_model
        # One attempt only; the caller enforces its own deadline.
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url or None,
            timeout=timeout_seconds,
            max_retries=0,
        )

    async def enhance(self, query: str) -> tuple[str, Intent]:
        completion = await self.client.chat.completions.create(
            model=self.model,
            temperature=0.3,
            max_tokens=150,
            top_p=0.9,
            messages=[
                {"role": "system", "content": ENHANCER_PROMPT},
                {"role": "user", "content": f'Query: "{query}"'},
            ],
        )
        content = completion.choices[0].message.content if completion.choices else ""
        return parse_enhancement(content or "", query)


def build_llm_client() -> LLMEnhancerClient | None:
    """Return a configured client, or ``None`` when no API key is set."""
    if not settings.llm_api_key:
        logger.warning("No LLM API key configured, query enhancement uses the manual fallback")
        return None
    logger.info("LLM enhancer configured model=%s base_url=%s", settings.llm_model, settings.llm_base_url)
    return LLMEnhancerClient(
        api_key=settings.llm_api_key,
        base_url=settings.llm_base_url,
        model=settings.llm_model,
    )
