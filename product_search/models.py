"""Pydantic models for catalog records, query intent and API payloads."""
from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Category(str, Enum):
    PHONES = "phones"
    LAPTOPS = "laptops"
    TABLETS = "tablets"
    ACCESSORIES = "accessories"
    OTHER = "other"


class PricePreference(str, Enum):
    CHEAP = "cheap"
    EXPENSIVE = "expensive"
    NEUTRAL = "neutral"


class EnhancementMethod(str, Enum):
    LLM = "llm"
    LLM_CACHED = "llm-cached"
    MANUAL_FALLBACK = "manual-fallback"


def _as_float(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


class ProductCandidate(BaseModel):
    """Read-only projection of a catalog entry consumed by the scorer.

    Records come from an external store and may be incomplete, so every field
    has a default and malformed values degrade to zero/empty instead of
    failing validation.
    """

    model_config = ConfigDict(frozen=True)

    id: str = ""
    title: str = ""
    description: str = ""
    category: Category = Category.OTHER
    price: float = 0.0
    mrp: float = 0.0
    rating: float = 0.0
    stock: int = 0
    unitsSold: int = 0
    returnRate: float = 0.0
    complaints: int = 0
    metadata: dict[str, str] = Field(default_factory=dict)

    @field_validator("id", "title", "description", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value: Any) -> Category:
        try:
            return Category(str(value).strip().lower())
        except ValueError:
            return Category.OTHER

    @field_validator("price", "mrp", "rating", "returnRate", mode="before")
    @classmethod
    def _real(cls, value: Any) -> float:
        return _as_float(value)

    @field_validator("stock", "unitsSold", "complaints", mode="before")
    @classmethod
    def _count(cls, value: Any) -> int:
        return int(_as_float(value))

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata(cls, value: Any) -> dict[str, str]:
        if not isinstance(value, Mapping):
            return {}
        return {str(key): str(item) for key, item in value.items() if item is not None}


class Intent(BaseModel):
    """Purchase intent inferred from a single query."""

    pricePreference: PricePreference = PricePreference.NEUTRAL
    latestPreferred: bool = False
    color: str | None = None
    storage: str | None = None
    category: Category | None = None


@dataclass(frozen=True)
class EnhancementResult:
    corrected_query: str
    intent: Intent
    method: EnhancementMethod


class ProductResult(BaseModel):
    productId: str
    title: str
    description: str
    category: Category
    mrp: float
    sellingPrice: float
    rating: float
    metadata: dict[str, str]
    stock: int


class SearchMeta(BaseModel):
    totalResults: int
    query: str
    correctedQuery: str | None = None
    intent: Intent
    enhancementMethod: EnhancementMethod
    latencyMs: float


class SearchResponse(BaseModel):
    success: bool = True
    data: list[ProductResult]
    meta: SearchMeta
