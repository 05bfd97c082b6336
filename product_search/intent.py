"""Keyword and regex based intent extraction.

Used on the manual fallback path: each check runs independently against the
lowercased query and the result is always a fully populated :class:`Intent`.
Category is left unset here; only the LLM enhancer infers it.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from .models import Intent, PricePreference

logger = logging.getLogger(__name__)

STORAGE_PATTERN = re.compile(r"(\d+)\s*(gb|tb|storage)", re.IGNORECASE)


@dataclass(frozen=True)
class IntentVocabulary:
    """Fixed word lists the extractor matches against."""

    cheap_terms: tuple[str, ...] = (
        "sasta",
        "sastha",
        "cheap",
        "budget",
        "affordable",
        "low price",
        "kam price",
    )
    premium_terms: tuple[str, ...] = ("expensive", "premium", "high end", "luxury")
    recency_terms: tuple[str, ...] = ("latest", "new", "newest", "recent")
    colors: tuple[str, ...] = (
        "red",
        "blue",
        "black",
        "white",
        "green",
        "gold",
        "silver",
        "pink",
        "purple",
    )


def _any_of(terms: tuple[str, ...]) -> re.Pattern[str]:
    if not terms:
        return re.compile(r"(?!)")
    return re.compile("|".join(re.escape(term) for term in terms))


def normalize_storage(digits: str, unit: str) -> str:
    """``("128", "storage")`` -> ``"128GB"``; a bare "storage" unit means GB."""
    unit = unit.upper()
    return f"{digits}{'GB' if unit == 'STORAGE' else unit}"


class IntentExtractor:
    def __init__(self, vocabulary: IntentVocabulary | None = None) -> None:
        self.vocabulary = vocabulary or IntentVocabulary()
        self._cheap = _any_of(self.vocabulary.cheap_terms)
        self._premium = _any_of(self.vocabulary.premium_terms)
        self._recent = _any_of(self.vocabulary.recency_terms)

    def extract(self, query: str) -> Intent:
        lowered = (query or "").lower()

        if self._cheap.search(lowered):
            price = PricePreference.CHEAP
        elif self._premium.search(lowered):
            price = PricePreference.EXPENSIVE
        else:
            price = PricePreference.NEUTRAL

        color = next((c for c in self.vocabulary.colors if c in lowered), None)

        storage = None
        match = STORAGE_PATTERN.search(lowered)
        if match:
            storage = normalize_storage(match.group(1), match.group(2))

        intent = Intent(
            pricePreference=price,
            latestPreferred=bool(self._recent.search(lowered)),
            color=color,
            storage=storage,
        )
        logger.debug("extract q=%r intent=%s", query, intent.model_dump(mode="json"))
        return intent


_default_extractor = IntentExtractor()


def detect_intent(query: str) -> Intent:
    return _default_extractor.extract(query)
