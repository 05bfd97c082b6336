"""Multi-factor rank scoring for product candidates.

:func:`score` fuses three groups of signals into a single ordering key:

* text relevance of the title/description against the (corrected) query, with
  a normalized Levenshtein rescue used only when no query term matches
  literally anywhere;
* business signals: rating, stock, sales, return rate, complaints, discount;
* intent boosts: price preference, recency, colour, storage and category.

Sub-scores may be negative (out of stock, complaints, a price above MRP) and
offset the positive ones; the total is clamped at zero once, at the end.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from .models import Intent, PricePreference, ProductCandidate


@dataclass(frozen=True)
class ScoringWeights:
    exact_title: float = 50.0
    title_contains: float = 40.0
    description_contains: float = 20.0
    title_terms: float = 30.0
    description_terms: float = 10.0
    fuzzy: float = 30.0
    fuzzy_threshold: float = 0.7

    rating: float = 20.0
    in_stock: float = 15.0
    high_stock: float = 5.0
    high_stock_threshold: int = 50
    out_of_stock: float = -20.0
    sales_cap: float = 15.0
    sales_reference_units: float = 100.0
    return_rate_base: float = 10.0
    complaints_base: float = 5.0
    complaint_penalty: float = 2.0
    complaints_floor: float = -15.0
    discount_cap: float = 15.0

    cheap_reference_price: float = 50000.0
    cheap_price_step: float = 5000.0
    expensive_price_step: float = 10000.0
    expensive_cap: float = 10.0
    recency: float = 20.0
    color: float = 25.0
    storage: float = 25.0
    category: float = 30.0

    # Model numbers and superlatives that mark a recent product line.
    recency_markers: tuple[str, ...] = ("16", "17", "18", "pro", "max", "ultra", "latest")


def levenshtein(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(current[j - 1] + 1, previous[j] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def fuzzy_similarity(a: str, b: str) -> float:
    """Normalized edit-distance similarity in ``[0, 1]``.

    Containment of either string in the other counts as a perfect match.
    """

    s1, s2 = a.lower(), b.lower()
    if s1 in s2 or s2 in s1:
        return 1.0
    longer = max(len(s1), len(s2))
    return (longer - levenshtein(s1, s2)) / longer


class RankScorer:
    def __init__(self, weights: ScoringWeights | None = None) -> None:
        self.weights = weights or ScoringWeights()
        self._recency = re.compile(
            "|".join(re.escape(marker) for marker in self.weights.recency_markers) or r"(?!)"
        )

    def score(self, candidate: ProductCandidate, query: str, intent: Intent) -> float:
        total = (
            self.text_relevance(candidate, query)
            + self.business_signals(candidate)
            + self.intent_boost(candidate, intent)
        )
        return max(0.0, total)

    def text_relevance(self, candidate: ProductCandidate, query: str) -> float:
        w = self.weights
        query_lower = (query or "").lower().strip()
        title = candidate.title.lower()
        description = candidate.description.lower()

        if title == query_lower:
            return w.exact_title
        if query_lower in title:
            return w.title_contains
        if query_lower in description:
            return w.description_contains

        terms = list(dict.fromkeys(query_lower.split()))
        if terms:
            in_title = sum(1 for term in terms if term in title) / len(terms)
            in_description = sum(1 for term in terms if term in description) / len(terms)
            if in_title or in_description:
                relevance = in_title * w.title_terms
                if in_title < 1:
                    relevance += in_description * w.description_terms
                return relevance

        similarity = fuzzy_similarity(title, query_lower)
        if similarity > w.fuzzy_threshold:
            return similarity * w.fuzzy
        return 0.0

    def business_signals(self, candidate: ProductCandidate) -> float:
        w = self.weights
        total = (candidate.rating / 5) * w.rating

        if candidate.stock > 0:
            total += w.in_stock
            if candidate.stock > w.high_stock_threshold:
                total += w.high_stock
        else:
            total += w.out_of_stock

        total += min(candidate.unitsSold / w.sales_reference_units * w.sales_cap, w.sales_cap)
        total += max(0.0, w.return_rate_base - candidate.returnRate / 2)
        total += max(w.complaints_floor, w.complaints_base - candidate.complaints * w.complaint_penalty)

        if candidate.mrp > 0:
            discount = (candidate.mrp - candidate.price) / candidate.mrp * 100
            total += min(discount / 2, w.discount_cap)
        return total

    def intent_boost(self, candidate: ProductCandidate, intent: Intent) -> float:
        w = self.weights
        title = candidate.title.lower()
        total = 0.0

        if intent.pricePreference == PricePreference.CHEAP:
            total += max(0.0, (w.cheap_reference_price - candidate.price) / w.cheap_price_step)
        elif intent.pricePreference == PricePreference.EXPENSIVE:
            total += min(candidate.price / w.expensive_price_step, w.expensive_cap)

        if intent.latestPreferred and self._recency.search(title):
            total += w.recency

        metadata_values = [value.lower() for value in candidate.metadata.values()]
        if intent.color:
            color = intent.color.lower()
            haystacks = [title, candidate.description.lower(), *metadata_values]
            if any(color in text for text in haystacks):
                total += w.color

        if intent.storage:
            storage = intent.storage.lower()
            if storage in title or any(storage in value for value in metadata_values):
                total += w.storage

        if intent.category is not None and candidate.category == intent.category:
            total += w.category
        return total


_default_scorer = RankScorer()


def score(candidate: ProductCandidate, query: str, intent: Intent) -> float:
    return _default_scorer.score(candidate, query, intent)
