"""Score candidates and assemble the ordered, score-free result list."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from .models import Intent, ProductCandidate, ProductResult
from .scoring import RankScorer


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: ProductCandidate
    score: float


def rank(
    candidates: Sequence[ProductCandidate],
    query: str,
    intent: Intent,
    scorer: RankScorer | None = None,
) -> List[ScoredCandidate]:
    """Pair every candidate with its score, keeping retrieval order."""
    scorer = scorer or RankScorer()
    return [ScoredCandidate(candidate, scorer.score(candidate, query, intent)) for candidate in candidates]


def order(scored: Iterable[ScoredCandidate]) -> List[ScoredCandidate]:
    # sorted() is stable: equal scores keep their retrieval order.
    return sorted(scored, key=lambda item: item.score, reverse=True)


def to_result(candidate: ProductCandidate) -> ProductResult:
    return ProductResult(
        productId=candidate.id,
        title=candidate.title,
        description=candidate.description,
        category=candidate.category,
        mrp=candidate.mrp,
        sellingPrice=candidate.price,
        rating=candidate.rating,
        metadata=dict(candidate.metadata),
        stock=candidate.stock,
    )


def assemble(scored: Iterable[ScoredCandidate]) -> List[ProductResult]:
    return [to_result(item.candidate) for item in order(scored)]
