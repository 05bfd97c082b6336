"""Builders shared by the search pipeline tests."""
from __future__ import annotations

from typing import Any

from product_search.models import ProductCandidate


def make_candidate(**overrides: Any) -> ProductCandidate:
    fields: dict[str, Any] = {
        "id": "p1",
        "title": "Widget",
        "description": "A useful thing",
        "category": "accessories",
        "price": 1000,
        "mrp": 1000,
        "rating": 4.0,
        "stock": 10,
        "unitsSold": 50,
        "returnRate": 4,
        "complaints": 1,
        "metadata": {},
    }
    fields.update(overrides)
    return ProductCandidate.model_validate(fields)
