"""Dictionary-driven spelling correction for domain terms.

The corrector lowercases the query and rewrites known misspellings of catalog
vocabulary (``"ifone"`` -> ``"iphone"``, ``"leptop"`` -> ``"laptop"``) with a
plain substring replacement. It runs on the fallback path when the LLM
enhancer is unavailable, so it has to be cheap and never fail.

Ordering rules:

* canonical terms are applied in the insertion order of the mapping;
* within a term, alternatives are matched longest first and the canonical
  word itself is one of the alternatives. A correct word that happens to
  contain a misspelling (``"iphone"`` contains ``"iphon"``, ``"mobile"``
  contains ``"mobil"``) therefore matches as itself and is left alone.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from types import MappingProxyType

logger = logging.getLogger(__name__)

DEFAULT_CORRECTIONS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "iphone": ("ifone", "iphon", "aphone", "ifon"),
        "samsung": ("samsang", "samson", "samsun", "samsong"),
        "laptop": ("leptop", "labtop", "laptap", "lapto"),
        "mobile": ("mobail", "moble", "mobil", "mobiel"),
        "headphone": ("hedphone", "headfone", "headfon", "hedfone"),
        "earphone": ("eyarfone", "earfone", "earfon", "eirphone"),
        "charger": ("chargar", "charjer", "chager"),
        "keyboard": ("keybord", "kebord", "keyboad"),
    }
)


def _compile(canonical: str, misspellings: Sequence[str]) -> re.Pattern[str]:
    alternatives = {canonical.lower(), *(item.lower() for item in misspellings if item)}
    ordered = sorted(alternatives, key=lambda item: (-len(item), item))
    return re.compile("|".join(re.escape(item) for item in ordered), re.IGNORECASE)


class LexicalCorrector:
    """Rewrite known misspellings into their canonical terms."""

    def __init__(self, corrections: Mapping[str, Sequence[str]] = DEFAULT_CORRECTIONS) -> None:
        self._rules: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
            (canonical.lower(), _compile(canonical, misspellings))
            for canonical, misspellings in corrections.items()
        )

    def correct(self, query: str) -> str:
        corrected = (query or "").lower()
        for canonical, pattern in self._rules:
            corrected = pattern.sub(canonical, corrected)
        if corrected != (query or "").lower():
            logger.debug("correct raw=%r corrected=%r", query, corrected)
        return corrected


_default_corrector = LexicalCorrector()


def correct_spelling(query: str) -> str:
    """Correct ``query`` with the default dictionary."""
    return _default_corrector.correct(query)
