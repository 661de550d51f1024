"""Deterministic keyword-overlap scoring used when the generator is unavailable."""

from __future__ import annotations

from typing import Iterable

from ..config.runtime import FallbackWeights
from .segment import Segment

FALLBACK_REASON = "Matched based on keyword relevance"


def normalize_keywords(keywords: Iterable[str]) -> list[str]:
    """Lower-case, strip and de-duplicate keywords, keeping first-seen order."""
    seen: set[str] = set()
    out: list[str] = []
    for kw in keywords:
        if not isinstance(kw, str):
            continue
        norm = kw.strip().lower()
        if norm and norm not in seen:
            seen.add(norm)
            out.append(norm)
    return out


def keyword_score(
    segment: Segment,
    keywords: Iterable[str],
    weights: FallbackWeights = FallbackWeights(),
) -> float:
    """Score a segment by keyword hits in its name, description and path.

    +keyword_hit per keyword found, +commerce_bonus for commerce audiences,
    +active_bonus for actively generated segments, capped at ``weights.cap``.
    """
    text = segment.search_text
    score = 0.0
    for kw in normalize_keywords(keywords):
        if kw in text:
            score += weights.keyword_hit
    if segment.is_commerce:
        score += weights.commerce_bonus
    if segment.actively_generated:
        score += weights.active_bonus
    return min(score, weights.cap)
