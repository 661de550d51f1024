"""RelevanceScorer: batched generator scoring with a keyword fallback."""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Sequence

from ..config.runtime import FallbackWeights
from ..domain.intent import IntentRecord
from ..domain.keyword_scoring import FALLBACK_REASON, keyword_score
from ..domain.segment import Segment
from ..models.search_responses import ScoredCandidate
from ..parsing.recovery import RecoveryParser, Structured
from .generation import GuardedGenerator

logger = logging.getLogger(__name__)

_SCORE_PROMPT = """You are a marketing strategist matching audience segments to campaign goals.

Campaign Query: "{category}"
Target Demographic: {demographic}
Campaign Goal: {goal}
Keywords: {keywords}

Available Audience Segments ({count}):
{listing}

Task: Score each segment from 0-100 based on relevance to the campaign. Use the exact
segment id shown in brackets. Return ONLY a JSON array:
[
  {{"id": "segment_id", "score": 95, "reason": "Why this segment is highly relevant"}},
  {{"id": "segment_id", "score": 70, "reason": "Why this is moderately relevant"}}
]

Focus on: audience behavior, purchase intent, demographic fit, and campaign objectives."""


def rank_candidates(scored: Sequence[ScoredCandidate]) -> list[ScoredCandidate]:
    """Stable sort: score descending, then catalog position ascending."""
    return sorted(scored, key=lambda c: (-c.score, c.position))


def _coerce_score(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return max(0.0, min(100.0, number))


class RelevanceScorer:
    """Score candidates against an intent in independent, concurrent batches.

    A batch whose generator call fails, times out, or yields no usable
    triple is scored entirely by the keyword fallback. Within a batch that
    did yield triples, candidates the generator skipped also get the
    fallback score so nothing drops out of the ranking.
    """

    def __init__(
        self,
        generator: GuardedGenerator,
        batch_size: int = 50,
        max_workers: int = 4,
        weights: FallbackWeights = FallbackWeights(),
        parser: RecoveryParser | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._generator = generator
        self._batch_size = batch_size
        self._max_workers = max_workers
        self._weights = weights
        self._parser = parser or RecoveryParser(array_fields=("scores",), salvage_items=True)

    def score(self, candidates: Sequence[Segment], intent: IntentRecord) -> list[ScoredCandidate]:
        if not candidates:
            return []
        indexed = list(enumerate(candidates))
        batches = [
            indexed[i : i + self._batch_size] for i in range(0, len(indexed), self._batch_size)
        ]
        if len(batches) == 1 or self._max_workers <= 1:
            results = [self._score_batch(batch, intent) for batch in batches]
        else:
            workers = min(self._max_workers, len(batches))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="scorer") as pool:
                results = list(pool.map(lambda b: self._score_batch(b, intent), batches))

        merged = [candidate for batch_result in results for candidate in batch_result]
        return rank_candidates(merged)

    def fallback(self, batch: Sequence[tuple[int, Segment]], intent: IntentRecord) -> list[ScoredCandidate]:
        return [self._fallback_one(position, segment, intent) for position, segment in batch]

    def build_prompt(self, batch: Sequence[tuple[int, Segment]], intent: IntentRecord) -> str:
        listing = "\n".join(
            f"{n}. [{segment.segment_id}] {segment.name} - {segment.description} (Path: {segment.full_path})"
            for n, (_, segment) in enumerate(batch, start=1)
        )
        return _SCORE_PROMPT.format(
            category=intent.category.replace('"', "'"),
            demographic=intent.demographic or "Not specified",
            goal=intent.goal or "Not specified",
            keywords=", ".join(intent.keywords) or "Not specified",
            count=len(batch),
            listing=listing,
        )

    def _score_batch(self, batch: list[tuple[int, Segment]], intent: IntentRecord) -> list[ScoredCandidate]:
        raw = self._generator.generate(self.build_prompt(batch, intent), purpose="score")
        if raw is None:
            return self.fallback(batch, intent)

        accepted = self._accept_triples(self._parser.parse(raw), batch)
        if not accepted:
            logger.info("score_batch_fallback", extra={"batch_size": len(batch)})
            return self.fallback(batch, intent)

        out: list[ScoredCandidate] = []
        for position, segment in batch:
            triple = accepted.get(segment.segment_id)
            if triple is None:
                out.append(self._fallback_one(position, segment, intent))
                continue
            score, reason = triple
            out.append(
                ScoredCandidate(
                    segment=segment,
                    score=score,
                    reason=reason,
                    method="generator",
                    position=position,
                )
            )
        return out

    def _accept_triples(self, result: Any, batch: list[tuple[int, Segment]]) -> dict[str, tuple[float, str]]:
        """Keep only well-formed triples whose id belongs to this batch."""
        if not isinstance(result, Structured):
            return {}
        items = result.value
        if isinstance(items, dict):
            items = items.get("scores")
        if not isinstance(items, list):
            return {}

        batch_ids = {segment.segment_id for _, segment in batch}
        accepted: dict[str, tuple[float, str]] = {}
        discarded = 0
        for item in items:
            if not isinstance(item, dict):
                continue
            segment_id = item.get("id")
            if segment_id is not None and not isinstance(segment_id, str):
                segment_id = str(segment_id)
            score = _coerce_score(item.get("score"))
            if segment_id not in batch_ids or score is None:
                discarded += 1
                continue
            if segment_id in accepted:
                continue
            reason = item.get("reason")
            accepted[segment_id] = (score, reason.strip() if isinstance(reason, str) else "")
        if discarded:
            logger.debug("score_triples_discarded", extra={"discarded": discarded})
        return accepted

    def _fallback_one(self, position: int, segment: Segment, intent: IntentRecord) -> ScoredCandidate:
        return ScoredCandidate(
            segment=segment,
            score=keyword_score(segment, intent.keywords, self._weights),
            reason=FALLBACK_REASON,
            method="fallback",
            position=position,
        )
