"""IntentExtractor: free-text campaign query -> IntentRecord."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from ..domain.intent import IntentRecord, tokenize_query
from ..models.search_requests import ConversationTurn
from ..parsing.recovery import RecoveryParser, Structured
from .generation import GuardedGenerator

logger = logging.getLogger(__name__)

_INTENT_PROMPT = """You are analyzing a marketing campaign query to identify target audiences.
{history}
Query: "{query}"

Extract the following information in JSON format:
{{
  "productCategory": "Main product or service category",
  "targetDemographic": "Target demographic characteristics (age, income, lifestyle)",
  "campaignGoal": "Primary campaign objective",
  "keywords": ["relevant", "keywords", "for", "matching"],
  "intendedAudiences": ["Specific audience types that would be relevant"]
}}

Be specific and actionable. Focus on characteristics that can match to audience segments.
Return ONLY the JSON object."""


def _clean_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _clean_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


class IntentExtractor:
    """Interpret a campaign query through the generator, with a token fallback."""

    def __init__(
        self,
        generator: GuardedGenerator,
        max_history_turns: int = 10,
        parser: RecoveryParser | None = None,
    ) -> None:
        self._generator = generator
        self._max_history = max_history_turns
        self._parser = parser or RecoveryParser(
            array_fields=("keywords", "intendedAudiences"),
            string_fields=("productCategory", "targetDemographic", "campaignGoal"),
        )

    def build_prompt(self, query: str, history: Sequence[ConversationTurn] = ()) -> str:
        turns = list(history)[-self._max_history :] if self._max_history else []
        if turns:
            lines = "\n".join(f"{turn.role}: {turn.content}" for turn in turns)
            history_block = f"\nConversation so far:\n{lines}\n"
        else:
            history_block = ""
        return _INTENT_PROMPT.format(query=query.replace('"', "'"), history=history_block)

    def extract(self, query: str, history: Sequence[ConversationTurn] = ()) -> IntentRecord:
        raw = self._generator.generate(self.build_prompt(query, history), purpose="intent")
        if raw is None:
            return IntentRecord.from_query(query)

        result = self._parser.parse(raw)
        if not isinstance(result, Structured) or not isinstance(result.value, dict):
            logger.info("intent_unparsed", extra={"result_kind": result.kind})
            return IntentRecord.from_query(query)

        data = result.value
        keywords = _clean_list(data.get("keywords")) or tokenize_query(query)
        return IntentRecord(
            category=_clean_str(data.get("productCategory")) or query.strip(),
            demographic=_clean_str(data.get("targetDemographic")),
            goal=_clean_str(data.get("campaignGoal")),
            keywords=keywords,
            audience_hints=_clean_list(data.get("intendedAudiences")),
            source="generator",
        )
