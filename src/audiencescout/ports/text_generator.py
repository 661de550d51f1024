"""Port: free-text generator (LLM)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class TextGenerator(Protocol):
    """Turn a prompt into free text.

    Implementations may raise on transport or quota errors; callers wrap
    them in a timeout and treat any failure as "no output".
    """

    def generate(self, prompt: str) -> str: ...
