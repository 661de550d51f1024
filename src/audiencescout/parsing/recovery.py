"""Tolerant extraction of structured JSON from generator output.

Generators wrap JSON in markdown fences, prepend prose, leave trailing
commas, embed control characters or get cut off mid-array. ``RecoveryParser``
tries progressively looser strategies and never raises: the caller always
gets one of ``Structured``, ``Unstructured`` or ``Empty``.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterator, Union

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*([\s\S]*?)```")
_FENCE_MARK_RE = re.compile(r"```(?:[A-Za-z]+)?")
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_NON_PRINTABLE_RE = re.compile(r"[^\x20-\x7E]")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class Structured:
    """A JSON value was recovered."""

    value: Any
    strategy: str = "direct"
    kind: str = field(default="structured", init=False)

    def value_or(self, default: Any) -> Any:
        return self.value


@dataclass(frozen=True)
class Unstructured:
    """No JSON could be recovered; the cleaned narrative text is kept."""

    text: str
    kind: str = field(default="unstructured", init=False)

    def value_or(self, default: Any) -> Any:
        return default


@dataclass(frozen=True)
class Empty:
    """The generator produced nothing usable."""

    kind: str = field(default="empty", init=False)

    def value_or(self, default: Any) -> Any:
        return default


ParseResult = Union[Structured, Unstructured, Empty]


def _loads(text: str) -> Any:
    return json.loads(text, strict=False)


def strip_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def iter_json_spans(text: str, openers: str = "{[", nested: bool = False) -> Iterator[str]:
    """Yield top-level ``{...}`` / ``[...]`` spans, string-aware.

    An unbalanced span is yielded as-is so later stages can try to salvage
    it. With ``nested`` only balanced spans are yielded, outermost first,
    including complete inner spans of a broken outer one.
    """
    if nested:
        yield from _balanced_spans(text, openers)
        return
    closers = {"{": "}", "[": "]"}
    i = 0
    n = len(text)
    while i < n:
        if text[i] not in openers:
            i += 1
            continue
        start = i
        stack = [closers[text[i]]]
        in_string = False
        escaped = False
        i += 1
        while i < n and stack:
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
            elif ch == '"':
                in_string = True
            elif ch in closers:
                stack.append(closers[ch])
            elif ch in "}]":
                if ch != stack[-1]:
                    break
                stack.pop()
            i += 1
        yield text[start:i]
        if stack:
            if i >= n:
                return
            i += 1


def _balanced_spans(text: str, openers: str) -> list[str]:
    """Outermost balanced spans found in a single pass.

    Openers that never close are dropped; a mismatched closer abandons every
    span still open.
    """
    closers = {"{": "}", "[": "]"}
    stack: list[tuple[int, str]] = []
    found: list[tuple[int, int]] = []
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = bool(stack)
        elif ch in closers:
            stack.append((i, closers[ch]))
        elif ch in "}]":
            if not stack or stack[-1][1] != ch:
                stack.clear()
                continue
            start, _ = stack.pop()
            if text[start] in openers:
                # Spans closed since ``start`` sit inside this one.
                while found and found[-1][0] > start:
                    found.pop()
                found.append((start, i + 1))
    return [text[s:e] for s, e in found]


class RecoveryParser:
    """Multi-stage JSON recovery.

    ``array_fields`` name arrays worth salvaging by bracket matching when the
    full document is broken; ``string_fields`` name scalar strings worth
    salvaging by pattern. With ``salvage_items`` a truncated top-level array
    yields whichever of its objects parse on their own.
    """

    def __init__(
        self,
        array_fields: tuple[str, ...] = (),
        string_fields: tuple[str, ...] = (),
        salvage_items: bool = False,
    ) -> None:
        self._array_fields = array_fields
        self._string_fields = string_fields
        self._salvage_items = salvage_items

    def parse(self, raw: str | None) -> ParseResult:
        if raw is None or not raw.strip():
            return Empty()
        text = raw.strip()

        for strategy, attempt in (
            ("direct", self._direct),
            ("fenced", self._fenced),
            ("span", self._spans),
            ("cleaned", self._cleaned),
            ("aggressive", self._aggressive),
            ("salvaged", self._salvage),
        ):
            try:
                value = attempt(text)
            except (ValueError, RecursionError) as exc:
                logger.debug("recovery stage failed", extra={"stage": strategy, "error": str(exc)})
                continue
            if value is not None:
                return Structured(value=value, strategy=strategy)

        narrative = _FENCE_MARK_RE.sub("", text).strip()
        if not narrative:
            return Empty()
        return Unstructured(text=narrative)

    # --- stages (each returns None or raises ValueError on failure) ---

    def _direct(self, text: str) -> Any:
        return _loads(text)

    def _fenced(self, text: str) -> Any:
        for match in _FENCE_RE.finditer(text):
            body = match.group(1).strip()
            if not body:
                continue
            try:
                return _loads(body)
            except ValueError:
                value = self._first_span(body)
                if value is not None:
                    return value
        return None

    def _spans(self, text: str) -> Any:
        return self._first_span(text)

    def _first_span(self, text: str) -> Any:
        for span in iter_json_spans(text):
            try:
                return _loads(span)
            except ValueError:
                try:
                    return _loads(self._clean(span))
                except ValueError:
                    continue
        return None

    def _clean(self, text: str) -> str:
        return strip_trailing_commas(_CONTROL_RE.sub("", text))

    def _cleaned(self, text: str) -> Any:
        body = self._candidate_body(text)
        cleaned = self._clean(body)
        try:
            return _loads(cleaned)
        except ValueError:
            # Double-escaped payloads: \" and literal \n sequences.
            unescaped = cleaned.replace('\\"', '"').replace("\\n", "\n")
            return _loads(strip_trailing_commas(unescaped))

    def _aggressive(self, text: str) -> Any:
        body = self._candidate_body(text)
        flattened = _WHITESPACE_RE.sub(" ", _NON_PRINTABLE_RE.sub(" ", body))
        return _loads(strip_trailing_commas(flattened).strip())

    def _candidate_body(self, text: str) -> str:
        """Best guess at the JSON region: fenced body, else first opener to last closer."""
        fenced = _FENCE_RE.search(text)
        if fenced and fenced.group(1).strip():
            text = fenced.group(1)
        starts = [i for i in (text.find("{"), text.find("[")) if i >= 0]
        if not starts:
            raise ValueError("no JSON opener")
        start = min(starts)
        end = max(text.rfind("}"), text.rfind("]"))
        if end < start:
            raise ValueError("no JSON closer")
        return text[start : end + 1]

    def _salvage(self, text: str) -> Any:
        recovered: dict[str, Any] = {}
        for name in self._array_fields:
            items = self._salvage_named_array(text, name)
            if items is not None:
                recovered[name] = items
        for name in self._string_fields:
            value = self._salvage_named_string(text, name)
            if value is not None:
                recovered[name] = value
        if recovered:
            return recovered
        if self._salvage_items:
            items = self._salvage_objects(text)
            if items:
                return items
        return None

    def _salvage_named_array(self, text: str, name: str) -> list | None:
        match = re.search(r'"%s"\s*:\s*\[' % re.escape(name), text)
        if match is None:
            return None
        start = match.end() - 1
        span = next(iter_json_spans(text[start:], openers="["), None)
        if span is None:
            return None
        try:
            value = _loads(self._clean(span))
        except ValueError:
            if not self._salvage_items:
                return None
            value = self._salvage_objects(span[1:]) or None
        return value if isinstance(value, list) else None

    def _salvage_named_string(self, text: str, name: str) -> str | None:
        match = re.search(r'"%s"\s*:\s*"((?:[^"\\]|\\.)*)"' % re.escape(name), text)
        if match is None:
            return None
        try:
            return json.loads('"%s"' % match.group(1), strict=False)
        except ValueError:
            return match.group(1)

    def _salvage_objects(self, text: str) -> list[dict]:
        items: list[dict] = []
        for span in iter_json_spans(text, openers="{", nested=True):
            try:
                value = _loads(self._clean(span))
            except ValueError:
                continue
            if isinstance(value, dict):
                items.append(value)
        return items
