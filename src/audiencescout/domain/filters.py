"""Typed segment filter for candidate selection."""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel, Field

from .segment import Segment


class FilterOp(str, Enum):
    """Supported filter operators."""

    equals = "equals"   # field == value
    lte = "lte"         # field is set and field <= value
    gte = "gte"         # field is set and field >= value


class FieldFilter(BaseModel):
    """A single typed condition; holds when ANY of ``fields`` satisfies it."""

    model_config = {"frozen": True}

    fields: tuple[str, ...] = Field(..., min_length=1, description="Segment attribute name(s)")
    op: FilterOp = Field(..., description="Filter operator")
    value: Any = Field(..., description="Comparison value")

    def matches(self, segment: Segment) -> bool:
        return any(self._check(getattr(segment, name, None)) for name in self.fields)

    def _check(self, actual: Any) -> bool:
        if self.op == FilterOp.equals:
            return actual == self.value
        if actual is None:
            return False
        if self.op == FilterOp.lte:
            return actual <= self.value
        if self.op == FilterOp.gte:
            return actual >= self.value
        raise ValueError(f"Unsupported filter op: {self.op}")


class SegmentFilter(BaseModel):
    """Conjunction of field conditions over catalog segments."""

    model_config = {"frozen": True}

    must: tuple[FieldFilter, ...] = Field(default=())

    @property
    def is_empty(self) -> bool:
        return not self.must

    def matches(self, segment: Segment) -> bool:
        return all(condition.matches(segment) for condition in self.must)

    def apply(self, segments: Iterable[Segment]) -> list[Segment]:
        """Return matching segments, preserving input order."""
        if self.is_empty:
            return list(segments)
        return [s for s in segments if self.matches(s)]

    def combine(self, other: SegmentFilter) -> SegmentFilter:
        """Logical AND of two filters."""
        return SegmentFilter(must=self.must + other.must)
