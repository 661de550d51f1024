"""Position-based slicing of a ranked list into result tiers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_WINDOWS = (8, 5, 5)


@dataclass(frozen=True)
class Tiers(Generic[T]):
    """Three disjoint, contiguous windows over a ranking."""

    best_fit: list[T]
    high_value: list[T]
    related: list[T]

    def flatten(self) -> list[T]:
        return [*self.best_fit, *self.high_value, *self.related]


def categorize(ranked: Sequence[T], windows: tuple[int, int, int] = DEFAULT_WINDOWS) -> Tiers[T]:
    """Slice ``ranked`` into best-fit / high-value / related by rank position.

    No re-ranking happens here; a window is shorter than its size when the
    ranking runs out.
    """
    if len(windows) != 3 or any(w < 0 for w in windows):
        raise ValueError(f"windows must be three non-negative sizes, got {windows!r}")
    first, second, third = windows
    a = first
    b = a + second
    c = b + third
    return Tiers(
        best_fit=list(ranked[:a]),
        high_value=list(ranked[a:b]),
        related=list(ranked[b:c]),
    )
