"""Port: read-only audience segment catalog."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..domain.segment import Segment


@runtime_checkable
class SegmentCatalog(Protocol):
    """Source of audience segments for a search."""

    def list_segments(self) -> list[Segment]: ...

    def get_segment_by_id(self, segment_id: str) -> Segment | None: ...

    def reload(self) -> int: ...
