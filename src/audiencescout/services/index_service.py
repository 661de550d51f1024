"""IndexService for loading taxonomy segments into the vector catalog."""

from __future__ import annotations

import logging
from typing import Iterable, Protocol

from ..config.runtime import RuntimeSettings
from ..domain.segment import Segment
from ..ports.embedding import EmbeddingProvider

logger = logging.getLogger(__name__)


class SegmentIndex(Protocol):
    """Write side of a vector-backed catalog, plus nearest-neighbour reads."""

    def ensure_collection(self, dimension: int) -> dict: ...

    def delete_collection(self) -> None: ...

    def collection_info(self) -> dict: ...

    def upsert_batch(self, segments_with_embeddings: list[tuple[Segment, list[float]]]) -> int: ...

    def query(self, vector: list[float], limit: int) -> list[tuple[Segment, float]]: ...


class IndexService:
    """Manage the segments collection, bulk ingestion and similarity lookups."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        index: SegmentIndex,
        settings: RuntimeSettings,
    ) -> None:
        self._embed = embedding_provider
        self._index = index
        self._settings = settings

    def ensure_collection(self, dimension: int | None = None) -> dict:
        if dimension is None:
            dimension = self._settings.embedding_dimension
        return self._index.ensure_collection(dimension)

    def delete_collection(self) -> None:
        self._index.delete_collection()

    def collection_info(self) -> dict:
        return self._index.collection_info()

    def upsert_segments(self, segments: Iterable[Segment]) -> int:
        items = list(segments)
        batch_size = self._settings.index_batch_size
        total = 0
        for i in range(0, len(items), batch_size):
            batch = items[i : i + batch_size]
            vectors = self._embed.embed_batch([s.embedding_text for s in batch])
            total += self._index.upsert_batch(list(zip(batch, vectors)))
            logger.info("segments_indexed", extra={"batch_start": i, "upserted": total})
        return total

    def similar_segments(self, text: str, limit: int = 10) -> list[tuple[Segment, float]]:
        """Segments whose indexed embedding is closest to ``text``."""
        if not text.strip() or limit <= 0:
            return []
        hits = self._index.query(self._embed.embed(text), limit)
        logger.info("similar_segments", extra={"limit": limit, "hits": len(hits)})
        return hits
