"""Adapter: Qdrant-backed segment catalog (read) and index (write)."""

from __future__ import annotations

import logging
import threading
import uuid

from pydantic import ValidationError
from qdrant_client import QdrantClient
from qdrant_client.models import Distance, PointStruct, VectorParams

from ..config.runtime import RuntimeSettings
from ..domain.segment import Segment

logger = logging.getLogger(__name__)

_SCROLL_PAGE = 256


class QdrantSegmentCatalog:
    """SegmentCatalog over a Qdrant collection of segment payloads.

    ``list_segments`` scrolls the whole collection once and keeps the
    snapshot until ``reload``. Point ids are uuid5(namespace, segment_id).
    """

    def __init__(self, settings: RuntimeSettings, client: QdrantClient | None = None) -> None:
        self._settings = settings
        self._client = client
        self._lock = threading.Lock()
        self._snapshot: list[Segment] | None = None

    @property
    def _collection(self) -> str:
        return self._settings.qdrant_collection_name

    def _get_client(self) -> QdrantClient:
        if self._client is None:
            self._client = QdrantClient(
                host=self._settings.qdrant_host,
                port=self._settings.qdrant_port,
                timeout=int(self._settings.qdrant_timeout_seconds),
            )
        return self._client

    def point_id(self, segment_id: str) -> str:
        return str(uuid.uuid5(self._settings.segment_id_namespace, segment_id))

    # ------------------------------------------------------------------
    # SegmentCatalog
    # ------------------------------------------------------------------

    def list_segments(self) -> list[Segment]:
        with self._lock:
            if self._snapshot is None:
                self._snapshot = self._scroll_all()
            return list(self._snapshot)

    def get_segment_by_id(self, segment_id: str) -> Segment | None:
        results = self._get_client().retrieve(
            collection_name=self._collection,
            ids=[self.point_id(segment_id)],
            with_payload=True,
        )
        if not results:
            return None
        return self._to_segment(results[0].payload or {})

    def reload(self) -> int:
        with self._lock:
            self._snapshot = self._scroll_all()
            return len(self._snapshot)

    def _scroll_all(self) -> list[Segment]:
        client = self._get_client()
        segments: list[Segment] = []
        offset = None
        while True:
            points, offset = client.scroll(
                collection_name=self._collection,
                limit=_SCROLL_PAGE,
                offset=offset,
                with_payload=True,
                with_vectors=False,
            )
            for point in points:
                segment = self._to_segment(point.payload or {})
                if segment is not None:
                    segments.append(segment)
            if offset is None or not points:
                break
        # Scroll order follows point ids; sort for a stable catalog order.
        segments.sort(key=lambda s: s.segment_id)
        logger.info("qdrant_catalog_loaded", extra={"segments": len(segments)})
        return segments

    @staticmethod
    def _to_segment(payload: dict) -> Segment | None:
        data = {k: v for k, v in payload.items() if k in Segment.model_fields}
        try:
            return Segment(**data)
        except ValidationError as exc:
            logger.debug("qdrant_payload_skipped", extra={"error": str(exc)})
            return None

    # ------------------------------------------------------------------
    # SegmentIndex
    # ------------------------------------------------------------------

    def ensure_collection(self, dimension: int) -> dict:
        client = self._get_client()
        collections = [c.name for c in client.get_collections().collections]
        created = False
        if self._collection not in collections:
            client.create_collection(
                collection_name=self._collection,
                vectors_config=VectorParams(size=dimension, distance=Distance.COSINE),
            )
            created = True
        return {"name": self._collection, "created": created, "dimension": dimension}

    def delete_collection(self) -> None:
        self._get_client().delete_collection(self._collection)
        with self._lock:
            self._snapshot = None

    def collection_info(self) -> dict:
        info = self._get_client().get_collection(self._collection)
        return {
            "name": self._collection,
            "points_count": info.points_count,
            "indexed_vectors_count": info.indexed_vectors_count,
            "status": str(info.status),
            "embedding_model_id": self._settings.embedding_model_id,
        }

    def query(self, vector: list[float], limit: int) -> list[tuple[Segment, float]]:
        """Nearest segments to ``vector`` by cosine similarity, best first."""
        response = self._get_client().query_points(
            collection_name=self._collection,
            query=vector,
            limit=limit,
            with_payload=True,
        )
        hits = []
        for point in response.points:
            segment = self._to_segment(point.payload or {})
            if segment is not None:
                hits.append((segment, point.score))
        return hits

    def upsert_batch(self, segments_with_embeddings: list[tuple[Segment, list[float]]]) -> int:
        points = []
        for segment, embedding in segments_with_embeddings:
            payload = segment.to_payload()
            payload["embedding_version"] = self._settings.embedding_model_id
            points.append(PointStruct(id=self.point_id(segment.segment_id), vector=embedding, payload=payload))
        if points:
            self._get_client().upsert(collection_name=self._collection, points=points)
        with self._lock:
            self._snapshot = None
        return len(points)
