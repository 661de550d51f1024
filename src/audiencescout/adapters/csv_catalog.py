"""Adapter: flat-file taxonomy catalog implementing SegmentCatalog."""

from __future__ import annotations

import csv
import logging
import threading
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..domain.segment import MAX_TIER_DEPTH, Segment

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"true", "1", "yes", "y", "t"}


def _opt_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    return float(value.replace(",", "").strip())


def row_to_segment(row: dict[str, str]) -> Segment:
    """Map one taxonomy export row onto a Segment. Raises ValueError on bad rows."""
    tiers = [row.get(f"tier_{n}") or "" for n in range(1, MAX_TIER_DEPTH + 1)]
    data: dict[str, Any] = {
        "segment_id": (row.get("segment_id") or "").strip(),
        "parent_segment_id": (row.get("parent_segment_id") or "").strip() or None,
        "name": (row.get("segment_name") or "").strip(),
        "description": (row.get("segment_description") or "").strip(),
        "segment_type": (row.get("segment_type") or "").strip(),
        "cpm": _opt_float(row.get("cpm")) or 0.0,
        "media_cost_percent": _opt_float(row.get("media_cost_percent")),
        "actively_generated": (row.get("actively_generated") or "").strip().lower() in _TRUE_VALUES,
        "scale_7day_global": _opt_float(row.get("scale_7day_global")),
        "scale_7day_us": _opt_float(row.get("scale_7day_us")),
        "scale_hem_us": _opt_float(row.get("scale_hem_us")),
        "scale_1day_ip": _opt_float(row.get("scale_1day_ip")),
        "tier_number": int(_opt_float(row.get("tier_number")) or 0),
        "tiers": tiers,
        "full_path": (row.get("full_path") or "").strip(),
    }
    return Segment(**data)


class CsvSegmentCatalog:
    """SegmentCatalog loaded from a CSV taxonomy export.

    Rows that fail validation are skipped and counted. Duplicate ids keep
    the first occurrence so ids stay unique within a snapshot.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._segments: list[Segment] | None = None
        self._by_id: dict[str, Segment] = {}

    def _load(self) -> list[Segment]:
        segments: list[Segment] = []
        by_id: dict[str, Segment] = {}
        skipped = 0
        with self._path.open(newline="", encoding="utf-8-sig") as handle:
            for line_no, row in enumerate(csv.DictReader(handle), start=2):
                try:
                    segment = row_to_segment(row)
                except (ValidationError, ValueError) as exc:
                    skipped += 1
                    logger.debug("taxonomy_row_skipped", extra={"line": line_no, "error": str(exc)})
                    continue
                if segment.segment_id in by_id:
                    skipped += 1
                    continue
                by_id[segment.segment_id] = segment
                segments.append(segment)
        logger.info(
            "taxonomy_loaded",
            extra={"path": str(self._path), "segments": len(segments), "skipped": skipped},
        )
        self._by_id = by_id
        return segments

    def _snapshot(self) -> list[Segment]:
        with self._lock:
            if self._segments is None:
                self._segments = self._load()
            return self._segments

    def list_segments(self) -> list[Segment]:
        return list(self._snapshot())

    def get_segment_by_id(self, segment_id: str) -> Segment | None:
        self._snapshot()
        return self._by_id.get(segment_id)

    def reload(self) -> int:
        with self._lock:
            self._segments = self._load()
            return len(self._segments)
