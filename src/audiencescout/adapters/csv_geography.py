"""Adapter: ZIP to metro-area lookup loaded from CSV."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from ..ports.datasets import GeoArea

logger = logging.getLogger(__name__)


class CsvGeographyResolver:
    """GeographyResolver over a CSV with ``zip_code,metro_area,state,population`` columns.

    ``state`` and ``population`` may be blank.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._areas: dict[str, GeoArea] | None = None

    def _load(self) -> dict[str, GeoArea]:
        if self._areas is not None:
            return self._areas
        areas: dict[str, GeoArea] = {}
        with self._path.open(newline="", encoding="utf-8") as handle:
            for row in csv.DictReader(handle):
                key = (row.get("zip_code") or "").strip()
                metro = (row.get("metro_area") or "").strip()
                if not key or not metro:
                    continue
                population = (row.get("population") or "").strip()
                areas[key] = GeoArea(
                    location_key=key,
                    area_name=metro,
                    state=(row.get("state") or "").strip() or None,
                    population=int(float(population)) if population else None,
                )
        logger.info("geography_loaded", extra={"path": str(self._path), "locations": len(areas)})
        self._areas = areas
        return areas

    def resolve(self, keys: list[str]) -> dict[str, GeoArea]:
        areas = self._load()
        return {key: areas[key] for key in keys if key in areas}
