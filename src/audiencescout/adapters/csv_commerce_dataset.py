"""Adapter: behavioral ZIP-weight dataset loaded from a CSV export."""

from __future__ import annotations

import csv
import logging
import re
import threading
from collections import defaultdict
from pathlib import Path

from ..ports.datasets import BehavioralRecord

logger = logging.getLogger(__name__)

US_PREFIX = "NA_US_"
_ZIP_RE = re.compile(r"^\d{5}$")


class CsvCommerceDataset:
    """AudienceDataset over rows of ``sanitized_value,seed,date,weight,label,audience_name``.

    Only US rows (``NA_US_<zip>``) with a five-digit ZIP are kept. The file
    is read lazily on first lookup.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._records: list[BehavioralRecord] | None = None
        self._by_location: dict[str, list[BehavioralRecord]] = {}

    def _load(self) -> list[BehavioralRecord]:
        with self._lock:
            if self._records is not None:
                return self._records
            records: list[BehavioralRecord] = []
            skipped = 0
            with self._path.open(newline="", encoding="utf-8") as handle:
                reader = csv.reader(handle)
                next(reader, None)
                for row in reader:
                    record = self._parse_row(row)
                    if record is None:
                        skipped += 1
                        continue
                    records.append(record)
            by_location: dict[str, list[BehavioralRecord]] = defaultdict(list)
            for record in records:
                by_location[record.location_key].append(record)
            self._by_location = dict(by_location)
            self._records = records
            logger.info(
                "commerce_dataset_loaded",
                extra={"path": str(self._path), "records": len(records), "skipped": skipped},
            )
            return records

    @staticmethod
    def _parse_row(row: list[str]) -> BehavioralRecord | None:
        if len(row) < 6:
            return None
        sanitized, _seed, _date, weight_str, _label, audience = (c.strip() for c in row[:6])
        if not sanitized.startswith(US_PREFIX) or not audience:
            return None
        zip_code = sanitized[len(US_PREFIX) :]
        if not _ZIP_RE.match(zip_code):
            return None
        try:
            weight = float(weight_str)
        except ValueError:
            weight = 0.0
        return BehavioralRecord(audience_name=audience, location_key=zip_code, weight=max(weight, 0.0))

    def lookup_by_audience_name(self, name: str, limit: int) -> list[BehavioralRecord]:
        """Locations for audiences whose name contains ``name``.

        One record per location (highest weight wins), heaviest first.
        """
        needle = name.strip().lower()
        if not needle or limit <= 0:
            return []
        best: dict[str, BehavioralRecord] = {}
        for record in self._load():
            if needle not in record.audience_name.lower():
                continue
            current = best.get(record.location_key)
            if current is None or record.weight > current.weight:
                best[record.location_key] = record
        ranked = sorted(best.values(), key=lambda r: (-r.weight, r.location_key))
        return ranked[:limit]

    def lookup_by_location_keys(self, keys: list[str]) -> list[BehavioralRecord]:
        self._load()
        out: list[BehavioralRecord] = []
        for key in dict.fromkeys(keys):
            out.extend(self._by_location.get(key, ()))
        return out
