"""Fakes for every port; no network, no model downloads."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

from audiencescout.domain.segment import Segment
from audiencescout.ports.datasets import BehavioralRecord, GeoArea


def make_segment(segment_id: str, name: str | None = None, **overrides) -> Segment:
    data = {
        "segment_id": segment_id,
        "name": name or f"Segment {segment_id}",
        "description": "",
        "segment_type": "interest",
        "cpm": 1.0,
        "actively_generated": False,
        "tier_number": 1,
        "tiers": (name or f"Segment {segment_id}",),
    }
    data.update(overrides)
    return Segment(**data)


class FakeCatalog:
    """In-memory SegmentCatalog; counts list calls."""

    def __init__(self, segments: list[Segment] | None = None, fail: bool = False):
        self.segments = list(segments or [])
        self.fail = fail
        self.list_calls = 0
        self.reloads = 0

    def list_segments(self) -> list[Segment]:
        self.list_calls += 1
        if self.fail:
            raise ConnectionError("catalog unreachable")
        return list(self.segments)

    def get_segment_by_id(self, segment_id: str) -> Segment | None:
        return next((s for s in self.segments if s.segment_id == segment_id), None)

    def reload(self) -> int:
        self.reloads += 1
        return len(self.segments)


class ScriptedGenerator:
    """TextGenerator that answers by prompt content.

    ``responder(prompt)`` returns the text or raises. Calls are recorded.
    """

    def __init__(self, responder):
        self._responder = responder
        self._lock = threading.Lock()
        self.prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    def generate(self, prompt: str) -> str:
        with self._lock:
            self.prompts.append(prompt)
        return self._responder(prompt)


class FailingGenerator:
    def __init__(self):
        self.calls = 0
        self._lock = threading.Lock()

    def generate(self, prompt: str) -> str:
        with self._lock:
            self.calls += 1
        raise RuntimeError("quota exceeded")


class FakeDataset:
    """AudienceDataset over a fixed record list."""

    def __init__(self, records: list[BehavioralRecord] | None = None, fail_for: set[str] | None = None):
        self.records = list(records or [])
        self.fail_for = fail_for or set()

    def lookup_by_audience_name(self, name: str, limit: int) -> list[BehavioralRecord]:
        if name in self.fail_for:
            raise TimeoutError(f"dataset timeout for {name}")
        matches = [r for r in self.records if name.lower() in r.audience_name.lower()]
        return sorted(matches, key=lambda r: -r.weight)[:limit]

    def lookup_by_location_keys(self, keys: list[str]) -> list[BehavioralRecord]:
        wanted = set(keys)
        return [r for r in self.records if r.location_key in wanted]


class FakeGeography:
    def __init__(self, areas: dict[str, GeoArea]):
        self.areas = areas

    def resolve(self, keys: list[str]) -> dict[str, GeoArea]:
        return {k: self.areas[k] for k in keys if k in self.areas}


class FakeClock:
    """Settable UTC clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


def record(audience: str, key: str, weight: float) -> BehavioralRecord:
    return BehavioralRecord(audience_name=audience, location_key=key, weight=weight)
