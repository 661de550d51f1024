"""Ports: auxiliary behavioral and geographic datasets."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field


class BehavioralRecord(BaseModel):
    """One (audience, location) weight from the behavioral dataset."""

    model_config = {"frozen": True}

    audience_name: str = Field(..., description="Audience the record belongs to")
    location_key: str = Field(..., description="Postal or area key")
    weight: float = Field(..., ge=0.0, description="Relative concentration of the audience")


class GeoArea(BaseModel):
    """Resolved geographic grouping for a location key."""

    model_config = {"frozen": True}

    location_key: str
    area_name: str = Field(..., description="Metro area or other grouping name")
    state: str | None = Field(default=None, description="Two-letter state code when known")
    population: int | None = Field(default=None, ge=0)


@runtime_checkable
class AudienceDataset(Protocol):
    """Behavioral records keyed by audience name and location."""

    def lookup_by_audience_name(self, name: str, limit: int) -> list[BehavioralRecord]: ...

    def lookup_by_location_keys(self, keys: list[str]) -> list[BehavioralRecord]: ...


@runtime_checkable
class GeographyResolver(Protocol):
    """Maps location keys onto named areas."""

    def resolve(self, keys: list[str]) -> dict[str, GeoArea]: ...
