"""Pydantic-based runtime settings for the audience search pipeline.

Loads from environment variables (with optional .env file).
Invalid values fail fast when settings are first constructed.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class CatalogBackend(str, Enum):
    csv = "csv"
    qdrant = "qdrant"


class CacheBackend(str, Enum):
    memory = "memory"
    sqlite = "sqlite"


@dataclass(frozen=True)
class FallbackWeights:
    """Weights for the deterministic keyword-overlap scorer."""

    keyword_hit: float = 20.0
    commerce_bonus: float = 10.0
    active_bonus: float = 5.0
    cap: float = 100.0


@dataclass(frozen=True)
class PipelineConfig:
    """Tunables consumed by the pipeline services."""

    score_batch_size: int = 50
    score_max_workers: int = 4
    enrich_max_workers: int = 8
    best_fit_size: int = 8
    high_value_size: int = 5
    related_size: int = 5
    cache_ttl_seconds: float = 3600.0
    generator_timeout_seconds: float = 25.0
    max_query_length: int = 2_000
    max_history_turns: int = 10
    behavioral_lookup_limit: int = 50
    geographic_lookup_limit: int = 100
    cross_purchase_limit: int = 5
    catalog_label: str = "Audience Taxonomy"
    behavioral_label: str = "Commerce Signals"
    geographic_label: str = "Census Geography"
    fallback: FallbackWeights = FallbackWeights()

    @property
    def windows(self) -> tuple[int, int, int]:
        return (self.best_fit_size, self.high_value_size, self.related_size)


class RuntimeSettings(BaseSettings):
    """All configuration for the search runtime, validated at startup."""

    model_config = {"env_prefix": "", "env_file": ".env", "env_file_encoding": "utf-8"}

    # --- Text generator (Gemini) ---
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY"),
        description="API key for the Gemini text generator",
    )
    gemini_model: str = Field(default="gemini-2.0-flash", description="Gemini model identifier")
    generator_timeout_seconds: float = Field(
        default=25.0, gt=0, le=120, description="Wall-clock budget per generator call"
    )

    # --- Scoring / categorization ---
    score_batch_size: int = Field(default=50, ge=1, le=500, description="Segments per scoring prompt")
    score_max_workers: int = Field(default=4, ge=1, le=32, description="Concurrent scoring batches")
    enrich_max_workers: int = Field(default=8, ge=1, le=32, description="Concurrent enrichment lookups")
    best_fit_size: int = Field(default=8, ge=0, description="Best-fit window size")
    high_value_size: int = Field(default=5, ge=0, description="High-value window size")
    related_size: int = Field(default=5, ge=0, description="Related window size")

    # --- Fallback scorer weights ---
    fallback_keyword_weight: float = Field(default=20.0, ge=0, description="Points per keyword hit")
    fallback_commerce_bonus: float = Field(default=10.0, ge=0, description="Bonus for commerce audiences")
    fallback_active_bonus: float = Field(default=5.0, ge=0, description="Bonus for actively generated segments")
    fallback_score_cap: float = Field(default=100.0, gt=0, le=100, description="Upper bound for fallback scores")

    # --- Response cache ---
    cache_enabled: bool = Field(default=True, description="Disable to run every request cold")
    cache_backend: CacheBackend = Field(default=CacheBackend.sqlite, description="'memory' or 'sqlite'")
    cache_db_path: str = Field(default="data/search_cache.db", description="SQLite path for the response cache")
    cache_ttl_seconds: float = Field(default=3600.0, gt=0, description="Response cache time-to-live")

    # --- Catalog ---
    catalog_backend: CatalogBackend = Field(default=CatalogBackend.csv, description="'csv' or 'qdrant'")
    catalog_csv_path: str = Field(default="data/audience_taxonomy.csv", description="Flat-file taxonomy")
    qdrant_host: str = Field(default="localhost", description="Qdrant server host")
    qdrant_port: int = Field(default=6333, description="Qdrant server port")
    qdrant_collection_name: str = Field(default="audience_segments", description="Qdrant collection name")
    qdrant_timeout_seconds: float = Field(default=30.0, gt=0, description="Qdrant request timeout")
    embedding_model_id: str = Field(default="BAAI/bge-small-en-v1.5", description="Embedding model identifier")
    embedding_dimension: int = Field(default=384, description="Embedding vector dimension")
    segment_id_namespace: uuid.UUID = Field(
        default=uuid.UUID("6f1c2d3e-4b5a-4978-8c6d-5e4f3a2b1c0d"),
        description="UUID namespace for deterministic Qdrant point ids",
    )
    index_batch_size: int = Field(default=256, ge=1, le=10_000, description="Segments per upsert batch")

    # --- Auxiliary datasets ---
    commerce_csv_path: str | None = Field(
        default="data/commerce_audience_segments.csv",
        description="Behavioral ZIP-weight dataset (optional)",
    )
    geography_csv_path: str | None = Field(
        default="data/zip_metro_areas.csv", description="ZIP to metro-area lookup (optional)"
    )
    behavioral_lookup_limit: int = Field(default=50, ge=1, le=1000)
    geographic_lookup_limit: int = Field(default=100, ge=1, le=5000)
    cross_purchase_limit: int = Field(default=5, ge=0, le=50)

    # --- Data-source labels ---
    catalog_label: str = Field(default="Audience Taxonomy")
    behavioral_label: str = Field(default="Commerce Signals")
    geographic_label: str = Field(default="Census Geography")

    # --- Limits ---
    max_query_length: int = Field(default=2_000, ge=1, le=100_000, description="Maximum query length")
    max_history_turns: int = Field(default=10, ge=0, le=100, description="Conversation turns sent to the generator")

    @field_validator("qdrant_port")
    @classmethod
    def _port_range(cls, v: int) -> int:
        if not (1 <= v <= 65535):
            raise ValueError(f"qdrant_port must be 1-65535, got {v}")
        return v

    @model_validator(mode="after")
    def _windows_not_empty(self) -> "RuntimeSettings":
        if self.best_fit_size + self.high_value_size + self.related_size == 0:
            raise ValueError("at least one result window must be non-empty")
        return self

    def pipeline_config(self) -> PipelineConfig:
        """Project the settings onto the immutable config used by services."""
        return PipelineConfig(
            score_batch_size=self.score_batch_size,
            score_max_workers=self.score_max_workers,
            enrich_max_workers=self.enrich_max_workers,
            best_fit_size=self.best_fit_size,
            high_value_size=self.high_value_size,
            related_size=self.related_size,
            cache_ttl_seconds=self.cache_ttl_seconds,
            generator_timeout_seconds=self.generator_timeout_seconds,
            max_query_length=self.max_query_length,
            max_history_turns=self.max_history_turns,
            behavioral_lookup_limit=self.behavioral_lookup_limit,
            geographic_lookup_limit=self.geographic_lookup_limit,
            cross_purchase_limit=self.cross_purchase_limit,
            catalog_label=self.catalog_label,
            behavioral_label=self.behavioral_label,
            geographic_label=self.geographic_label,
            fallback=FallbackWeights(
                keyword_hit=self.fallback_keyword_weight,
                commerce_bonus=self.fallback_commerce_bonus,
                active_bonus=self.fallback_active_bonus,
                cap=self.fallback_score_cap,
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> RuntimeSettings:
    """Return the singleton RuntimeSettings (cached after first call)."""
    return RuntimeSettings()
