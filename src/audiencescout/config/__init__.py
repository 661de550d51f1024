"""Runtime configuration."""

from .runtime import (
    CacheBackend,
    CatalogBackend,
    FallbackWeights,
    PipelineConfig,
    RuntimeSettings,
    get_settings,
)

__all__ = [
    "CacheBackend",
    "CatalogBackend",
    "FallbackWeights",
    "PipelineConfig",
    "RuntimeSettings",
    "get_settings",
]
