"""Composition root: the single place where adapters are chosen and wired.

Call ``build_search_service()``, ``build_catalog_service()`` or
``build_index_service()`` to get a fully-constructed service with real
adapters. Services share one catalog and one response cache per settings
object so an admin reload is visible to searches.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

from .config.runtime import CacheBackend, CatalogBackend, RuntimeSettings, get_settings
from .ports.cache_store import CacheStore
from .ports.catalog import SegmentCatalog
from .ports.datasets import AudienceDataset, GeographyResolver
from .ports.text_generator import TextGenerator
from .services.catalog_service import SegmentCatalogService
from .services.generation import GuardedGenerator
from .services.index_service import IndexService
from .services.insight_enricher import InsightEnricher
from .services.intent_extractor import IntentExtractor
from .services.relevance_scorer import RelevanceScorer
from .services.response_cache import ResponseCache
from .services.search_service import AudienceSearchService

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Long-lived collaborators shared by the services."""

    settings: RuntimeSettings
    catalog: SegmentCatalog
    cache: ResponseCache
    generator: GuardedGenerator
    dataset: AudienceDataset | None
    geography: GeographyResolver | None


_runtime: Runtime | None = None
_runtime_lock = threading.Lock()


def build_catalog(settings: RuntimeSettings) -> SegmentCatalog:
    if settings.catalog_backend == CatalogBackend.qdrant:
        from .adapters.qdrant_catalog import QdrantSegmentCatalog

        return QdrantSegmentCatalog(settings)
    from .adapters.csv_catalog import CsvSegmentCatalog

    return CsvSegmentCatalog(settings.catalog_csv_path)


def build_cache_store(settings: RuntimeSettings) -> CacheStore | None:
    if not settings.cache_enabled:
        return None
    if settings.cache_backend == CacheBackend.memory:
        from .adapters.memory_cache_store import InMemoryCacheStore

        return InMemoryCacheStore()
    from .adapters.sqlite_cache_store import SqliteCacheStore

    return SqliteCacheStore(settings.cache_db_path)


def build_text_generator(settings: RuntimeSettings) -> TextGenerator | None:
    if not settings.gemini_api_key:
        logger.warning("generator_disabled", extra={"reason": "no GEMINI_API_KEY configured"})
        return None
    from .adapters.gemini_generator import GeminiTextGenerator

    return GeminiTextGenerator(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        timeout_seconds=settings.generator_timeout_seconds + 5,
    )


def build_datasets(settings: RuntimeSettings) -> tuple[AudienceDataset | None, GeographyResolver | None]:
    dataset: AudienceDataset | None = None
    geography: GeographyResolver | None = None
    if settings.commerce_csv_path and Path(settings.commerce_csv_path).exists():
        from .adapters.csv_commerce_dataset import CsvCommerceDataset

        dataset = CsvCommerceDataset(settings.commerce_csv_path)
    elif settings.commerce_csv_path:
        logger.warning("commerce_dataset_missing", extra={"path": settings.commerce_csv_path})
    if settings.geography_csv_path and Path(settings.geography_csv_path).exists():
        from .adapters.csv_geography import CsvGeographyResolver

        geography = CsvGeographyResolver(settings.geography_csv_path)
    return dataset, geography


def get_runtime(settings: RuntimeSettings | None = None) -> Runtime:
    """Return the process-wide Runtime, building it on first use."""
    global _runtime
    with _runtime_lock:
        if _runtime is None or (settings is not None and settings is not _runtime.settings):
            settings = settings or get_settings()
            config = settings.pipeline_config()
            dataset, geography = build_datasets(settings)
            _runtime = Runtime(
                settings=settings,
                catalog=build_catalog(settings),
                cache=ResponseCache(build_cache_store(settings), ttl_seconds=config.cache_ttl_seconds),
                generator=GuardedGenerator(
                    build_text_generator(settings),
                    timeout_seconds=config.generator_timeout_seconds,
                    max_workers=max(config.score_max_workers, 2) + 1,
                ),
                dataset=dataset,
                geography=geography,
            )
        return _runtime


def build_search_service(settings: RuntimeSettings | None = None) -> AudienceSearchService:
    """Construct an AudienceSearchService with real adapters."""
    runtime = get_runtime(settings)
    config = runtime.settings.pipeline_config()
    return AudienceSearchService(
        catalog=runtime.catalog,
        intent_extractor=IntentExtractor(runtime.generator, max_history_turns=config.max_history_turns),
        scorer=RelevanceScorer(
            runtime.generator,
            batch_size=config.score_batch_size,
            max_workers=config.score_max_workers,
            weights=config.fallback,
        ),
        enricher=InsightEnricher(runtime.dataset, runtime.geography, config),
        cache=runtime.cache,
        config=config,
    )


def build_catalog_service(settings: RuntimeSettings | None = None) -> SegmentCatalogService:
    runtime = get_runtime(settings)
    return SegmentCatalogService(runtime.catalog, cache=runtime.cache)


def build_index_service(settings: RuntimeSettings | None = None) -> IndexService:
    """Construct an IndexService writing to the Qdrant catalog."""
    from .adapters.fastembed_provider import FastEmbedProvider
    from .adapters.qdrant_catalog import QdrantSegmentCatalog

    settings = settings or get_settings()
    return IndexService(
        embedding_provider=FastEmbedProvider(model_id=settings.embedding_model_id),
        index=QdrantSegmentCatalog(settings),
        settings=settings,
    )
