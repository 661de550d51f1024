"""Concrete adapters implementing the ports.

Heavy client libraries (qdrant-client, fastembed, google-genai) are imported
only by their own modules; import those directly.
"""

from .csv_catalog import CsvSegmentCatalog
from .csv_commerce_dataset import CsvCommerceDataset
from .csv_geography import CsvGeographyResolver
from .memory_cache_store import InMemoryCacheStore
from .sqlite_cache_store import SqliteCacheStore

__all__ = [
    "CsvCommerceDataset",
    "CsvGeographyResolver",
    "CsvSegmentCatalog",
    "InMemoryCacheStore",
    "SqliteCacheStore",
]
