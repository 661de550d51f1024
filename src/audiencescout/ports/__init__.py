"""Port interfaces (Protocols).

Application services depend only on these, never on concrete adapters.
No Qdrant, fastembed, google-genai or sqlite imports allowed here.
"""

from .cache_store import CacheEntry, CacheStore
from .catalog import SegmentCatalog
from .datasets import AudienceDataset, BehavioralRecord, GeoArea, GeographyResolver
from .embedding import EmbeddingProvider
from .text_generator import TextGenerator

__all__ = [
    "AudienceDataset",
    "BehavioralRecord",
    "CacheEntry",
    "CacheStore",
    "EmbeddingProvider",
    "GeoArea",
    "GeographyResolver",
    "SegmentCatalog",
    "TextGenerator",
]
