"""
Persistence for the catalog, its hash map and the enrichment cache.
"""

from .cache import EnrichmentCache
from .store import CatalogStore

__all__ = [
    'CatalogStore',
    'EnrichmentCache',
]
