"""
Reconciliation core: identifier normalization, offering merge, model
deduplication and change detection.
"""

from .deduplicator import deduplicate, merge_flag
from .identifiers import (
    canonical_id,
    comparable_key,
    is_likely_versioned_or_transient,
    remove_namespace,
)
from .merger import is_same_provider, merge_offering_pair, merge_offerings
from .processor import (
    CatalogProcessor,
    ChangeStatus,
    ProcessingSteps,
    ProcessorResult,
    content_hash,
)

__all__ = [
    # Identifiers
    'canonical_id',
    'comparable_key',
    'is_likely_versioned_or_transient',
    'remove_namespace',
    # Offerings
    'is_same_provider',
    'merge_offering_pair',
    'merge_offerings',
    # Deduplication
    'deduplicate',
    'merge_flag',
    # Change detection
    'CatalogProcessor',
    'ChangeStatus',
    'ProcessingSteps',
    'ProcessorResult',
    'content_hash',
]
