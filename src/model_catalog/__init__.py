"""
Model Catalog

Aggregates AI model metadata from several providers into one canonical,
incrementally maintained catalog: identifier normalization, provider
merge, cross-source deduplication and hash-based change detection, with
enrichment (descriptions, translations, currency conversion) only for
new or changed models.
"""

__version__ = '0.1.0'

# Re-export key classes for convenience
from .pipeline import CatalogPipeline, RunResult, default_processing_steps
from .reconciliation import (
    CatalogProcessor,
    ChangeStatus,
    ProcessingSteps,
    ProcessorResult,
    canonical_id,
    comparable_key,
    content_hash,
    deduplicate,
    merge_offerings,
)
from .models import (
    CanonicalModel,
    CatalogStructure,
    ProcessedModel,
    ProviderOffering,
    ProviderPrice,
)
from .logging import (
    configure_logging,
    get_logger,
    logging_context,
    PipelineTimer,
)
from .errors import (
    ModelCatalogError,
    PipelineError,
    ConfigurationError,
    SourceFetchError,
    EnrichmentError,
    PersistenceError,
    ClientError,
    OpenAIError,
    ServiceHTTPError,
)

__all__ = [
    # Version
    '__version__',
    # Main Pipeline
    'CatalogPipeline',
    'RunResult',
    'default_processing_steps',
    # Reconciliation
    'CatalogProcessor',
    'ChangeStatus',
    'ProcessingSteps',
    'ProcessorResult',
    'canonical_id',
    'comparable_key',
    'content_hash',
    'deduplicate',
    'merge_offerings',
    # Models
    'CanonicalModel',
    'CatalogStructure',
    'ProcessedModel',
    'ProviderOffering',
    'ProviderPrice',
    # Logging
    'configure_logging',
    'get_logger',
    'logging_context',
    'PipelineTimer',
    # Errors
    'ModelCatalogError',
    'PipelineError',
    'ConfigurationError',
    'SourceFetchError',
    'EnrichmentError',
    'PersistenceError',
    'ClientError',
    'OpenAIError',
    'ServiceHTTPError',
]
