"""
Pydantic models for source records and the persisted catalog.
"""

from .catalog import (
    CatalogStructure,
    HashMap,
    ProcessedModel,
    ProcessedProviderOffering,
    ProviderInformation,
)
from .model_info import (
    INPUT_MODALITIES,
    OUTPUT_MODALITIES,
    CanonicalModel,
    InputModality,
    OutputModality,
    ProviderOffering,
    ProviderPrice,
    sort_aliases,
)

__all__ = [
    # Source records
    'CanonicalModel',
    'ProviderOffering',
    'ProviderPrice',
    'InputModality',
    'OutputModality',
    'INPUT_MODALITIES',
    'OUTPUT_MODALITIES',
    'sort_aliases',
    # Catalog
    'CatalogStructure',
    'HashMap',
    'ProcessedModel',
    'ProcessedProviderOffering',
    'ProviderInformation',
]
