"""
Enrichment steps applied by the catalog processor.
"""

from .descriptions import (
    clean_description,
    clean_model_card,
    cleanup_descriptions,
    generate_ai_description,
    generate_description,
)
from .pricing import convert_price, exchange_rate, generate_initial_pricing, refresh_pricing
from .providers import DEFAULT_PROVIDER_NAMES, ProviderDirectoryStep
from .summary import generate_summary_information
from .translations import TRANSLATION_CHUNK_SIZE, generate_description_translations, translate_texts
from .types import (
    BatchStep,
    ModelStep,
    NoChangeStep,
    OutputStructureStep,
    StepContext,
    step_name,
)

__all__ = [
    # Contracts
    'BatchStep',
    'ModelStep',
    'NoChangeStep',
    'OutputStructureStep',
    'StepContext',
    'step_name',
    # Per-model steps
    'generate_description',
    'generate_initial_pricing',
    'generate_summary_information',
    # Batch steps
    'cleanup_descriptions',
    'generate_description_translations',
    # No-change steps
    'refresh_pricing',
    # Output-structure steps
    'DEFAULT_PROVIDER_NAMES',
    'ProviderDirectoryStep',
    # Helpers
    'clean_description',
    'clean_model_card',
    'convert_price',
    'exchange_rate',
    'generate_ai_description',
    'translate_texts',
    'TRANSLATION_CHUNK_SIZE',
]
