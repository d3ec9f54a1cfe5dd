"""
Provider directory.

Offerings of freshly imported models still carry their provider's display
name. This output-structure step moves those names into the catalog-wide
provider directory and strips them from the offerings.
"""

from ..logging import get_logger
from ..models.catalog import CatalogStructure, ProviderInformation
from .types import StepContext

logger = get_logger(__name__)

DEFAULT_PROVIDER_NAMES: dict[str, str] = {
    'openai': 'OpenAI',
    'anthropic': 'Anthropic',
    'google': 'Google',
    'microsoft': 'Microsoft',
    'ai21': 'AI21',
    'cohere': 'Cohere',
    'huggingface': 'Hugging Face',
    'openrouter': 'OpenRouter',
}


class ProviderDirectoryStep:
    """
    Build the provider directory from model offerings.

    Names come from the offerings themselves, falling back to the
    provider_names table for well-known provider ids. Entries already in
    the directory win over newly collected ones.
    """

    def __init__(self, provider_names: dict[str, str] | None = None):
        self.provider_names = dict(DEFAULT_PROVIDER_NAMES if provider_names is None else provider_names)

    async def __call__(self, structure: CatalogStructure, context: StepContext) -> CatalogStructure:
        directory: dict[str, ProviderInformation] = {}
        models = []

        for model in structure.models:
            providers = []
            for offering in model.providers:
                name = offering.provider_name or self.provider_names.get(offering.provider_id)
                if name:
                    directory.setdefault(
                        offering.provider_id,
                        ProviderInformation(id=offering.provider_id, name=name),
                    )
                if offering.provider_name is not None:
                    offering = offering.model_copy(update={'provider_name': None})
                providers.append(offering)
            models.append(model.model_copy(update={'providers': providers}))

        for provider in structure.providers:
            directory[provider.id] = provider

        logger.debug('provider_directory_built', provider_count=len(directory))
        return structure.model_copy(
            update={
                'models': models,
                'providers': sorted(directory.values(), key=lambda p: p.id),
            }
        )
