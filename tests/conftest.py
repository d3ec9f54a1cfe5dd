"""
Pytest configuration and shared fixtures.

Key fixtures:
- settings: CatalogSettings pointing at temporary files, no secrets
- step_context: StepContext with an in-memory cache and no clients

Builders:
- make_offering / make_model / make_processed: compact record factories

No network access is needed; external clients are mocked per test.
"""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

# Load environment variables
from dotenv import load_dotenv

env_file = Path(__file__).parent.parent / '.env'
if env_file.exists():
    load_dotenv(env_file)

from model_catalog.config import CatalogSettings
from model_catalog.models import (
    CanonicalModel,
    ProcessedModel,
    ProcessedProviderOffering,
    ProviderOffering,
    ProviderPrice,
)
from model_catalog.steps.types import StepContext
from model_catalog.storage.cache import EnrichmentCache


def make_offering(
    provider_id: str = 'openai',
    provider_name: str | None = None,
    currency: str | None = 'usd',
    input_price: str | None = '1.00',
    output_price: str | None = '2.00',
    **limits,
) -> ProviderOffering:
    """Build a provider offering; pass currency=None for an unpriced offering."""
    price = None
    if currency is not None:
        price = ProviderPrice(currency=currency, input=input_price, output=output_price)
    return ProviderOffering(
        provider_id=provider_id,
        provider_name=provider_name,
        price=price,
        **limits,
    )


def make_model(model_id: str = 'gpt-4o', **fields) -> CanonicalModel:
    """Build a source model with one default offering unless providers are given."""
    fields.setdefault('name', model_id.upper())
    fields.setdefault('providers', [make_offering()])
    return CanonicalModel(id=model_id, **fields)


def make_processed(model_id: str = 'gpt-4o', **fields) -> ProcessedModel:
    """Build a stored catalog record."""
    fields.setdefault('name', model_id.upper())
    fields.setdefault(
        'providers',
        [
            ProcessedProviderOffering(
                provider_id='openai',
                price={'usd': ProviderPrice(currency='usd', input='1.00', output='2.00')},
            )
        ],
    )
    return ProcessedModel(id=model_id, aliases=[model_id], **fields)


@pytest.fixture
def settings(tmp_path: Path) -> CatalogSettings:
    """Settings writing into a temporary directory."""
    return CatalogSettings(
        STORAGE_FILE_PATH=tmp_path / 'models.json',
        HASH_FILE_PATH=tmp_path / 'models.hashes.json',
        CACHE_FILE_PATH=tmp_path / '.cache.json',
        SOURCES=['models_dev', 'openrouter'],
        MODEL_DENY_LIST=[],
        ADDITIONAL_LOCALES=['de'],
        ADDITIONAL_CURRENCIES=['eur'],
        REFRESH_PRICING_ON_UNCHANGED=False,
        OPENROUTER_API_KEY='',
        DEEPL_API_KEY='',
        OPENAI_API_KEY='',
    )


@pytest.fixture
def step_context(settings: CatalogSettings) -> StepContext:
    """Step context with an in-memory cache and no service clients."""
    return StepContext(settings=settings, cache=EnrichmentCache())
