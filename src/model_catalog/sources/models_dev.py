"""
models.dev source adapter.

Reads https://models.dev/api.json, a provider -> models document. Every
(provider, model) pair becomes one CanonicalModel; pairs naming the same
model are folded together before returning.
"""

import re
from datetime import date
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError

from ..config import CatalogSettings
from ..errors import SourceFetchError
from ..logging import get_logger
from ..models.model_info import (
    INPUT_MODALITIES,
    OUTPUT_MODALITIES,
    CanonicalModel,
    ProviderOffering,
    ProviderPrice,
)
from ..reconciliation.deduplicator import deduplicate
from ..reconciliation.identifiers import IdFilter, canonical_id, is_likely_versioned_or_transient
from .base import fetch_json, positive_or_none

logger = get_logger(__name__)

MODELS_DEV_URL = 'https://models.dev/api.json'
SOURCE_NAME = 'models_dev'

# YYYY-MM or YYYY-MM-DD
_KNOWLEDGE_DATE = re.compile(r'^(\d{4})-(0[1-9]|1[0-2])(?:-([0-2]\d|3[01]))?$')


# =============================================================================
# Payload schema
# =============================================================================


class ModelsDevModalities(BaseModel):
    input: list[str] = Field(default_factory=list)
    output: list[str] = Field(default_factory=list)


class ModelsDevCost(BaseModel):
    """USD per one million tokens."""

    input: float | None = None
    output: float | None = None


class ModelsDevLimit(BaseModel):
    context: int | None = None
    output: int | None = None


class ModelsDevModel(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    reasoning: bool | None = None
    tool_call: bool | None = None
    temperature: bool | None = None
    open_weights: bool | None = None
    knowledge: str | None = None
    modalities: ModelsDevModalities = Field(default_factory=ModelsDevModalities)
    cost: ModelsDevCost | None = None
    limit: ModelsDevLimit | None = None


class ModelsDevProvider(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    models: dict[str, ModelsDevModel] = Field(default_factory=dict)


# =============================================================================
# Normalization
# =============================================================================


def parse_knowledge(value: str | None) -> date | None:
    """Knowledge cutoff; "2024-04" means the first of the month, other formats are ignored."""
    if not value:
        return None
    match = _KNOWLEDGE_DATE.match(value)
    if not match:
        return None
    year, month, day = match.groups()
    try:
        return date(int(year), int(month), int(day or 1))
    except ValueError:
        return None


def _usd(price: float | None) -> str | None:
    return None if price is None else f'{price:.2f}'


def normalize_model(provider: ModelsDevProvider, model: ModelsDevModel) -> CanonicalModel:
    """Map one (provider, model) pair to a CanonicalModel."""
    cost = model.cost or ModelsDevCost()
    limit = model.limit or ModelsDevLimit()

    offering = ProviderOffering(
        provider_id=provider.id,
        provider_name=provider.name,
        context_length=positive_or_none(limit.context),
        output_limit=positive_or_none(limit.output),
        price=ProviderPrice(currency='usd', input=_usd(cost.input), output=_usd(cost.output)),
    )

    parameters = []
    if model.temperature:
        parameters.append('temperature')
    if model.tool_call:
        parameters.append('tools')

    model_id = canonical_id(model.id)
    # Each host lists the model separately and False is sticky when merging,
    # so a host's False is read as unknown.
    return CanonicalModel(
        id=model_id,
        aliases=[model_id.lower(), model.id.lower()],
        name=model.name,
        reasoning=model.reasoning or None,
        tool_calling=model.tool_call or None,
        open_weights=model.open_weights or None,
        knowledge=parse_knowledge(model.knowledge),
        input=[m for m in model.modalities.input if m in INPUT_MODALITIES],
        output=[m for m in model.modalities.output if m in OUTPUT_MODALITIES],
        parameters=parameters,
        providers=[offering],
    )


def parse_payload(payload: Any) -> list[tuple[ModelsDevProvider, ModelsDevModel]]:
    """Validate the provider document into (provider, model) pairs."""
    if not isinstance(payload, dict):
        raise SourceFetchError(
            'Invalid models.dev response format: expected an object of providers',
            context={'source': SOURCE_NAME},
        )

    pairs = []
    for key, entry in payload.items():
        try:
            provider = ModelsDevProvider.model_validate(entry)
        except ValidationError as e:
            raise SourceFetchError(
                f"Invalid models.dev provider {key}: {e}",
                context={'source': SOURCE_NAME, 'provider_id': key},
            ) from e
        pairs.extend((provider, model) for model in provider.models.values())
    return pairs


async def fetch_models_dev_models(
    settings: CatalogSettings,
    id_filter: IdFilter = is_likely_versioned_or_transient,
    http_client: httpx.AsyncClient | None = None,
) -> list[CanonicalModel]:
    """
    Fetch, normalize and deduplicate the models.dev catalog.

    Args:
        settings: Run settings (HTTP_TIMEOUT_SECONDS)
        id_filter: Predicate; raw ids for which it returns True are dropped
        http_client: Optional client, mainly for tests

    Returns:
        Deduplicated CanonicalModels, one offering per hosting provider

    Raises:
        SourceFetchError: If the document cannot be fetched or validated
    """
    payload = await fetch_json(
        SOURCE_NAME,
        MODELS_DEV_URL,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
        http_client=http_client,
    )

    normalized = [
        normalize_model(provider, model)
        for provider, model in parse_payload(payload)
        if not id_filter(model.id)
    ]
    models = deduplicate(normalized)
    logger.info(
        'source_fetched',
        source=SOURCE_NAME,
        record_count=len(normalized),
        model_count=len(models),
    )
    return models
