"""
OpenRouter source adapter.

Reads https://openrouter.ai/api/v1/models. Every model becomes one
CanonicalModel with a single "openrouter" offering priced in USD.
"""

from datetime import datetime, timezone
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..config import CatalogSettings
from ..errors import ConfigurationError, SourceFetchError
from ..logging import get_logger
from ..models.model_info import (
    CanonicalModel,
    InputModality,
    OutputModality,
    ProviderOffering,
    ProviderPrice,
)
from ..reconciliation.identifiers import IdFilter, canonical_id, is_likely_versioned_or_transient
from .base import fetch_json, per_million, positive_or_none

logger = get_logger(__name__)

OPENROUTER_MODELS_URL = 'https://openrouter.ai/api/v1/models'
OPENROUTER_PROVIDER_ID = 'openrouter'

REASONING_PARAMETERS = ('reasoning', 'include_reasoning')
TOOL_PARAMETERS = ('tools', 'tool_choice')

# 9999-12-31T23:59:59Z, the last second a datetime can hold
MAX_TIMESTAMP = 253402300799


# =============================================================================
# Payload schema
# =============================================================================


class OpenRouterPricing(BaseModel):
    """Per-token prices; OpenRouter sends them as strings or numbers."""

    prompt: str | None = None
    completion: str | None = None

    @field_validator('prompt', 'completion', mode='before')
    @classmethod
    def _number_to_string(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class OpenRouterArchitecture(BaseModel):
    input_modalities: list[InputModality] = Field(default_factory=list)
    output_modalities: list[OutputModality] = Field(default_factory=list)


class OpenRouterTopProvider(BaseModel):
    context_length: int | None = None
    max_completion_tokens: int | None = None


class OpenRouterRequestLimits(BaseModel):
    prompt_tokens: int | None = None
    completion_tokens: int | None = None


class OpenRouterModel(BaseModel):
    """One entry of the OpenRouter models listing."""

    id: str = Field(..., min_length=1)
    canonical_slug: str | None = None
    hugging_face_id: str | None = None
    name: str = Field(..., min_length=1)
    description: str = ''
    created: int | None = Field(default=None, ge=0, le=MAX_TIMESTAMP)
    pricing: OpenRouterPricing = Field(default_factory=OpenRouterPricing)
    context_length: int | None = None
    architecture: OpenRouterArchitecture = Field(default_factory=OpenRouterArchitecture)
    top_provider: OpenRouterTopProvider | None = None
    per_request_limits: OpenRouterRequestLimits | None = None
    supported_parameters: list[str] = Field(default_factory=list)
    default_parameters: dict[str, Any] | None = None

    @field_validator('description', mode='before')
    @classmethod
    def _localized_description(cls, value: Any) -> Any:
        if value is None:
            return ''
        if isinstance(value, dict):
            return value.get('en', '')
        return value

    @field_validator('supported_parameters', mode='before')
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return value or []


# =============================================================================
# Normalization
# =============================================================================


def _aliases(model: OpenRouterModel) -> list[str]:
    candidates = [
        canonical_id(model.id),
        model.id,
        model.canonical_slug or '',
        canonical_id(model.canonical_slug or ''),
        model.hugging_face_id or '',
        canonical_id(model.hugging_face_id or ''),
    ]
    return [alias.lower() for alias in candidates if alias]


def _supports_any(model: OpenRouterModel, parameters: tuple[str, ...]) -> bool | None:
    # Absence of a parameter is not evidence the capability is missing.
    if any(p in model.supported_parameters for p in parameters):
        return True
    return None


def normalize_model(model: OpenRouterModel) -> CanonicalModel:
    """Map one validated OpenRouter entry to a CanonicalModel."""
    top_context = model.top_provider.context_length if model.top_provider else None
    limits = model.per_request_limits or OpenRouterRequestLimits()

    offering = ProviderOffering(
        provider_id=OPENROUTER_PROVIDER_ID,
        context_length=positive_or_none(top_context) or positive_or_none(model.context_length),
        input_limit=positive_or_none(limits.prompt_tokens),
        output_limit=positive_or_none(limits.completion_tokens),
        price=ProviderPrice(
            currency='usd',
            input=per_million(model.pricing.prompt),
            output=per_million(model.pricing.completion or '0'),
        ),
    )

    knowledge = None
    if model.created:
        knowledge = datetime.fromtimestamp(model.created, tz=timezone.utc).date()

    return CanonicalModel(
        id=canonical_id(model.id),
        aliases=_aliases(model),
        name=model.name,
        description=model.description,
        input=model.architecture.input_modalities,
        output=model.architecture.output_modalities,
        reasoning=_supports_any(model, REASONING_PARAMETERS),
        tool_calling=_supports_any(model, TOOL_PARAMETERS),
        knowledge=knowledge,
        parameters=list(model.supported_parameters),
        default_parameters=model.default_parameters or {},
        providers=[offering],
    )


def parse_payload(payload: Any) -> list[OpenRouterModel]:
    """Validate the listing payload, raising SourceFetchError on any mismatch."""
    if not isinstance(payload, dict) or not isinstance(payload.get('data'), list):
        raise SourceFetchError(
            'Invalid OpenRouter response format: expected an array of models',
            context={'source': OPENROUTER_PROVIDER_ID},
        )

    models = []
    for entry in payload['data']:
        try:
            models.append(OpenRouterModel.model_validate(entry))
        except ValidationError as e:
            model_id = entry.get('id') if isinstance(entry, dict) else None
            raise SourceFetchError(
                f"Invalid OpenRouter model {model_id}: {e}",
                context={'source': OPENROUTER_PROVIDER_ID, 'model_id': model_id},
            ) from e
    return models


def _normalize_or_fail(model: OpenRouterModel) -> CanonicalModel:
    try:
        return normalize_model(model)
    except ValueError as e:
        raise SourceFetchError(
            f"Invalid OpenRouter model {model.id}: {e}",
            context={'source': OPENROUTER_PROVIDER_ID, 'model_id': model.id},
        ) from e


async def fetch_openrouter_models(
    settings: CatalogSettings,
    id_filter: IdFilter = is_likely_versioned_or_transient,
    http_client: httpx.AsyncClient | None = None,
) -> list[CanonicalModel]:
    """
    Fetch and normalize the OpenRouter model listing.

    Args:
        settings: Run settings (OPENROUTER_API_KEY, HTTP_TIMEOUT_SECONDS)
        id_filter: Predicate; raw ids for which it returns True are dropped
        http_client: Optional client, mainly for tests

    Returns:
        One CanonicalModel per kept OpenRouter model

    Raises:
        ConfigurationError: If no API key is configured
        SourceFetchError: If the listing cannot be fetched or validated
    """
    if not settings.OPENROUTER_API_KEY:
        raise ConfigurationError(
            'OPENROUTER_API_KEY is required for the openrouter source',
            context={'source': OPENROUTER_PROVIDER_ID},
        )

    payload = await fetch_json(
        OPENROUTER_PROVIDER_ID,
        OPENROUTER_MODELS_URL,
        headers={'Authorization': f'Bearer {settings.OPENROUTER_API_KEY}'},
        timeout=settings.HTTP_TIMEOUT_SECONDS,
        http_client=http_client,
    )

    models = [m for m in parse_payload(payload) if not id_filter(m.id)]
    logger.info('source_fetched', source=OPENROUTER_PROVIDER_ID, model_count=len(models))
    return [_normalize_or_fail(model) for model in models]
