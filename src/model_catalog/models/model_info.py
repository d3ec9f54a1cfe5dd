"""
Source-side model records: ProviderOffering and CanonicalModel.

These are the shapes produced by source adapters and consumed by the
deduplicator. One CanonicalModel describes one logical model; each
ProviderOffering describes one provider's terms for it.

Capability flags are tri-state: True, False, or None (unknown). None is
never silently defaulted to False.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


InputModality = Literal['text', 'image', 'file', 'audio', 'video']
OutputModality = Literal['text', 'image', 'embeddings']

INPUT_MODALITIES: tuple[str, ...] = get_args(InputModality)
OUTPUT_MODALITIES: tuple[str, ...] = get_args(OutputModality)


def sort_aliases(aliases: list[str]) -> list[str]:
    """
    Deduplicate aliases case-insensitively and sort them longest-first.

    The first spelling seen for an alias is kept. Ties in length keep their
    input order, so the result is deterministic for a given input order.
    """
    seen: set[str] = set()
    unique: list[str] = []
    for alias in aliases:
        folded = alias.lower()
        if not alias or folded in seen:
            continue
        seen.add(folded)
        unique.append(alias)
    return sorted(unique, key=len, reverse=True)


class CatalogModel(BaseModel):
    """Base for persisted records: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProviderPrice(CatalogModel):
    """Price per one million tokens, kept as decimal strings."""

    currency: str = Field(..., description='Currency code, e.g. "usd"')
    input: str | None = Field(default=None, description='Price per 1M input tokens')
    output: str | None = Field(default=None, description='Price per 1M output tokens')

    @field_validator('input', 'output')
    @classmethod
    def _must_be_decimal(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            Decimal(value)
        except InvalidOperation:
            raise ValueError(f'not a decimal string: {value!r}')
        return value


class ProviderOffering(CatalogModel):
    """One provider's view of one model."""

    provider_id: str = Field(..., description='Stable short provider code, e.g. "openrouter"')
    provider_name: str | None = Field(default=None, description='Human-readable provider name')
    context_length: int | None = Field(default=None, gt=0, description='Context window in tokens')
    input_limit: int | None = Field(default=None, gt=0, description='Maximum prompt tokens')
    output_limit: int | None = Field(default=None, gt=0, description='Maximum completion tokens')
    price: ProviderPrice | None = Field(default=None, description='Pricing for this provider')

    @property
    def currency(self) -> str | None:
        return self.price.currency if self.price else None


class CanonicalModel(CatalogModel):
    """
    A model as reported by the sources, before enrichment.

    Source adapters emit one record per (source, model) with exactly one
    offering; the deduplicator folds records describing the same logical
    model into one.
    """

    id: str = Field(..., description='Canonical model id, unique after deduplication')
    aliases: list[str] = Field(
        default_factory=list,
        description='Alternative ids, always including id, longest first',
    )
    name: str = Field(..., description='Human-readable model name')
    description: str = Field(default='', description='English description, may be empty')
    input: list[InputModality] = Field(default_factory=list)
    output: list[OutputModality] = Field(default_factory=list)
    reasoning: bool | None = None
    tool_calling: bool | None = None
    open_weights: bool | None = None
    knowledge: date | None = Field(default=None, description='Knowledge cutoff date')
    parameters: list[str] = Field(
        default_factory=list,
        description='Supported invocation parameter names',
    )
    default_parameters: dict[str, Any] = Field(default_factory=dict)
    providers: list[ProviderOffering] = Field(default_factory=list)
    free_providers: list[ProviderOffering] = Field(default_factory=list)

    @model_validator(mode='after')
    def _aliases_include_id(self) -> 'CanonicalModel':
        self.aliases = sort_aliases([*self.aliases, self.id])
        return self
