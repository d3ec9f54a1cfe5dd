"""
Persisted catalog records.

ProcessedModel is the enriched, stored form of a CanonicalModel:
- description becomes a locale -> text mapping ("en" always present when set)
- each offering's price becomes a currency -> price mapping
- model-level limits summarize the provider limits
- deprecated / last_imported_at track lifecycle across runs
"""

from datetime import date, datetime, timezone
from typing import Any

from pydantic import Field

from .model_info import (
    CanonicalModel,
    CatalogModel,
    InputModality,
    OutputModality,
    ProviderOffering,
    ProviderPrice,
)


HashMap = dict[str, str]


class ProcessedProviderOffering(CatalogModel):
    """A provider offering with prices in every configured currency."""

    provider_id: str
    provider_name: str | None = Field(
        default=None,
        description='Present only until the provider directory step moves it out',
    )
    context_length: int | None = Field(default=None, gt=0)
    input_limit: int | None = Field(default=None, gt=0)
    output_limit: int | None = Field(default=None, gt=0)
    price: dict[str, ProviderPrice] = Field(
        default_factory=dict,
        description='Prices keyed by currency code',
    )


class ProcessedModel(CatalogModel):
    """Enriched model record as stored in the catalog."""

    id: str
    aliases: list[str] = Field(default_factory=list)
    name: str
    description: dict[str, str] | None = Field(
        default=None,
        description='Localized descriptions, keyed by locale',
    )
    input: list[InputModality] = Field(default_factory=list)
    output: list[OutputModality] = Field(default_factory=list)
    reasoning: bool | None = None
    tool_calling: bool | None = None
    open_weights: bool | None = None
    knowledge: date | None = None
    parameters: list[str] = Field(default_factory=list)
    default_parameters: dict[str, Any] = Field(default_factory=dict)
    providers: list[ProcessedProviderOffering] = Field(default_factory=list)
    free_providers: list[ProviderOffering] = Field(default_factory=list)

    # Summary over providers
    context_length: int | None = Field(default=None, description='Minimum provider context length')
    input_limit: int | None = Field(default=None, description='Minimum provider input limit')
    output_limit: int | None = Field(default=None, description='Minimum provider output limit')

    # Lifecycle
    deprecated: bool = Field(default=False, description='Absent from every source')
    last_imported_at: datetime | None = Field(
        default=None,
        description='When the source content last changed',
    )

    @classmethod
    def from_source(
        cls,
        source: CanonicalModel,
        imported_at: datetime | None = None,
    ) -> 'ProcessedModel':
        """
        Start a work-in-progress record for a new or changed source model.

        Description and providers are left empty; enrichment steps fill them.
        """
        return cls(
            id=source.id,
            aliases=list(source.aliases),
            name=source.name,
            input=list(source.input),
            output=list(source.output),
            reasoning=source.reasoning,
            tool_calling=source.tool_calling,
            open_weights=source.open_weights,
            knowledge=source.knowledge,
            parameters=list(source.parameters),
            default_parameters=dict(source.default_parameters),
            free_providers=[p.model_copy(deep=True) for p in source.free_providers],
            last_imported_at=imported_at or datetime.now(timezone.utc),
        )


class ProviderInformation(CatalogModel):
    """Entry in the provider directory."""

    id: str
    name: str


class CatalogStructure(CatalogModel):
    """The whole persisted catalog."""

    models: list[ProcessedModel] = Field(default_factory=list)
    providers: list[ProviderInformation] = Field(default_factory=list)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting unknown values."""
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)
