"""
Enrichment step contracts.

Four kinds of step run at different points of a catalog run:
- ModelStep: per model, only when the model is new or its source changed
- BatchStep: once over every new/changed model, after all ModelSteps
- NoChangeStep: per model, only when the source is unchanged
- OutputStructureStep: once over the whole catalog, every run

Steps return updated records instead of mutating their inputs. Any
caching or network access is the step's own concern, reached through the
StepContext.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from ..config import CatalogSettings
from ..models.catalog import CatalogStructure, ProcessedModel
from ..models.model_info import CanonicalModel

if TYPE_CHECKING:
    from ..clients.currency_client import CurrencyClient
    from ..clients.deepl_client import DeepLClient
    from ..clients.huggingface_client import HuggingFaceClient
    from ..clients.openai_client import OpenAIClient
    from ..storage.cache import EnrichmentCache


@dataclass
class StepContext:
    """Run-scoped collaborators handed to every step."""

    settings: CatalogSettings
    cache: EnrichmentCache
    openai: OpenAIClient | None = None
    deepl: DeepLClient | None = None
    currency: CurrencyClient | None = None
    huggingface: HuggingFaceClient | None = None


class ModelStep(Protocol):
    async def __call__(
        self,
        source: CanonicalModel,
        previous: ProcessedModel | None,
        model: ProcessedModel,
        context: StepContext,
    ) -> ProcessedModel: ...


class BatchStep(Protocol):
    async def __call__(
        self,
        models: list[ProcessedModel],
        context: StepContext,
    ) -> list[ProcessedModel]: ...


class NoChangeStep(Protocol):
    async def __call__(
        self,
        source: CanonicalModel,
        previous: ProcessedModel,
        context: StepContext,
    ) -> ProcessedModel: ...


class OutputStructureStep(Protocol):
    async def __call__(
        self,
        structure: CatalogStructure,
        context: StepContext,
    ) -> CatalogStructure: ...


def step_name(step: object) -> str:
    """Readable name of a step function or step object, for logs and errors."""
    return getattr(step, '__name__', type(step).__name__)
