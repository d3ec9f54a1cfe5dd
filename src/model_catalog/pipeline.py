"""
Run orchestrator for catalog updates.

One run:
1. Fetch every configured source, in order
2. Lowercase ids and deduplicate across sources
3. Drop denied model ids
4. Load the persisted catalog and hash map
5. Reconcile (change detection + enrichment + assembly)
6. Persist catalog and hash map, only if every step above succeeded
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable
from uuid import uuid4

from .clients.currency_client import CurrencyClient
from .clients.deepl_client import DeepLClient
from .clients.huggingface_client import HuggingFaceClient
from .clients.openai_client import OpenAIClient
from .config import CatalogSettings, get_settings
from .errors import ConfigurationError
from .logging import PipelineTimer, get_logger, logging_context
from .models.model_info import CanonicalModel
from .reconciliation.deduplicator import deduplicate
from .reconciliation.processor import CatalogProcessor, ProcessingSteps, ProcessorResult
from .sources import SOURCE_REGISTRY, ModelSource
from .steps.descriptions import cleanup_descriptions, generate_description
from .steps.pricing import generate_initial_pricing, refresh_pricing
from .steps.providers import ProviderDirectoryStep
from .steps.summary import generate_summary_information
from .steps.translations import generate_description_translations
from .steps.types import StepContext
from .storage.cache import EnrichmentCache
from .storage.store import CatalogStore

logger = get_logger(__name__)


@dataclass
class RunResult:
    """Summary of one catalog update run."""

    run_id: str

    # Classification
    new_ids: list[str] = field(default_factory=list)
    changed_ids: list[str] = field(default_factory=list)
    unchanged_ids: list[str] = field(default_factory=list)
    deprecated_ids: list[str] = field(default_factory=list)

    # Statistics
    source_records: int = 0
    denied: int = 0
    total_models: int = 0
    total_providers: int = 0

    # Timing
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None
    processing_time_ms: int | None = None
    stage_timings: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'run_id': self.run_id,
            'source_records': self.source_records,
            'denied': self.denied,
            'total_models': self.total_models,
            'total_providers': self.total_providers,
            'new': len(self.new_ids),
            'changed': len(self.changed_ids),
            'unchanged': len(self.unchanged_ids),
            'deprecated': len(self.deprecated_ids),
            'new_ids': self.new_ids,
            'changed_ids': self.changed_ids,
            'deprecated_ids': self.deprecated_ids,
            'processing_time_ms': self.processing_time_ms,
            'stage_timings': self.stage_timings,
        }


def default_processing_steps(settings: CatalogSettings) -> ProcessingSteps:
    """The enrichment steps of a regular run."""
    return ProcessingSteps(
        new_and_changed=[
            generate_description,
            generate_initial_pricing,
            generate_summary_information,
        ],
        batch=[
            generate_description_translations,
            cleanup_descriptions,
        ],
        no_change=[refresh_pricing] if settings.REFRESH_PRICING_ON_UNCHANGED else [],
        output_structure=[ProviderDirectoryStep()],
    )


def resolve_sources(names: list[str]) -> list[ModelSource]:
    """Look up source adapters by setting name, keeping the configured order."""
    unknown = [name for name in names if name not in SOURCE_REGISTRY]
    if unknown:
        raise ConfigurationError(
            f"Unknown sources: {', '.join(unknown)}",
            context={'available': sorted(SOURCE_REGISTRY)},
        )
    return [SOURCE_REGISTRY[name] for name in names]


class CatalogPipeline:
    """
    End-to-end catalog update.

    Usage:
        pipeline = CatalogPipeline.from_settings()
        try:
            result = await pipeline.run()
        finally:
            await pipeline.close()
    """

    def __init__(
        self,
        settings: CatalogSettings,
        sources: list[ModelSource],
        store: CatalogStore,
        context: StepContext,
        steps: ProcessingSteps,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            settings: Run settings
            sources: Source adapters, in fetch order
            store: Catalog and hash map persistence
            context: Collaborators handed to every step
            steps: Enrichment steps
            clock: Source of the import timestamp (defaults to UTC now)
        """
        self.settings = settings
        self.sources = sources
        self.store = store
        self.context = context
        self.processor = CatalogProcessor(steps, context, clock=clock)

    @classmethod
    def from_settings(cls, settings: CatalogSettings | None = None) -> CatalogPipeline:
        """
        Create a pipeline with real clients from settings.

        Raises:
            ConfigurationError: If required secrets are missing or a source is unknown
        """
        settings = settings or get_settings()

        missing = settings.missing_secrets()
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                context={'missing': missing},
            )
        sources = resolve_sources(settings.SOURCES)

        timeout = settings.HTTP_TIMEOUT_SECONDS
        context = StepContext(
            settings=settings,
            cache=EnrichmentCache.load(settings.CACHE_FILE_PATH),
            openai=OpenAIClient(
                api_key=settings.OPENAI_API_KEY,
                chat_model=settings.OPENAI_CHAT_MODEL,
            ),
            deepl=DeepLClient(settings.DEEPL_API_KEY, timeout=timeout) if settings.DEEPL_API_KEY else None,
            currency=CurrencyClient(timeout=timeout),
            huggingface=HuggingFaceClient(timeout=timeout),
        )
        store = CatalogStore(settings.STORAGE_FILE_PATH, settings.HASH_FILE_PATH)
        return cls(settings, sources, store, context, default_processing_steps(settings))

    async def close(self) -> None:
        """Close all client connections."""
        for client in (
            self.context.openai,
            self.context.deepl,
            self.context.currency,
            self.context.huggingface,
        ):
            if client is not None:
                await client.close()

    async def fetch_sources(self) -> list[CanonicalModel]:
        """Fetch all sources in order and lowercase the model ids."""
        records: list[CanonicalModel] = []
        for source in self.sources:
            records.extend(await source(self.settings))
        return [record.model_copy(update={'id': record.id.lower()}) for record in records]

    def apply_deny_list(self, models: list[CanonicalModel]) -> list[CanonicalModel]:
        denied = {model_id.lower() for model_id in self.settings.MODEL_DENY_LIST}
        return [model for model in models if model.id not in denied]

    async def run(self) -> RunResult:
        """
        Run one catalog update.

        Returns:
            RunResult with per-classification model ids and stage timings

        Raises:
            ModelCatalogError: If any stage fails; nothing is persisted then
        """
        timer = PipelineTimer()
        result = RunResult(run_id=uuid4().hex[:12])

        with logging_context(run_id=result.run_id):
            logger.info('run_started', sources=len(self.sources))

            with timer.stage('fetch_sources'):
                records = await self.fetch_sources()
                result.source_records = len(records)

            with timer.stage('deduplicate'):
                deduplicated = deduplicate(records)
                models = self.apply_deny_list(deduplicated)
                result.denied = len(deduplicated) - len(models)

            with timer.stage('load'):
                catalog = self.store.load_catalog()
                hashes = self.store.load_hashes()

            with timer.stage('process'):
                processed: ProcessorResult = await self.processor.process(models, catalog, hashes)

            with timer.stage('save'):
                self.store.save(processed.catalog, processed.hashes)

            result.new_ids = processed.new_ids
            result.changed_ids = processed.changed_ids
            result.unchanged_ids = processed.unchanged_ids
            result.deprecated_ids = processed.deprecated_ids
            result.total_models = len(processed.catalog.models)
            result.total_providers = len(processed.catalog.providers)
            result.completed_at = datetime.now()
            result.processing_time_ms = int(timer.total_ms)
            result.stage_timings = timer.stages.copy()

            logger.info(
                'run_complete',
                new=len(result.new_ids),
                changed=len(result.changed_ids),
                unchanged=len(result.unchanged_ids),
                deprecated=len(result.deprecated_ids),
                **timer.summary(),
            )
            return result
