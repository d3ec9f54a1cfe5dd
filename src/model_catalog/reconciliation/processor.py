"""
Change detection and catalog assembly.

Given the deduplicated source models, the previously persisted catalog and
the persisted content hashes, the processor:
1. Flags previously known models that no source reports as deprecated
2. Hashes every source model and classifies it as new, changed or unchanged
3. Runs the per-model enrichment steps for new/changed models only
4. Runs the batch steps once over all new/changed models
5. Assembles the catalog (sorted by id) and runs the output-structure steps

The hash map passed in is treated as a read-only snapshot; updated hashes
are returned separately so the caller can persist them only when the
whole run succeeded. Any step failure raises EnrichmentError and nothing is
returned.
"""

import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable

from ..errors import EnrichmentError
from ..logging import get_logger, logging_context
from ..models.catalog import CatalogStructure, HashMap, ProcessedModel
from ..models.model_info import CanonicalModel
from ..steps.types import (
    BatchStep,
    ModelStep,
    NoChangeStep,
    OutputStructureStep,
    StepContext,
    step_name,
)

logger = get_logger(__name__)


class ChangeStatus(str, Enum):
    """Per-run classification of a model."""

    NEW = 'new'
    CHANGED = 'changed'
    UNCHANGED = 'unchanged'
    MISSING = 'missing'


@dataclass
class ProcessingSteps:
    """The configured enrichment steps, in execution order per kind."""

    new_and_changed: list[ModelStep] = field(default_factory=list)
    batch: list[BatchStep] = field(default_factory=list)
    no_change: list[NoChangeStep] = field(default_factory=list)
    output_structure: list[OutputStructureStep] = field(default_factory=list)


@dataclass
class ProcessorResult:
    """Outcome of one processor pass, ready to be persisted."""

    catalog: CatalogStructure
    hashes: HashMap
    classifications: dict[str, ChangeStatus] = field(default_factory=dict)

    def ids_with(self, status: ChangeStatus) -> list[str]:
        return sorted(i for i, s in self.classifications.items() if s == status)

    @property
    def new_ids(self) -> list[str]:
        return self.ids_with(ChangeStatus.NEW)

    @property
    def changed_ids(self) -> list[str]:
        return self.ids_with(ChangeStatus.CHANGED)

    @property
    def unchanged_ids(self) -> list[str]:
        return self.ids_with(ChangeStatus.UNCHANGED)

    @property
    def deprecated_ids(self) -> list[str]:
        return self.ids_with(ChangeStatus.MISSING)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'total_models': len(self.catalog.models),
            'total_providers': len(self.catalog.providers),
            'new': len(self.new_ids),
            'changed': len(self.changed_ids),
            'unchanged': len(self.unchanged_ids),
            'deprecated': len(self.deprecated_ids),
        }


def canonical_serialization(model: CanonicalModel) -> str:
    """
    Serialize a source model so that equal content gives equal text.

    Aliases are sorted, offerings are sorted by provider id, keys are
    sorted and unknown (None) values are dropped.
    """
    data = model.model_dump(mode='json', by_alias=True, exclude_none=True)
    data['aliases'] = sorted(model.aliases)
    for key in ('providers', 'freeProviders'):
        data[key] = sorted(data.get(key, []), key=lambda offering: offering['providerId'])
    return json.dumps(data, sort_keys=True, separators=(',', ':'), ensure_ascii=False)


def content_hash(model: CanonicalModel) -> str:
    """SHA-256 of the canonical serialization of a source model."""
    return hashlib.sha256(canonical_serialization(model).encode('utf-8')).hexdigest()


class CatalogProcessor:
    """
    Reconciles fresh source models against the persisted catalog.

    Usage:
        processor = CatalogProcessor(steps, context)
        result = await processor.process(models, catalog, hashes)
    """

    def __init__(
        self,
        steps: ProcessingSteps,
        context: StepContext,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the processor.

        Args:
            steps: Enrichment steps to apply
            context: Collaborators handed to every step
            clock: Source of the import timestamp (defaults to UTC now)
        """
        self.steps = steps
        self.context = context
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def process(
        self,
        sources: list[CanonicalModel],
        catalog: CatalogStructure,
        hashes: HashMap,
    ) -> ProcessorResult:
        """
        Run one reconciliation pass.

        Args:
            sources: Deduplicated source models
            catalog: The previously persisted catalog
            hashes: The previously persisted content hashes (not modified)

        Returns:
            ProcessorResult with the assembled catalog and updated hashes

        Raises:
            EnrichmentError: If any step fails
        """
        imported_at = self.clock()
        previous_by_id = {model.id: model for model in catalog.models}
        source_ids = {model.id for model in sources}
        updated_hashes: HashMap = dict(hashes)
        classifications: dict[str, ChangeStatus] = {}

        deprecated: list[ProcessedModel] = []
        for previous in catalog.models:
            if previous.id in source_ids:
                continue
            logger.info('model_deprecated', model_id=previous.id)
            deprecated.append(previous.model_copy(update={'deprecated': True}))
            classifications[previous.id] = ChangeStatus.MISSING

        processed: list[ProcessedModel] = []
        unchanged: list[ProcessedModel] = []

        for source in sources:
            with logging_context(model_id=source.id):
                new_hash = content_hash(source)
                previous = previous_by_id.get(source.id)

                if previous is not None and hashes.get(source.id) == new_hash:
                    logger.debug('model_unchanged')
                    classifications[source.id] = ChangeStatus.UNCHANGED
                    unchanged.append(await self._process_unchanged(source, previous))
                    continue

                status = ChangeStatus.NEW if previous is None else ChangeStatus.CHANGED
                logger.info('model_processing', change=status.value)
                classifications[source.id] = status
                updated_hashes[source.id] = new_hash
                processed.append(
                    await self._process_new_or_changed(source, previous, imported_at)
                )

        for batch_step in self.steps.batch:
            processed = await self._guard(
                batch_step,
                None,
                lambda: batch_step(processed, self.context),
            )

        assembled: dict[str, ProcessedModel] = {}
        for model in [*processed, *unchanged, *deprecated, *catalog.models]:
            assembled.setdefault(model.id, model)

        structure = catalog.model_copy(
            update={'models': sorted(assembled.values(), key=lambda model: model.id)}
        )

        for output_step in self.steps.output_structure:
            structure = await self._guard(
                output_step,
                None,
                lambda: output_step(structure, self.context),
            )

        result = ProcessorResult(
            catalog=structure,
            hashes=updated_hashes,
            classifications=classifications,
        )
        logger.info('processing_complete', **result.to_dict())
        return result

    async def _process_unchanged(
        self,
        source: CanonicalModel,
        previous: ProcessedModel,
    ) -> ProcessedModel:
        model = previous.model_copy(update={'deprecated': False})
        for step in self.steps.no_change:
            model = await self._guard(
                step,
                source.id,
                lambda: step(source, model, self.context),
            )
        return model

    async def _process_new_or_changed(
        self,
        source: CanonicalModel,
        previous: ProcessedModel | None,
        imported_at: datetime,
    ) -> ProcessedModel:
        model = ProcessedModel.from_source(source, imported_at)
        for step in self.steps.new_and_changed:
            model = await self._guard(
                step,
                source.id,
                lambda: step(source, previous, model, self.context),
            )
        return model

    async def _guard(
        self,
        step: object,
        model_id: str | None,
        call: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Run a step, converting any failure into a fatal EnrichmentError."""
        name = step_name(step)
        try:
            return await call()
        except EnrichmentError:
            raise
        except Exception as e:
            target = f"model {model_id}" if model_id else 'all models'
            logger.error('step_failed', step=name, error=str(e), error_type=type(e).__name__)
            raise EnrichmentError(
                f"Step {name} failed for {target}: {e}",
                context={'step': name, 'model_id': model_id},
            ) from e
