"""
Model-level limit summary.
"""

from ..models.catalog import ProcessedModel
from ..models.model_info import CanonicalModel
from .types import StepContext

SUMMARY_FIELDS = ('context_length', 'input_limit', 'output_limit')


async def generate_summary_information(
    source: CanonicalModel,
    previous: ProcessedModel | None,
    model: ProcessedModel,
    context: StepContext,
) -> ProcessedModel:
    """
    Set context_length / input_limit / output_limit from the offerings.

    Each is the minimum positive value across providers, so the model
    never advertises more than every provider supports. Unknown when no
    provider reports a value.
    """
    update = {}
    for field in SUMMARY_FIELDS:
        values = [getattr(p, field) for p in model.providers if (getattr(p, field) or 0) > 0]
        update[field] = min(values) if values else None
    return model.model_copy(update=update)
