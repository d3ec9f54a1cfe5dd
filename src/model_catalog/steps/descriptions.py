"""
Description enrichment.

generate_description picks the English description of a new or changed
model, in order of preference:
1. the description reported by the sources
2. the previously stored English description
3. an AI summary of the model's Hugging Face model card

cleanup_descriptions normalizes whitespace of every locale afterwards.
"""

import re

from ..errors import EnrichmentError
from ..logging import get_logger
from ..models.catalog import ProcessedModel
from ..models.model_info import CanonicalModel
from .types import StepContext

logger = get_logger(__name__)

_CODE_BLOCK = re.compile(r'```[\s\S]*?```')
_INLINE_CODE = re.compile(r'`[^`]*`')
_IMAGE = re.compile(r'!\[.*?\]\(.*?\)')
_LINK = re.compile(r'\[([^\]]+)\]\((?:[^)]+)\)')
_HTML_TAG = re.compile(r'<[^>]+>')
_TABLE_ROW = re.compile(r'\|(.+\|)+\n')
_BLANK_LINES = re.compile(r'\n{2,}')

_WHITESPACE = re.compile(r'\s+')
_ZERO_WIDTH = re.compile(r'[\u200B-\u200D\uFEFF]')


def clean_model_card(card: str) -> str:
    """
    Strip a markdown model card down to prose.

    Removes code blocks, inline code, images, HTML tags and table rows;
    links are replaced by their text.
    """
    card = _CODE_BLOCK.sub('', card)
    card = _INLINE_CODE.sub('', card)
    card = _IMAGE.sub('', card)
    card = _LINK.sub(r'\1', card)
    card = _HTML_TAG.sub('', card)
    card = _TABLE_ROW.sub('', card)
    card = _BLANK_LINES.sub('\n', card)
    return card.strip()


async def generate_ai_description(source: CanonicalModel, context: StepContext) -> str | None:
    """
    Summarize the model's Hugging Face card, cached under description-<id>.

    Returns None (and caches it) when no card exists or the card is too
    thin to summarize. Service failures propagate.
    """
    if context.huggingface is None or context.openai is None:
        raise EnrichmentError(
            'AI descriptions require Hugging Face and OpenAI clients',
            context={'model_id': source.id},
        )
    huggingface = context.huggingface
    openai = context.openai

    async def fetch_card() -> str | None:
        return await huggingface.first_model_card(source.aliases)

    async def summarize() -> str | None:
        card = await context.cache.remember(f'huggingface-card-{source.id}', fetch_card)
        if not card:
            logger.info('model_card_missing')
            return None
        logger.info('description_generating')
        return await openai.summarize_model_card(clean_model_card(card), source.id)

    return await context.cache.remember(f'description-{source.id}', summarize)


async def generate_description(
    source: CanonicalModel,
    previous: ProcessedModel | None,
    model: ProcessedModel,
    context: StepContext,
) -> ProcessedModel:
    """
    Set the model's description mapping, "en" first.

    Stored translations are carried over only while the English text they
    were made from is unchanged; otherwise the translation step redoes them.
    """
    previous_descriptions = (previous.description or {}) if previous else {}
    source_description = source.description if source.description.strip() else None

    description = (
        source_description
        or previous_descriptions.get('en')
        or await generate_ai_description(source, context)
    )
    if not description:
        logger.info('description_unavailable')
        return model

    descriptions = {'en': description}
    previous_english = previous_descriptions.get('en')
    if previous_english and clean_description(previous_english) == clean_description(description):
        descriptions = {**previous_descriptions, 'en': description}

    return model.model_copy(update={'description': descriptions})


def clean_description(text: str) -> str:
    """Collapse whitespace runs to one space and drop zero-width characters."""
    return _ZERO_WIDTH.sub('', _WHITESPACE.sub(' ', text)).strip()


async def cleanup_descriptions(
    models: list[ProcessedModel],
    context: StepContext,
) -> list[ProcessedModel]:
    """Normalize every localized description of the batch."""
    cleaned = []
    for model in models:
        if not model.description:
            cleaned.append(model)
            continue
        descriptions = {locale: clean_description(text) for locale, text in model.description.items()}
        cleaned.append(model.model_copy(update={'description': descriptions}))
    return cleaned
