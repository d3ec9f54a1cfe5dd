"""
Description translations.

Batch step translating the English description of every new or changed
model into each additional locale that is still missing. Texts are
grouped by locale, deduplicated and sent to DeepL in chunks; each chunk's
result is cached.
"""

from ..errors import EnrichmentError
from ..logging import get_logger
from ..models.catalog import ProcessedModel
from .types import StepContext

logger = get_logger(__name__)

TRANSLATION_CHUNK_SIZE = 50


async def _translate_chunk(chunk: list[str], target_lang: str, context: StepContext) -> list[str]:
    deepl = context.deepl

    async def fetch() -> list[str]:
        logger.info('translations_fetching', target_lang=target_lang, text_count=len(chunk))
        return await deepl.translate(chunk, target_lang)

    return await context.cache.remember(f"deepl_{target_lang}_{'|'.join(chunk)}", fetch)


async def translate_texts(texts: list[str], locale: str, context: StepContext) -> list[str]:
    """
    Translate texts into one locale, preserving input order.

    Each distinct text is translated once.
    """
    unique = list(dict.fromkeys(texts))
    logger.debug('translations_deduplicated', total=len(texts), unique=len(unique))

    translated: list[str] = []
    for start in range(0, len(unique), TRANSLATION_CHUNK_SIZE):
        chunk = unique[start:start + TRANSLATION_CHUNK_SIZE]
        translated.extend(await _translate_chunk(chunk, locale.upper(), context))

    by_text = dict(zip(unique, translated))
    return [by_text[text] for text in texts]


async def generate_description_translations(
    models: list[ProcessedModel],
    context: StepContext,
) -> list[ProcessedModel]:
    """Fill missing locales of every description that has an English text."""
    locales = context.settings.ADDITIONAL_LOCALES
    tasks_by_locale: dict[str, list[tuple[str, str]]] = {}
    for model in models:
        english = (model.description or {}).get('en')
        if not english:
            continue
        for locale in locales:
            if not model.description.get(locale):
                tasks_by_locale.setdefault(locale, []).append((model.id, english))

    if not tasks_by_locale:
        return models
    if context.deepl is None:
        raise EnrichmentError('Translations require a DeepL client', context={'locales': locales})

    translations: dict[tuple[str, str], str] = {}
    for locale, tasks in tasks_by_locale.items():
        texts = await translate_texts([text for _, text in tasks], locale, context)
        for (model_id, _), text in zip(tasks, texts):
            translations[(model_id, locale)] = text

    result = []
    for model in models:
        added = {
            locale: translations[(model.id, locale)]
            for locale in locales
            if translations.get((model.id, locale))
        }
        if added:
            model = model.model_copy(update={'description': {**model.description, **added}})
        result.append(model)
    return result
