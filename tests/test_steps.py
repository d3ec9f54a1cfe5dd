"""
Tests for the enrichment steps with mocked service clients.

Tests cover:
- generate_description: source / previous / AI fallback, translation carry-over
- clean_model_card and cleanup_descriptions text normalization
- generate_initial_pricing and refresh_pricing currency conversion
- generate_summary_information limit summary
- generate_description_translations grouping, dedup and chunking
- ProviderDirectoryStep directory extraction with an injected name table

Run with: pytest tests/test_steps.py -v

No API keys required: all clients are mocked.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import make_model, make_offering, make_processed

from model_catalog.errors import EnrichmentError
from model_catalog.models import (
    CatalogStructure,
    ProcessedModel,
    ProcessedProviderOffering,
    ProviderInformation,
    ProviderPrice,
)
from model_catalog.steps.descriptions import (
    clean_description,
    clean_model_card,
    cleanup_descriptions,
    generate_description,
)
from model_catalog.steps.pricing import generate_initial_pricing, multiply, refresh_pricing
from model_catalog.steps.providers import ProviderDirectoryStep
from model_catalog.steps.summary import generate_summary_information
from model_catalog.steps.translations import (
    TRANSLATION_CHUNK_SIZE,
    generate_description_translations,
)


# =============================================================================
# Fixtures
# =============================================================================


def _work_in_progress(source) -> ProcessedModel:
    return ProcessedModel.from_source(source)


@pytest.fixture
def ai_clients(step_context):
    """Attach mocked Hugging Face and OpenAI clients to the step context."""
    huggingface = MagicMock()
    huggingface.first_model_card = AsyncMock(
        return_value="# Model\n```python\nimport x\n```\nA [great](https://x.y) model."
    )
    openai = MagicMock()
    openai.summarize_model_card = AsyncMock(return_value="A compact chat model.")
    step_context.huggingface = huggingface
    step_context.openai = openai
    return huggingface, openai


@pytest.fixture
def currency_client(step_context):
    """Attach a mocked currency client quoting 1 USD = 0.9 EUR."""
    client = MagicMock()
    client.currencies = AsyncMock(return_value={"usd": "US Dollar", "eur": "Euro"})
    client.exchange_rate = AsyncMock(return_value="0.9")
    step_context.currency = client
    return client


@pytest.fixture
def deepl_client(step_context):
    """Attach a mocked DeepL client that prefixes texts with the language."""
    client = MagicMock()
    client.translate = AsyncMock(side_effect=lambda texts, lang: [f"{lang}:{t}" for t in texts])
    step_context.deepl = client
    return client


# =============================================================================
# Descriptions
# =============================================================================


class TestGenerateDescription:
    """Test description selection."""

    @pytest.mark.asyncio
    async def test_source_description_wins(self, step_context, ai_clients):
        source = make_model("m", description="From the source")

        model = await generate_description(source, None, _work_in_progress(source), step_context)

        assert model.description == {"en": "From the source"}
        ai_clients[1].summarize_model_card.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_previous_english_reused_with_translations(self, step_context, ai_clients):
        source = make_model("m", description="   ")
        previous = make_processed("m", description={"en": "Stored", "de": "Gespeichert"})

        model = await generate_description(source, previous, _work_in_progress(source), step_context)

        assert model.description == {"en": "Stored", "de": "Gespeichert"}

    @pytest.mark.asyncio
    async def test_new_english_drops_stale_translations(self, step_context):
        source = make_model("m", description="Rewritten text")
        previous = make_processed("m", description={"en": "Old text", "de": "Alter Text"})

        model = await generate_description(source, previous, _work_in_progress(source), step_context)

        assert model.description == {"en": "Rewritten text"}

    @pytest.mark.asyncio
    async def test_ai_fallback_is_cached(self, step_context, ai_clients):
        huggingface, openai = ai_clients
        source = make_model("m", aliases=["org/m"])

        first = await generate_description(source, None, _work_in_progress(source), step_context)
        second = await generate_description(source, None, _work_in_progress(source), step_context)

        assert first.description == second.description == {"en": "A compact chat model."}
        huggingface.first_model_card.assert_awaited_once_with(source.aliases)
        openai.summarize_model_card.assert_awaited_once()
        card_sent = openai.summarize_model_card.await_args.args[0]
        assert "import x" not in card_sent
        assert "A great model." in card_sent

    @pytest.mark.asyncio
    async def test_no_card_leaves_description_unset(self, step_context, ai_clients):
        huggingface, openai = ai_clients
        huggingface.first_model_card.return_value = None
        source = make_model("m")

        model = await generate_description(source, None, _work_in_progress(source), step_context)

        assert model.description is None
        openai.summarize_model_card.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ai_fallback_without_clients_fails(self, step_context):
        source = make_model("m")

        with pytest.raises(EnrichmentError):
            await generate_description(source, None, _work_in_progress(source), step_context)


class TestTextCleanup:
    """Test model card and description normalization."""

    def test_clean_model_card(self):
        card = (
            "# Title\n\n\n"
            "![logo](logo.png)\n"
            "See the [paper](https://arxiv.org) and `code`.\n"
            "<div align='center'>Centered</div>\n"
            "| a | b |\n"
            "| 1 | 2 |\n"
            "```bash\npip install x\n```\n"
            "End."
        )

        cleaned = clean_model_card(card)

        assert cleaned == "# Title\nSee the paper and .\nCentered\nEnd."

    def test_clean_description(self):
        assert clean_description("  Hello\n\n  world\u200b\ufeff ") == "Hello world"

    @pytest.mark.asyncio
    async def test_cleanup_descriptions_all_locales(self, step_context):
        models = [
            make_processed("a", description={"en": "Two  spaces", "de": "Zwei\nZeilen"}),
            make_processed("b"),
        ]

        cleaned = await cleanup_descriptions(models, step_context)

        assert cleaned[0].description == {"en": "Two spaces", "de": "Zwei Zeilen"}
        assert cleaned[1].description is None


# =============================================================================
# Pricing
# =============================================================================


class TestPricing:
    """Test per-currency pricing."""

    def test_multiply_is_plain_decimal(self):
        assert multiply("1.00", "0.9") == "0.9"
        assert multiply("0.0000001", "1") == "0.0000001"
        assert multiply("100", "1.5") == "150"

    @pytest.mark.asyncio
    async def test_initial_pricing_converts(self, step_context, currency_client):
        source = make_model("m", providers=[make_offering("openai", input_price="1.00", output_price="2.00")])

        model = await generate_initial_pricing(source, None, _work_in_progress(source), step_context)

        prices = model.providers[0].price
        assert prices["usd"] == ProviderPrice(currency="usd", input="1.00", output="2.00")
        assert prices["eur"] == ProviderPrice(currency="eur", input="0.9", output="1.8")
        currency_client.exchange_rate.assert_awaited_once_with("usd", "eur")

    @pytest.mark.asyncio
    async def test_same_currency_not_converted(self, step_context, currency_client):
        step_context.settings.ADDITIONAL_CURRENCIES = ["USD"]
        source = make_model("m")

        model = await generate_initial_pricing(source, None, _work_in_progress(source), step_context)

        assert list(model.providers[0].price) == ["usd"]
        currency_client.exchange_rate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unpriced_offering_kept(self, step_context, currency_client):
        source = make_model("m", providers=[make_offering("openai", currency=None, context_length=8000)])

        model = await generate_initial_pricing(source, None, _work_in_progress(source), step_context)

        assert model.providers[0].price == {}
        assert model.providers[0].context_length == 8000

    @pytest.mark.asyncio
    async def test_unknown_currency_fails(self, step_context, currency_client):
        step_context.settings.ADDITIONAL_CURRENCIES = ["xyz"]
        source = make_model("m")

        with pytest.raises(EnrichmentError, match="Unknown target currency"):
            await generate_initial_pricing(source, None, _work_in_progress(source), step_context)

    @pytest.mark.asyncio
    async def test_refresh_pricing_updates_rates_only(self, step_context, currency_client):
        currency_client.exchange_rate.return_value = "0.5"
        source = make_model("m", providers=[make_offering("openai", input_price="1.00", output_price="2.00")])
        previous = make_processed(
            "m",
            providers=[
                ProcessedProviderOffering(
                    provider_id="openai",
                    context_length=4000,
                    price={"usd": ProviderPrice(currency="usd", input="1.00", output="2.00")},
                )
            ],
        )

        model = await refresh_pricing(source, previous, step_context)

        offering = model.providers[0]
        assert offering.context_length == 4000
        assert offering.price["eur"] == ProviderPrice(currency="eur", input="0.5", output="1")


# =============================================================================
# Summary
# =============================================================================


class TestSummaryInformation:
    """Test model-level limits."""

    @pytest.mark.asyncio
    async def test_minimum_positive_values(self, step_context):
        model = make_processed(
            "m",
            providers=[
                ProcessedProviderOffering(provider_id="a", context_length=128000, output_limit=4096),
                ProcessedProviderOffering(provider_id="b", context_length=32000),
            ],
        )

        result = await generate_summary_information(make_model("m"), None, model, step_context)

        assert result.context_length == 32000
        assert result.output_limit == 4096
        assert result.input_limit is None

    @pytest.mark.asyncio
    async def test_no_providers_clears_limits(self, step_context):
        model = make_processed("m", providers=[], context_length=1000)

        result = await generate_summary_information(make_model("m"), None, model, step_context)

        assert result.context_length is None


# =============================================================================
# Translations
# =============================================================================


class TestTranslations:
    """Test batch translation."""

    @pytest.mark.asyncio
    async def test_translates_missing_locales_once_per_text(self, step_context, deepl_client):
        models = [
            make_processed("a", description={"en": "Hello"}),
            make_processed("b", description={"en": "Hello"}),
            make_processed("c", description={"en": "World", "de": "Welt"}),
            make_processed("d"),
        ]

        result = await generate_description_translations(models, step_context)

        deepl_client.translate.assert_awaited_once_with(["Hello"], "DE")
        assert result[0].description == {"en": "Hello", "de": "DE:Hello"}
        assert result[1].description == {"en": "Hello", "de": "DE:Hello"}
        assert result[2].description == {"en": "World", "de": "Welt"}
        assert result[3].description is None

    @pytest.mark.asyncio
    async def test_chunks_of_fifty(self, step_context, deepl_client):
        count = TRANSLATION_CHUNK_SIZE * 2 + 20
        models = [make_processed(f"m{i}", description={"en": f"Text {i}"}) for i in range(count)]

        result = await generate_description_translations(models, step_context)

        sizes = [len(call.args[0]) for call in deepl_client.translate.await_args_list]
        assert sizes == [50, 50, 20]
        assert result[-1].description["de"] == f"DE:Text {count - 1}"

    @pytest.mark.asyncio
    async def test_chunks_are_cached(self, step_context, deepl_client):
        models = [make_processed("a", description={"en": "Hello"})]

        await generate_description_translations(models, step_context)
        await generate_description_translations(models, step_context)

        deepl_client.translate.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_nothing_to_translate_needs_no_client(self, step_context):
        models = [make_processed("a", description={"en": "Hi", "de": "Hallo"})]

        assert await generate_description_translations(models, step_context) == models

    @pytest.mark.asyncio
    async def test_missing_client_fails(self, step_context):
        with pytest.raises(EnrichmentError):
            await generate_description_translations(
                [make_processed("a", description={"en": "Hi"})],
                step_context,
            )


# =============================================================================
# Provider directory
# =============================================================================


def _structure_with_offerings(*offerings, providers=()) -> CatalogStructure:
    return CatalogStructure(
        models=[make_processed("m", providers=list(offerings))],
        providers=list(providers),
    )


class TestProviderDirectory:
    """Test provider directory extraction."""

    @pytest.mark.asyncio
    async def test_collects_names_and_strips_offerings(self, step_context):
        structure = _structure_with_offerings(
            ProcessedProviderOffering(provider_id="together", provider_name="Together AI"),
            ProcessedProviderOffering(provider_id="openrouter"),
            ProcessedProviderOffering(provider_id="mystery"),
        )

        result = await ProviderDirectoryStep()(structure, step_context)

        assert result.providers == [
            ProviderInformation(id="openrouter", name="OpenRouter"),
            ProviderInformation(id="together", name="Together AI"),
        ]
        assert all(o.provider_name is None for o in result.models[0].providers)

    @pytest.mark.asyncio
    async def test_existing_entries_win(self, step_context):
        structure = _structure_with_offerings(
            ProcessedProviderOffering(provider_id="together", provider_name="Together AI"),
            providers=[ProviderInformation(id="together", name="Together")],
        )

        result = await ProviderDirectoryStep()(structure, step_context)

        assert result.providers == [ProviderInformation(id="together", name="Together")]

    @pytest.mark.asyncio
    async def test_injected_name_table(self, step_context):
        structure = _structure_with_offerings(
            ProcessedProviderOffering(provider_id="openrouter"),
            ProcessedProviderOffering(provider_id="mystery"),
        )

        result = await ProviderDirectoryStep({"mystery": "Mystery Labs"})(structure, step_context)

        assert result.providers == [ProviderInformation(id="mystery", name="Mystery Labs")]
