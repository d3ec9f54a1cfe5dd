"""
Pricing enrichment.

Source offerings carry one price in one currency. The catalog stores, per
offering, a currency -> price mapping: the source price plus the price
converted into every configured additional currency using the daily
exchange rate. Amounts are decimal strings and all arithmetic uses
Decimal.
"""

from datetime import datetime, timezone
from decimal import Decimal

from ..errors import EnrichmentError
from ..logging import get_logger
from ..models.catalog import ProcessedModel, ProcessedProviderOffering
from ..models.model_info import CanonicalModel, ProviderOffering, ProviderPrice
from .types import StepContext

logger = get_logger(__name__)


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


async def _currency_table(context: StepContext) -> dict[str, str]:
    if context.currency is None:
        raise EnrichmentError('Currency conversion requires a currency client')
    client = context.currency
    return await context.cache.remember(f'currencyTable_{_today()}', client.currencies)


async def exchange_rate(source: str, target: str, context: StepContext) -> str:
    """
    Daily exchange rate from source to target currency, cached per day.

    Raises:
        EnrichmentError: If either currency is unknown
    """
    source = source.lower()
    target = target.lower()

    async def fetch_rate() -> str:
        table = await _currency_table(context)
        if source not in table:
            raise EnrichmentError(f'Unknown source currency: {source}', context={'currency': source})
        if target not in table:
            raise EnrichmentError(f'Unknown target currency: {target}', context={'currency': target})
        return await context.currency.exchange_rate(source, target)

    return await context.cache.remember(
        f'conversionRate_{source}_{target}_{_today()}',
        fetch_rate,
    )


def multiply(amount: str, rate: str) -> str:
    """Decimal product as a plain (non-scientific) decimal string."""
    product = (Decimal(amount) * Decimal(rate)).normalize()
    return format(product, 'f')


async def convert_price(
    price: ProviderPrice,
    currencies: list[str],
    context: StepContext,
) -> dict[str, ProviderPrice]:
    """
    Build the currency -> price mapping for one source price.

    The source currency is always present. Additional currencies only get
    an entry when at least one of input/output is known.
    """
    source_currency = price.currency
    prices = {source_currency: price.model_copy()}

    for target in currencies:
        if target.lower() == source_currency.lower():
            continue
        converted: dict[str, str] = {}
        for kind in ('input', 'output'):
            amount = getattr(price, kind)
            if amount:
                rate = await exchange_rate(source_currency, target, context)
                converted[kind] = multiply(amount, rate)
        if converted:
            prices[target] = ProviderPrice(currency=target, **converted)

    return prices


async def _processed_offering(
    offering: ProviderOffering,
    context: StepContext,
) -> ProcessedProviderOffering:
    prices = {}
    if offering.price is not None:
        prices = await convert_price(
            offering.price,
            context.settings.ADDITIONAL_CURRENCIES,
            context,
        )
    return ProcessedProviderOffering(
        provider_id=offering.provider_id,
        provider_name=offering.provider_name,
        context_length=offering.context_length,
        input_limit=offering.input_limit,
        output_limit=offering.output_limit,
        price=prices,
    )


async def generate_initial_pricing(
    source: CanonicalModel,
    previous: ProcessedModel | None,
    model: ProcessedModel,
    context: StepContext,
) -> ProcessedModel:
    """Build the model's processed offerings with prices in every configured currency."""
    providers = [await _processed_offering(offering, context) for offering in source.providers]
    logger.debug('pricing_generated', provider_count=len(providers))
    return model.model_copy(update={'providers': providers})


async def refresh_pricing(
    source: CanonicalModel,
    previous: ProcessedModel,
    context: StepContext,
) -> ProcessedModel:
    """
    Recompute converted prices of an unchanged model with today's rates.

    Offerings keep their stored limits and order; only prices change.
    """
    source_prices = {
        offering.provider_id: offering.price
        for offering in source.providers
        if offering.price is not None
    }

    providers = []
    for offering in previous.providers:
        price = source_prices.get(offering.provider_id)
        if price is None:
            providers.append(offering)
            continue
        prices = await convert_price(price, context.settings.ADDITIONAL_CURRENCIES, context)
        providers.append(offering.model_copy(update={'price': prices}))

    return previous.model_copy(update={'providers': providers})
