"""
Currency exchange rate client.

Uses the free currency API published on jsDelivr: a table of known
currency codes and, per source currency, a table of rates.
"""

from decimal import Decimal

import httpx

from ..errors import ServiceHTTPError, wrap_http_error
from .http import transient_retry

CURRENCY_API_URL = 'https://cdn.jsdelivr.net/npm/@fawazahmed0/currency-api@latest/v1'


class CurrencyClient:
    """Async exchange rate client."""

    def __init__(self, api_url: str = CURRENCY_API_URL, timeout: float = 30.0):
        self.api_url = api_url.rstrip('/')
        self._client = httpx.AsyncClient(timeout=timeout)

    @transient_retry
    async def _get(self, path: str) -> dict:
        response = await self._client.get(f'{self.api_url}/{path}')
        response.raise_for_status()
        return response.json()

    async def currencies(self) -> dict[str, str]:
        """Known currency codes mapped to their names."""
        try:
            return await self._get('currencies.json')
        except httpx.HTTPError as e:
            raise wrap_http_error('currency', e) from e

    async def exchange_rate(self, source: str, target: str) -> str:
        """
        Rate to multiply a `source` amount by to get a `target` amount.

        Returns:
            The rate as a decimal string

        Raises:
            ServiceHTTPError: If the request fails or the rate is unknown
        """
        source = source.lower()
        target = target.lower()
        try:
            table = await self._get(f'currencies/{source}.json')
        except httpx.HTTPError as e:
            raise wrap_http_error('currency', e, context={'source': source}) from e

        rate = table.get(source, {}).get(target)
        if not rate:
            raise ServiceHTTPError(
                f'Unable to get exchange rate from {source} to {target}',
                context={'service': 'currency', 'source': source, 'target': target},
            )
        return str(Decimal(str(rate)))

    async def close(self) -> None:
        await self._client.aclose()
