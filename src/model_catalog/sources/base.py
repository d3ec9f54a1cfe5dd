"""
Shared plumbing for source adapters.

A source adapter is an async callable taking the run settings and
returning one CanonicalModel per upstream model, each with exactly one
provider offering. Adapters drop ids rejected by their id filter before
normalizing anything.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Protocol

import httpx

from ..clients.http import transient_retry
from ..config import CatalogSettings
from ..errors import SourceFetchError
from ..logging import get_logger
from ..models.model_info import CanonicalModel

logger = get_logger(__name__)


class ModelSource(Protocol):
    def __call__(self, settings: CatalogSettings) -> Awaitable[list[CanonicalModel]]: ...


@transient_retry
async def _get_json(client: httpx.AsyncClient, url: str, headers: dict[str, str]) -> Any:
    response = await client.get(url, headers=headers)
    response.raise_for_status()
    return response.json()


async def fetch_json(
    source: str,
    url: str,
    headers: dict[str, str] | None = None,
    timeout: float = 30.0,
    http_client: httpx.AsyncClient | None = None,
) -> Any:
    """
    GET a JSON document for a source adapter.

    Args:
        source: Source name, for errors and logs
        url: Document URL
        headers: Extra request headers
        timeout: Request timeout in seconds (ignored with http_client)
        http_client: Client to use instead of a short-lived one

    Returns:
        The decoded JSON payload

    Raises:
        SourceFetchError: If the request fails after retries or the body is not JSON
    """
    client = http_client or httpx.AsyncClient(timeout=timeout)
    try:
        payload = await _get_json(client, url, headers or {})
    except httpx.HTTPError as e:
        raise SourceFetchError(
            f"Error fetching {source} models: {e}",
            context={'source': source, 'url': url},
        ) from e
    except ValueError as e:
        raise SourceFetchError(
            f"Invalid {source} response: body is not JSON",
            context={'source': source, 'url': url},
        ) from e
    finally:
        if http_client is None:
            await client.aclose()

    logger.debug('source_payload_fetched', source=source, url=url)
    return payload


def positive_or_none(value: int | float | None) -> int | None:
    """Token limits: zero, negative and missing values all mean unknown."""
    if value is None or value <= 0:
        return None
    return int(value)


def per_million(price_per_token: str | None) -> str | None:
    """
    Convert a per-token price string into a per-million-tokens decimal string.

    "0.00000015" -> "0.15"; any zero -> "0"; None or "" -> None.

    Raises:
        ValueError: If the price is not a finite decimal number
    """
    if not price_per_token:
        return None
    try:
        amount = Decimal(price_per_token)
    except InvalidOperation as e:
        raise ValueError(f"Invalid price: {price_per_token!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Invalid price: {price_per_token!r}")
    if amount == 0:
        return '0'
    return format((amount * 1_000_000).normalize(), 'f')
