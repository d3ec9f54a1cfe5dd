"""
Hugging Face model card client.

Model ids double as Hugging Face repository ids often enough that trying
each alias of a model is a cheap way to find its README.
"""

import httpx

from ..errors import wrap_http_error
from ..logging import get_logger
from .http import transient_retry

logger = get_logger(__name__)

HUGGINGFACE_URL = 'https://huggingface.co'


class HuggingFaceClient:
    """Async client fetching raw model cards."""

    def __init__(self, base_url: str = HUGGINGFACE_URL, timeout: float = 30.0):
        self.base_url = base_url.rstrip('/')
        self._client = httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    @transient_retry
    async def _get_card(self, repo_id: str) -> httpx.Response:
        response = await self._client.get(
            f'{self.base_url}/{repo_id}/raw/main/README.md',
            headers={'Content-Type': 'text/plain'},
        )
        if response.status_code >= 500 or response.status_code == 429:
            response.raise_for_status()
        return response

    async def fetch_model_card(self, repo_id: str) -> str | None:
        """
        Fetch the README of one repository.

        Returns:
            The card text, or None if the repository has no readable card

        Raises:
            ServiceHTTPError: On network failures or persistent server errors
        """
        try:
            response = await self._get_card(repo_id)
        except httpx.HTTPError as e:
            raise wrap_http_error('huggingface', e, context={'repo_id': repo_id}) from e

        if response.status_code != 200 or not response.text.strip():
            return None
        return response.text

    async def first_model_card(self, aliases: list[str]) -> str | None:
        """Return the first non-empty card found among the aliases."""
        for alias in aliases:
            card = await self.fetch_model_card(alias)
            if card:
                logger.debug('model_card_found', alias=alias)
                return card
        return None

    async def close(self) -> None:
        await self._client.aclose()
