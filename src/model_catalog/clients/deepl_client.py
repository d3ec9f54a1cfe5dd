"""
DeepL translation client.

Translates batches of texts into one target language per request.
"""

from typing import Any

import httpx

from ..errors import ServiceHTTPError, wrap_http_error
from .http import transient_retry

DEEPL_API_URL = 'https://api-free.deepl.com/v2/translate'


class DeepLClient:
    """Async DeepL client."""

    def __init__(
        self,
        api_key: str,
        api_url: str = DEEPL_API_URL,
        timeout: float = 30.0,
    ):
        if not api_key:
            raise ValueError('DEEPL_API_KEY is required for translations')
        self.api_url = api_url
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={'Authorization': f'DeepL-Auth-Key {api_key}'},
        )

    @transient_retry
    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = await self._client.post(self.api_url, json=payload)
        response.raise_for_status()
        return response.json()

    async def translate(self, texts: list[str], target_lang: str) -> list[str]:
        """
        Translate texts, preserving order.

        Args:
            texts: Texts to translate
            target_lang: DeepL target language code (e.g. "DE")

        Returns:
            Translated texts, same length and order as the input

        Raises:
            ServiceHTTPError: If the request fails or the response is malformed
        """
        if not texts:
            return []
        try:
            data = await self._post({'text': texts, 'target_lang': target_lang.upper()})
        except httpx.HTTPError as e:
            raise wrap_http_error('deepl', e, context={'target_lang': target_lang}) from e

        translations = data.get('translations') if isinstance(data, dict) else None
        if not isinstance(translations, list) or len(translations) != len(texts):
            raise ServiceHTTPError(
                'Invalid DeepL response: expected one translation per text',
                context={'service': 'deepl', 'target_lang': target_lang},
            )
        return [item['text'] for item in translations]

    async def close(self) -> None:
        await self._client.aclose()
