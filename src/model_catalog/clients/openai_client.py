"""
OpenAI client wrapper for the model catalog.

Handles:
- Chat completions
- Model card summarization for missing descriptions
- Retry logic with exponential backoff
"""

import os

from openai import AsyncOpenAI
from tenacity import retry, stop_after_attempt, wait_exponential

from ..errors import wrap_openai_error
from ..prompts.describe_model import NO_SUMMARY_MARKER, build_description_prompt


class OpenAIClient:
    """
    Async OpenAI client used to write model descriptions.

    Configuration via environment variables:
    - OPENAI_API_KEY: Required API key
    - OPENAI_CHAT_MODEL: Chat model (default: gpt-4o-mini)
    """

    def __init__(
        self,
        api_key: str | None = None,
        chat_model: str | None = None,
    ):
        """
        Initialize the OpenAI client.

        Args:
            api_key: OpenAI API key (defaults to OPENAI_API_KEY env var)
            chat_model: Model for chat completions (defaults to OPENAI_CHAT_MODEL or gpt-4o-mini)
        """
        self.api_key = api_key or os.getenv('OPENAI_API_KEY')
        if not self.api_key:
            raise ValueError('OPENAI_API_KEY environment variable is required')

        self.chat_model = chat_model or os.getenv('OPENAI_CHAT_MODEL', 'gpt-4o-mini')

        self._client = AsyncOpenAI(api_key=self.api_key)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
    )
    async def chat_completion(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> str:
        """
        Get a chat completion response.

        Args:
            messages: List of message dicts with 'role' and 'content'
            model: Override the default chat model
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response

        Returns:
            The assistant's response text
        """
        response = await self._client.chat.completions.create(
            model=model or self.chat_model,
            messages=messages,  # type: ignore
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content or ''

    async def summarize_model_card(self, model_card: str, model_id: str) -> str | None:
        """
        Summarize a model card into a short listing description.

        Args:
            model_card: Cleaned model card text
            model_id: Model the card belongs to (error context only)

        Returns:
            The summary, or None when the model declined to summarize

        Raises:
            OpenAIError: If the API call keeps failing after retries
        """
        try:
            summary = await self.chat_completion(
                build_description_prompt(model_card),
                max_tokens=200,
            )
        except Exception as e:
            raise wrap_openai_error(e, context={'model_id': model_id}) from e

        summary = summary.strip()
        if not summary or summary == NO_SUMMARY_MARKER:
            return None
        return summary

    async def close(self):
        """Close the client connection."""
        await self._client.close()
