"""
Custom exceptions and error handling for the model catalog.

Provides:
- Typed exception hierarchy for different failure modes
- Error context preservation for debugging
- Wrappers translating third-party client errors into the hierarchy

Runs are all-or-nothing: every error below is fatal for the run and is
raised before the catalog or hash map is written.
"""

from typing import Any

import httpx


class ModelCatalogError(Exception):
    """Base exception for all model catalog errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


# =============================================================================
# Client Errors
# =============================================================================


class ClientError(ModelCatalogError):
    """Base class for external service client errors."""

    pass


class OpenAIError(ClientError):
    """Error from OpenAI API calls."""

    pass


class OpenAIRateLimitError(OpenAIError):
    """Rate limit exceeded on OpenAI API."""

    pass


class OpenAIModelError(OpenAIError):
    """Model refused request or returned invalid response."""

    pass


class ServiceHTTPError(ClientError):
    """HTTP failure talking to DeepL, the currency API or Hugging Face."""

    pass


# =============================================================================
# Pipeline Errors
# =============================================================================


class PipelineError(ModelCatalogError):
    """Base class for run-level errors."""

    pass


class ConfigurationError(PipelineError):
    """Required settings or secrets are missing or invalid."""

    pass


class SourceFetchError(PipelineError):
    """A source adapter failed to retrieve or validate upstream data."""

    pass


class EnrichmentError(PipelineError):
    """A per-model, batch, no-change or output-structure step failed."""

    pass


class PersistenceError(PipelineError):
    """The catalog, hash map or cache could not be read or written."""

    pass


# =============================================================================
# Error Handling Utilities
# =============================================================================


def wrap_openai_error(exc: Exception, context: dict[str, Any] | None = None) -> OpenAIError:
    """
    Wrap an OpenAI exception in our typed error hierarchy.

    Args:
        exc: The original exception
        context: Additional context for debugging

    Returns:
        Typed OpenAIError subclass
    """
    error_str = str(exc).lower()
    ctx = context or {}
    ctx['original_error'] = str(exc)
    ctx['error_type'] = type(exc).__name__

    if 'rate limit' in error_str or 'rate_limit' in error_str:
        return OpenAIRateLimitError(
            f"OpenAI rate limit exceeded: {exc}",
            context=ctx,
        )
    elif 'content policy' in error_str or 'refused' in error_str:
        return OpenAIModelError(
            f"OpenAI model refused request: {exc}",
            context=ctx,
        )
    else:
        return OpenAIError(
            f"OpenAI API error: {exc}",
            context=ctx,
        )


def wrap_http_error(
    service: str,
    exc: Exception,
    context: dict[str, Any] | None = None,
) -> ServiceHTTPError:
    """
    Wrap an httpx exception raised while talking to an external service.

    Args:
        service: Short service name ('deepl', 'currency', 'huggingface')
        exc: The original exception
        context: Additional context for debugging

    Returns:
        ServiceHTTPError carrying the status code when there was a response
    """
    ctx = context or {}
    ctx['service'] = service
    ctx['original_error'] = str(exc)
    ctx['error_type'] = type(exc).__name__

    if isinstance(exc, httpx.HTTPStatusError):
        ctx['status_code'] = exc.response.status_code
        return ServiceHTTPError(
            f"{service} returned HTTP {exc.response.status_code}",
            context=ctx,
        )
    return ServiceHTTPError(f"{service} request failed: {exc}", context=ctx)
