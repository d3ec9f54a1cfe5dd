"""
Shared HTTP retry policy for external services.

Transient failures (network errors, timeouts, HTTP 429 and 5xx) are
retried with exponential backoff; everything else fails immediately.
"""

import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential


def is_transient_http_error(exc: BaseException) -> bool:
    """True for errors worth retrying."""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return isinstance(exc, httpx.TransportError)


transient_retry = retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=1, max=30),
    retry=retry_if_exception(is_transient_http_error),
    reraise=True,
)
