"""
Retrying HTTP requests with httpx.

Status codes in `retryable_status_codes` and transport failures (connection
errors, timeouts) are retried with backoff; any other error status stops
immediately.
"""

import logging
from collections.abc import Collection

import httpx

from .exceptions import HTTPStatusError, NonRetryableError
from .retry import BackoffConfig, BackoffRunner

logger = logging.getLogger(__name__)

DEFAULT_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def _prepare_config(config: BackoffConfig | None) -> BackoffConfig:
    return config if config is not None else BackoffConfig.conservative()


def check_response(
    response: httpx.Response,
    retryable_status_codes: Collection[int] = DEFAULT_RETRYABLE_STATUS_CODES,
) -> httpx.Response:
    """
    Convert an error status into an `HTTPStatusError`.

    Returns:
        The response unchanged when its status is below 400

    Raises:
        HTTPStatusError: Retryable if the status is in `retryable_status_codes`,
            non-retryable otherwise
    """
    if response.status_code < 400:
        return response

    retryable = response.status_code in retryable_status_codes
    if not retryable:
        logger.debug(f"Status {response.status_code} is not retryable")
    raise HTTPStatusError(
        f"HTTP error: {response.reason_phrase}",
        status_code=response.status_code,
        response=response,
        retryable=retryable,
    )


def request_with_retry(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    config: BackoffConfig | None = None,
    retryable_status_codes: Collection[int] = DEFAULT_RETRYABLE_STATUS_CODES,
    **kwargs,
) -> httpx.Response:
    """
    Send a request with `httpx.Client`, retrying transient failures.

    Args:
        client: httpx client to send with
        method: HTTP method
        url: Request URL
        config: Retry configuration (default: BackoffConfig.conservative())
        retryable_status_codes: Statuses that trigger a retry
        **kwargs: Passed through to `client.request`

    Returns:
        The first response with a status below 400
    """
    runner = BackoffRunner(_prepare_config(config))

    def send() -> httpx.Response:
        try:
            response = client.request(method, url, **kwargs)
        except httpx.UnsupportedProtocol as e:
            # A bad scheme will not fix itself on retry.
            raise NonRetryableError(f"Unsupported protocol: {e}") from e
        return check_response(response, retryable_status_codes)

    return runner.run_sync(send)


async def async_request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    config: BackoffConfig | None = None,
    retryable_status_codes: Collection[int] = DEFAULT_RETRYABLE_STATUS_CODES,
    **kwargs,
) -> httpx.Response:
    """Send a request with `httpx.AsyncClient`, retrying transient failures."""
    runner = BackoffRunner(_prepare_config(config))

    async def send() -> httpx.Response:
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.UnsupportedProtocol as e:
            # A bad scheme will not fix itself on retry.
            raise NonRetryableError(f"Unsupported protocol: {e}") from e
        return check_response(response, retryable_status_codes)

    return await runner.run(send)
