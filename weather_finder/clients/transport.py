"""Single-attempt HTTP GET helper shared by the OpenWeatherMap clients."""

from typing import Any

import httpx

from weather_finder.clients.errors import (
    AuthError,
    EmptyResponseError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    UpstreamStatusError,
)
from weather_finder.logging_config import logger


def build_client(base_url: str, timeout: float) -> httpx.AsyncClient:
    """Create the shared async HTTP client.

    Args:
        base_url: OpenWeatherMap base URL.
        timeout: Request timeout in seconds.

    Returns:
        A configured httpx.AsyncClient.
    """
    return httpx.AsyncClient(base_url=base_url, timeout=timeout)


async def get_json(
    client: httpx.AsyncClient,
    *,
    path: str,
    params: dict,
    event_prefix: str,
    log_context: dict,
) -> Any:
    """Execute one HTTP GET and return the decoded JSON body.

    There is no retry: every failure is mapped to the error taxonomy and
    raised to the caller.

    Args:
        client: Async client carrying base URL and timeout.
        path: Path relative to the base URL.
        params: Query parameters, including the API key.
        event_prefix: Log event prefix for consistent names.
        log_context: Extra log fields for all events.

    Returns:
        The decoded JSON payload.

    Raises:
        AuthError: On HTTP 401.
        NotFoundError: On HTTP 404.
        RateLimitError: On HTTP 429.
        UpstreamStatusError: On any other non-2xx status.
        NetworkError: When the request could not be sent or completed.
        EmptyResponseError: When the body is empty, null or not JSON.
    """
    try:
        response = await client.get(path, params=params)
    except httpx.RequestError as exc:
        logger.error(f"{event_prefix}_REQUEST_FAILED", **log_context, error=str(exc))
        raise NetworkError(str(exc) or exc.__class__.__name__) from exc

    logger.info(f"{event_prefix}_RESPONSE", **log_context, status=response.status_code)
    if response.is_error:
        logger.error(
            f"{event_prefix}_BAD_STATUS", **log_context, status=response.status_code
        )
        if response.status_code == 401:
            raise AuthError("Invalid API key")
        if response.status_code == 404:
            raise NotFoundError("Not found")
        if response.status_code == 429:
            raise RateLimitError("Too many requests")
        raise UpstreamStatusError(response.status_code, response.reason_phrase)

    if not response.content:
        logger.error(f"{event_prefix}_EMPTY_BODY", **log_context)
        raise EmptyResponseError("Empty response body")
    try:
        payload = response.json()
    except ValueError as exc:
        logger.error(f"{event_prefix}_BAD_PAYLOAD", **log_context, error=str(exc))
        raise EmptyResponseError("Empty response body") from exc
    if payload is None:
        logger.error(f"{event_prefix}_EMPTY_BODY", **log_context)
        raise EmptyResponseError("Empty response body")
    return payload
