"""HTTP utilities for talking to a remote store with retry logic."""

from __future__ import annotations

import asyncio
from typing import Any, Final

import httpx

from sectionwiki.config import (
    SECTIONWIKI_FETCH_BACKOFF_S,
    SECTIONWIKI_FETCH_MAX_RETRIES,
    SECTIONWIKI_FETCH_TIMEOUT_S,
    SECTIONWIKI_USER_AGENT,
)
from sectionwiki.exceptions import NotFoundError, RequestError

RETRY_STATUS_CODES: Final[frozenset[int]] = frozenset({429, 500, 502, 503, 504})

_MAX_REDIRECTS: Final[int] = 5


async def request_with_retries(
    method: str,
    url: str,
    *,
    client: httpx.AsyncClient | None = None,
    params: dict[str, str] | None = None,
    json: Any = None,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """Send a request, retrying transient failures with exponential backoff.

    Args:
        method: HTTP method.
        url: The URL to call.
        client: Optional httpx.AsyncClient for connection pooling. If not
            provided, a new client is created for this request.
        params: Query parameters.
        json: JSON body.
        headers: Extra request headers.

    Returns:
        The successful response.

    Raises:
        NotFoundError: On a 404 response.
        RequestError: If the request fails after all retries.
    """
    timeout = httpx.Timeout(SECTIONWIKI_FETCH_TIMEOUT_S)
    base_headers = {"User-Agent": SECTIONWIKI_USER_AGENT}
    last_exc: Exception | None = None

    async def do_request(http_client: httpx.AsyncClient) -> httpx.Response:
        nonlocal last_exc

        for attempt in range(SECTIONWIKI_FETCH_MAX_RETRIES + 1):
            try:
                response = await http_client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers={**base_headers, **(headers or {})},
                )

                if response.status_code == 404:
                    raise NotFoundError(f"Resource not found at {url}")

                if response.status_code in RETRY_STATUS_CODES:
                    last_exc = RequestError(f"HTTP {response.status_code} from {method} {url}")
                else:
                    response.raise_for_status()
                    return response
            except (httpx.RequestError, httpx.HTTPStatusError) as exc:
                last_exc = exc

            if attempt < SECTIONWIKI_FETCH_MAX_RETRIES:
                backoff = SECTIONWIKI_FETCH_BACKOFF_S * (2**attempt)
                await asyncio.sleep(backoff)

        raise RequestError(f"Failed to {method} {url}: {last_exc}")

    if client is not None:
        return await do_request(client)

    async with httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        max_redirects=_MAX_REDIRECTS,
    ) as new_client:
        return await do_request(new_client)
