"""Shared async HTTP utilities for registry clients.

Provides a thin wrapper around ``httpx.AsyncClient`` with standardised
timeouts, user-agent headers, and error mapping. A 404 becomes
``PackageNotFoundError``; every other HTTP, transport, or decoding failure
becomes ``RegistryUnavailableError``. Nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from nugetroadmap.exceptions import PackageNotFoundError, RegistryUnavailableError

logger = logging.getLogger(__name__)

# Timeout for all registry HTTP requests (seconds).
DEFAULT_TIMEOUT: float = 30.0

# User-Agent sent with every request.
USER_AGENT: str = "nugetroadmap/0.1"


def create_client(
    *,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build an ``AsyncClient`` configured for registry access.

    Args:
        timeout: Request timeout in seconds.
        transport: Optional transport override (``httpx.MockTransport`` in tests).
    """
    return httpx.AsyncClient(
        timeout=timeout,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        transport=transport,
    )


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict[str, str] | None = None,
) -> Any:
    """Fetch a URL and parse the response as JSON.

    Args:
        client: The client to issue the request with.
        url: The URL to fetch.
        params: Optional query parameters.

    Returns:
        Parsed JSON response.

    Raises:
        PackageNotFoundError: On HTTP 404.
        RegistryUnavailableError: On other HTTP errors, timeouts, transport
            errors, or an undecodable body.
    """
    try:
        resp = await client.get(url, params=params)
        resp.raise_for_status()
        return resp.json()
    except httpx.TimeoutException as exc:
        logger.warning("Timeout fetching %s", url)
        raise RegistryUnavailableError(f"Timeout fetching {url}") from exc
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        if status == 404:
            raise PackageNotFoundError(f"Not found: {url}") from exc
        logger.warning("HTTP %d from %s", status, url)
        raise RegistryUnavailableError(f"HTTP {status} from {url}") from exc
    except httpx.RequestError as exc:
        logger.warning("Request error for %s: %s", url, exc)
        raise RegistryUnavailableError(f"Request error for {url}: {exc}") from exc
    except ValueError as exc:
        logger.warning("Invalid JSON from %s", url)
        raise RegistryUnavailableError(f"Invalid JSON from {url}") from exc
