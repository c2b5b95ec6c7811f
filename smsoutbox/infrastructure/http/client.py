from __future__ import annotations

from typing import Optional

import httpx

from smsoutbox.settings import get_settings

USER_AGENT = "smsoutbox/0.1"

_client: Optional[httpx.AsyncClient] = None


async def open_http_client(timeout: float | None = None) -> httpx.AsyncClient:
    """
    Create the shared AsyncClient used by the gateway and status adapters
    (if not already created). Timeout defaults to settings.http_timeout_seconds.
    """
    global _client
    if _client is None:
        if timeout is None:
            timeout = get_settings().http_timeout_seconds
        _client = httpx.AsyncClient(timeout=timeout, headers={"User-Agent": USER_AGENT})
    return _client


def get_http_client() -> httpx.AsyncClient:
    """Return the shared client. Must have been opened at startup."""
    if _client is None:
        raise RuntimeError(
            "HTTP client not opened yet. Call open_http_client() at startup."
        )
    return _client


async def close_http_client() -> None:
    """Close and drop the shared client."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
