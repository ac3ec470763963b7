"""HTTP client for the admin options store.

The store serves ``GET /api/Options/{key}`` as ``{"key": ..., "value": ...}``
where ``value`` is a JSON-encoded string. Both the product catalog and the
commission rates are read through it.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any
from urllib.parse import quote

import httpx

from src.exceptions import DependencyUnavailableException

logger = logging.getLogger(__name__)

_RETRY_STATUSES = {429, 500, 502, 503, 504}
_BASE_BACKOFF_SECONDS = 0.4


def decode_option_value(raw: Any) -> Any:
    """Decode an option's JSON-string value; non-JSON strings are returned as-is."""
    if not isinstance(raw, str):
        return raw
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


class OptionsClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        max_retries: int = 2,
        client: httpx.AsyncClient | None = None,
        backoff_seconds: float = _BASE_BACKOFF_SECONDS,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        return self._client

    async def _request_with_retry(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Make an HTTP request with exponential backoff for retryable errors.

        A 404 is returned to the caller untouched. Exhausted retries and any
        other error status raise ``DependencyUnavailableException``.
        """
        client = await self._get_client()

        for attempt in range(self.max_retries + 1):
            try:
                response = await client.request(method, path, **kwargs)
            except httpx.RequestError as exc:
                if attempt >= self.max_retries:
                    raise DependencyUnavailableException(
                        f"Options store unreachable: {exc}",
                        details=[{"path": path, "attempts": attempt + 1}],
                    ) from exc
                delay = self.backoff_seconds * (2 ** attempt)
                logger.warning(
                    "Options %s %s request error: %s, retrying in %.1fs",
                    method, path, exc, delay,
                )
                await asyncio.sleep(delay)
                continue

            if response.status_code < 400 or response.status_code == 404:
                return response
            if response.status_code not in _RETRY_STATUSES or attempt >= self.max_retries:
                raise DependencyUnavailableException(
                    f"Options store returned {response.status_code}",
                    details=[{"path": path, "status": response.status_code, "attempts": attempt + 1}],
                )
            delay = self.backoff_seconds * (2 ** attempt)
            logger.warning(
                "Options %s %s returned %d, retrying in %.1fs (attempt %d/%d)",
                method, path, response.status_code, delay, attempt + 1, self.max_retries,
            )
            await asyncio.sleep(delay)

        raise DependencyUnavailableException("Max retries exceeded for options request")

    async def get_option(self, key: str) -> Any | None:
        """Return the decoded value of option *key*, or None when unset."""
        response = await self._request_with_retry("GET", f"/api/Options/{quote(key, safe='')}")
        if response.status_code == 404:
            return None
        try:
            body = response.json()
        except ValueError as exc:
            raise DependencyUnavailableException(
                f"Options store returned a malformed body for '{key}'"
            ) from exc
        if not isinstance(body, dict):
            return None
        return decode_option_value(body.get("value"))

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
