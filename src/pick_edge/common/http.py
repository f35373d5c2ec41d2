"""Async JSON feed client with retry on transient failures."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from tenacity import before_sleep_log, retry, retry_if_exception, stop_after_attempt, wait_exponential

from pick_edge.config import get_settings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = (429, 500, 502, 503, 504)
MAX_ATTEMPTS = 3


def _is_retryable(exc: BaseException) -> bool:
    """Timeouts, dropped connections and throttling/5xx responses."""
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS
    return False


_retry_decorator = retry(
    retry=retry_if_exception(_is_retryable),
    stop=stop_after_attempt(MAX_ATTEMPTS),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


class HttpClient:
    """Feed client bound to one base URL, optionally with a bearer API key."""

    def __init__(
        self,
        base_url: str = "",
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if timeout is None:
            timeout = get_settings().http_timeout
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @_retry_decorator
    async def get(self, url: str, params: dict[str, str] | None = None) -> httpx.Response:
        resp = await self._client.get(url, params=params)
        resp.raise_for_status()
        return resp

    async def get_json(self, url: str, params: dict[str, str] | None = None) -> Any:
        """GET and decode the body.

        Raises:
            httpx.HTTPError: after retries are exhausted, or on a non-retryable status.
            ValueError: if the body is not JSON.
        """
        resp = await self.get(url, params=params)
        return resp.json()

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
