"""Shared httpx plumbing for the Obyte-side services."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING, Any, TypeVar

import httpx

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from typing import Self

logger = logging.getLogger(__name__)

T = TypeVar("T")

# HTTP status codes that should trigger a retry
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0  # seconds
DEFAULT_MAX_DELAY = 30.0  # seconds
DEFAULT_JITTER = 0.1  # 10% jitter


class ObyteClientError(Exception):
    """Base exception for Obyte integration client errors."""


def _is_retryable_error(exc: Exception) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    return isinstance(exc, httpx.ConnectError | httpx.TimeoutException)


def _calculate_delay(attempt: int, base_delay: float, max_delay: float, jitter: float) -> float:
    """Exponential backoff capped at ``max_delay`` plus random jitter."""
    delay = min(base_delay * (2**attempt), max_delay)
    return delay + delay * jitter * random.random()


async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    jitter: float = DEFAULT_JITTER,
    operation_name: str = "operation",
) -> T:
    """Execute an async function with exponential backoff retry.

    Non-retryable errors propagate unchanged.

    Raises:
        ObyteClientError: If all retries are exhausted
    """
    for attempt in range(max_retries + 1):
        try:
            return await func()
        except Exception as e:
            if not _is_retryable_error(e):
                raise

            if attempt == max_retries:
                logger.error(
                    "obyte_retry_exhausted",
                    extra={"operation": operation_name, "attempts": attempt + 1, "error": str(e)},
                )
                raise ObyteClientError(
                    f"{operation_name} failed after {attempt + 1} attempts: {e}"
                ) from e

            delay = _calculate_delay(attempt, base_delay, max_delay, jitter)
            logger.warning(
                "obyte_retry_attempt",
                extra={
                    "operation": operation_name,
                    "attempt": attempt + 1,
                    "max_retries": max_retries,
                    "delay_seconds": round(delay, 2),
                    "error": str(e),
                },
            )
            await asyncio.sleep(delay)

    raise ObyteClientError(f"{operation_name} failed")


class ObyteServiceClient:
    """Async HTTP client base owning an ``httpx.AsyncClient``."""

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 30.0,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_BASE_DELAY,
        retry_max_delay: float = DEFAULT_MAX_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url:
            msg = f"{type(self).__name__}: base URL is required"
            raise ValueError(msg)
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> Self:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise ObyteClientError("Client not initialized. Use async context manager.")
        return self._client

    async def _post_json(
        self, path: str, payload: dict[str, Any], operation_name: str, *, retry: bool = True
    ) -> Any:
        """POST ``payload`` as JSON and return the decoded body (``None`` when empty).

        With ``retry=False`` the request is sent exactly once; use it for calls
        that are not safe to repeat.
        """

        async def _post() -> Any:
            response = await self.client.post(path, json=payload)
            response.raise_for_status()
            if not response.content:
                return None
            return response.json()

        if not retry:
            return await _post()
        return await retry_with_backoff(
            _post,
            max_retries=self.max_retries,
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
            operation_name=operation_name,
        )
