"""
Async HTTP client for the fixture provider.
Retries rate limits, server errors and transport failures; records
request count and latency per attempt.
"""
from __future__ import annotations

import asyncio
import time
from typing import Any, Optional

import httpx

from shared.config import get_settings
from shared.utils.logging import get_logger
from shared.utils.metrics import PROVIDER_LATENCY, PROVIDER_REQUESTS

logger = get_logger(__name__)

MAX_RETRY_AFTER_S = 10.0


def _retry_delay(resp: Optional[httpx.Response], attempt: int) -> float:
    """Seconds to wait before the next attempt; honours Retry-After on 429."""
    if resp is not None and resp.status_code == 429:
        try:
            return min(float(resp.headers.get("Retry-After", "2")), MAX_RETRY_AFTER_S)
        except ValueError:
            return 2.0
    return 1.0 * attempt


def _is_retryable(resp: httpx.Response) -> bool:
    return resp.status_code == 429 or resp.status_code >= 500


class ProviderHTTPClient:
    """
    Thin wrapper over httpx.AsyncClient bound to one provider base URL.
    A transport may be injected (httpx.MockTransport in tests).
    """

    def __init__(
        self,
        provider_name: str,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout_s: float | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._provider = provider_name
        self._base_url = base_url.rstrip("/")
        self._headers = headers or {}
        self._timeout = timeout_s or settings.provider_request_timeout_s
        self._attempts = max(1, max_retries or settings.provider_max_retries)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout=httpx.Timeout(self._timeout, connect=5.0),
            follow_redirects=True,
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        """
        GET path with retries.

        Returns:
            The first successful httpx.Response.

        Raises:
            httpx.HTTPStatusError: On a non-retryable status, or a retryable one on the last attempt.
            httpx.TransportError: When every attempt failed at the transport level.
        """
        if not self._client:
            raise RuntimeError("ProviderHTTPClient not started. Call start() first.")

        for attempt in range(1, self._attempts + 1):
            last_attempt = attempt == self._attempts
            started = time.perf_counter()
            try:
                resp = await self._client.get(path, params=params)
            except httpx.TransportError as exc:
                status = "timeout" if isinstance(exc, httpx.TimeoutException) else "error"
                PROVIDER_REQUESTS.labels(provider=self._provider, status=status).inc()
                logger.warning(
                    "provider_transport_error",
                    provider=self._provider,
                    path=path,
                    attempt=attempt,
                    error=str(exc),
                )
                if last_attempt:
                    raise
                await asyncio.sleep(_retry_delay(None, attempt))
                continue
            finally:
                PROVIDER_LATENCY.labels(provider=self._provider).observe(time.perf_counter() - started)

            status = str(resp.status_code)
            PROVIDER_REQUESTS.labels(provider=self._provider, status=status).inc()

            if _is_retryable(resp) and not last_attempt:
                logger.warning(
                    "provider_retryable_status",
                    provider=self._provider,
                    path=path,
                    status=resp.status_code,
                    attempt=attempt,
                )
                await asyncio.sleep(_retry_delay(resp, attempt))
                continue

            if resp.is_error:
                logger.error("provider_http_error", provider=self._provider, path=path, status=resp.status_code)
            resp.raise_for_status()

            logger.debug(
                "provider_request_success",
                provider=self._provider,
                path=path,
                status=resp.status_code,
                latency_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            return resp

        raise RuntimeError(f"{self._provider}: no attempt made for {path}")
