"""
Abstract base class for fixture data providers.
Defines the contract every provider connector must implement.
"""
from __future__ import annotations

import abc
from datetime import date

import httpx

from shared.errors import ProviderError
from shared.models.domain import Fixture
from shared.utils.http_client import ProviderHTTPClient
from shared.utils.logging import get_logger

logger = get_logger(__name__)


class FixtureProvider(abc.ABC):
    """
    Fetches the fixtures scheduled on a given date.

    The base class owns the HTTP lifecycle and turns transport, HTTP and
    payload failures into ProviderError. An empty list always means the
    provider legitimately has nothing for that date.
    """

    def __init__(self, name: str, http_client: ProviderHTTPClient) -> None:
        self._name = name
        self._http = http_client

    @property
    def name(self) -> str:
        return self._name

    async def start(self) -> None:
        """Initialize the provider HTTP client."""
        await self._http.start()

    async def close(self) -> None:
        """Shutdown the provider HTTP client."""
        await self._http.close()

    async def fetch(self, day: date) -> list[Fixture]:
        """Fixtures for one calendar day."""
        try:
            fixtures = await self._fetch(day)
        except ProviderError:
            raise
        except httpx.HTTPStatusError as exc:
            raise ProviderError(
                f"{self._name} returned HTTP {exc.response.status_code} for {day.isoformat()}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"{self._name} request for {day.isoformat()} failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderError(f"{self._name} payload for {day.isoformat()} is unreadable: {exc}") from exc

        logger.debug("provider_fetch_done", provider=self._name, day=day.isoformat(), count=len(fixtures))
        return fixtures

    @abc.abstractmethod
    async def _fetch(self, day: date) -> list[Fixture]:
        """Provider-specific fetch + normalization."""
        ...
