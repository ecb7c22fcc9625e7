"""
Unidad Editorial sports API connector.
Serves the LaLiga fixtures of a given day: GET /sports/v1/events.
No API key; one request per day.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from shared.config import Settings, get_settings
from shared.errors import ProviderError
from shared.models.domain import Fixture, Score, TeamRef, TeamScore
from shared.utils.http_client import ProviderHTTPClient
from shared.utils.logging import get_logger

from ingest.providers.base import FixtureProvider

logger = get_logger(__name__)

EVENTS_PATH = "/sports/v1/events"
EVENTS_FIELDS = "sportEvent,score,tournament"
DATE_FORMAT = "%Y-%m-%d"


def _localized(node: Optional[dict[str, Any]]) -> Optional[str]:
    """Spanish display name of a named node, falling back to its raw name."""
    if not node:
        return None
    alternate = node.get("alternateNames") or {}
    return alternate.get("esES") or node.get("name")


def _team(raw: dict[str, Any]) -> TeamRef:
    return TeamRef(
        full_name=raw.get("fullName") or raw.get("commonName") or raw.get("abbName") or "?",
        id=raw.get("id"),
        abbreviation=raw.get("abbName"),
        common_name=raw.get("commonName"),
    )


def _team_score(raw: Optional[dict[str, Any]]) -> TeamScore:
    raw = raw or {}
    return TeamScore(total=raw.get("totalScore"), sub=raw.get("subScore"))


def normalize_event(item: dict[str, Any]) -> Fixture:
    """
    Map one provider event to a Fixture.

    Raises:
        KeyError / TypeError / ValidationError when mandatory fields are missing.
    """
    event = item["sportEvent"]
    competitors = event["competitors"]
    score = item.get("score") or {}
    season = event.get("season") or {}
    location = event.get("location") or {}
    winner = score.get("winner") or {}

    return Fixture(
        code=str(item["id"]),
        date=item["startDate"],
        status=_localized(event.get("status")) or "",
        home_team=_team(competitors["homeTeam"]),
        away_team=_team(competitors["awayTeam"]),
        score=Score(
            home=_team_score(score.get("homeTeam")),
            away=_team_score(score.get("awayTeam")),
            winner=winner.get("name") or None,
            period=_localized(score.get("period")),
        ),
        tournament_name=(item.get("tournament") or {}).get("name"),
        location=location.get("name"),
        match_day=event.get("matchDay"),
        season=season.get("name") or season.get("id"),
    )


class UnidadEditorialProvider(FixtureProvider):
    """Unidad Editorial sports events API (LaLiga tournaments)."""

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        http_client = ProviderHTTPClient(
            provider_name="unidad_editorial",
            base_url=self._settings.provider_base_url,
            headers={"Accept": "application/json"},
            timeout_s=self._settings.provider_request_timeout_s,
            max_retries=self._settings.provider_max_retries,
            transport=transport,
        )
        super().__init__(name="unidad_editorial", http_client=http_client)

    def build_params(self, day: date) -> dict[str, str]:
        return {
            "site": self._settings.provider_site,
            "tournament": ",".join(self._settings.provider_tournaments),
            "fields": EVENTS_FIELDS,
            "timezoneOffset": str(self._settings.provider_timezone_offset),
            "date": day.strftime(DATE_FORMAT),
        }

    async def _fetch(self, day: date) -> list[Fixture]:
        resp = await self._http.get(EVENTS_PATH, params=self.build_params(day))
        payload = resp.json()
        if not isinstance(payload, dict):
            raise ProviderError(f"unexpected payload type {type(payload).__name__} for {day.isoformat()}")

        items = payload.get("data") or []
        fixtures: list[Fixture] = []
        for item in items:
            try:
                fixtures.append(normalize_event(item))
            except (KeyError, TypeError, ValidationError) as exc:
                logger.warning(
                    "unidad_editorial_event_skipped",
                    event_id=item.get("id") if isinstance(item, dict) else None,
                    error=str(exc),
                )
        return fixtures
