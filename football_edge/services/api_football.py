"""
API-Football (api-sports.io v3) integration.
https://www.api-football.com/documentation-v3

Implements :class:`~football_edge.core.data_source.FootballDataSource` on
top of ``requests``.  Each blocking HTTP call runs in a worker thread via
``asyncio.to_thread`` so concurrent scan workers interleave on the event
loop while they wait for the provider.

Failure policy
--------------
Every non-2xx status, transport error, or non-empty ``errors`` block in the
JSON envelope raises ``UpstreamUnavailableError``.  Nothing is retried
here; the per-call ``APIFOOTBALL_TIMEOUT`` is the only time limit.

The payload parsers are module-level functions so they can be unit-tested
against captured JSON without a client instance.
"""

import asyncio
import logging
import os
from typing import Any, Dict, List, Optional

import requests
from dotenv import load_dotenv

from football_edge.core.data_source import FixtureMeta, FootballDataSource
from football_edge.core.elo import TeamMatchResult
from football_edge.core.exceptions import IncompleteDataError, UpstreamUnavailableError

load_dotenv()

logger = logging.getLogger(__name__)

API_KEY = os.getenv("APIFOOTBALL_API_KEY")
BASE_URL = os.getenv("APIFOOTBALL_BASE_URL", "https://v3.football.api-sports.io")
TIMEZONE = os.getenv("APIFOOTBALL_TIMEZONE", "Europe/Sofia")
REQUEST_TIMEOUT = float(os.getenv("APIFOOTBALL_TIMEOUT", "15"))


# ---------------------------------------------------------------------------
# Payload parsers
# ---------------------------------------------------------------------------

def _response_items(payload: Optional[Dict]) -> List[Dict]:
    items = (payload or {}).get("response") or []
    return items if isinstance(items, list) else []


def parse_fixture_meta(fixture_id: int, payload: Optional[Dict]) -> FixtureMeta:
    """Extract teams, ids and season from a ``/fixtures?id=`` response.

    Raises:
        IncompleteDataError: If any of the five required fields is missing.
    """
    items = _response_items(payload)
    f = items[0] if items else {}
    teams = f.get("teams") or {}
    home = teams.get("home") or {}
    away = teams.get("away") or {}
    season = (f.get("league") or {}).get("season")

    if not (home.get("name") and away.get("name") and home.get("id") and away.get("id") and season):
        raise IncompleteDataError(f"Missing fixture teams/ids/season for fixture {fixture_id}")

    return FixtureMeta(
        fixture_id=int(fixture_id),
        home_team_id=int(home["id"]),
        away_team_id=int(away["id"]),
        season=int(season),
        home_team_name=str(home["name"]),
        away_team_name=str(away["name"]),
    )


def parse_recent_results(team_id: int, payload: Optional[Dict]) -> List[TeamMatchResult]:
    """Convert a ``/fixtures?team=&last=`` response to the team's perspective."""
    results: List[TeamMatchResult] = []
    for m in _response_items(payload):
        teams = m.get("teams") or {}
        goals = m.get("goals") or {}
        is_home = (teams.get("home") or {}).get("id") == team_id
        gf = goals.get("home") if is_home else goals.get("away")
        ga = goals.get("away") if is_home else goals.get("home")
        results.append(
            TeamMatchResult(
                goals_for=int(gf or 0),
                goals_against=int(ga or 0),
                is_home=is_home,
                date=(m.get("fixture") or {}).get("date"),
            )
        )
    return results


def parse_bookmaker_blocks(payload: Optional[Dict]) -> List[Dict[str, Any]]:
    """Flatten ``response[i].bookmakers`` from an ``/odds`` response."""
    blocks: List[Dict[str, Any]] = []
    for item in _response_items(payload):
        for bk in item.get("bookmakers") or []:
            if bk:
                blocks.append(bk)
    return blocks


def parse_fixture_items(payload: Optional[Dict]) -> List[Dict[str, Any]]:
    """Slim fixture list items from a ``/fixtures?league=&from=&to=`` response."""
    fixtures = []
    for f in _response_items(payload):
        fixture = f.get("fixture") or {}
        league = f.get("league") or {}
        teams = f.get("teams") or {}
        fixtures.append(
            {
                "fixtureId": fixture.get("id"),
                "date": fixture.get("date"),
                "status": (fixture.get("status") or {}).get("short"),
                "league": league.get("name"),
                "round": league.get("round"),
                "home": (teams.get("home") or {}).get("name"),
                "away": (teams.get("away") or {}).get("name"),
            }
        )
    return fixtures


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class ApiFootballClient(FootballDataSource):
    """Client for API-Football v3."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = BASE_URL,
        timezone: str = TIMEZONE,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.api_key = api_key or API_KEY
        if not self.api_key:
            raise ValueError("APIFOOTBALL_API_KEY not set in environment")
        self.base_url = base_url.rstrip("/")
        self.timezone = timezone
        self.timeout = timeout

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict:
        """
        Blocking GET against the API.

        ``None`` / empty-string params are dropped; ``timezone`` is always
        set.  Raises ``UpstreamUnavailableError`` on any failure.
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        query = {k: v for k, v in (params or {}).items() if v is not None and v != ""}
        query.setdefault("timezone", self.timezone)

        try:
            response = requests.get(
                url,
                params=query,
                headers={"x-apisports-key": self.api_key},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("API-Football %s transport error: %s", path, e)
            raise UpstreamUnavailableError(f"API-Football {path} request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.ok:
            logger.warning("API-Football %s returned HTTP %d", path, response.status_code)
            raise UpstreamUnavailableError(
                f"API-Football {path} request failed: HTTP {response.status_code}",
                status_code=response.status_code,
                body=data,
            )

        errors = (data or {}).get("errors")
        if errors:
            logger.warning("API-Football %s returned errors: %s", path, errors)
            raise UpstreamUnavailableError(
                f"API-Football {path} returned errors: {errors}",
                status_code=response.status_code,
                body=data,
            )

        remaining = response.headers.get("x-ratelimit-requests-remaining")
        logger.debug(
            "API-Football %s: %d items. Daily quota remaining: %s",
            path, len((data or {}).get("response") or []), remaining,
        )
        return data or {}

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict:
        return await asyncio.to_thread(self.get_json, path, params)

    async def fetch_fixture_meta(self, fixture_id: int) -> FixtureMeta:
        payload = await self._get("/fixtures", {"id": fixture_id})
        return parse_fixture_meta(fixture_id, payload)

    async def fetch_recent_results(
        self,
        team_id: int,
        season: int,
        last: int = 20,
    ) -> List[TeamMatchResult]:
        payload = await self._get(
            "/fixtures",
            {"team": team_id, "season": season, "last": last, "status": "FT"},
        )
        return parse_recent_results(team_id, payload)

    async def fetch_odds_for_fixture(self, fixture_id: int) -> List[Dict[str, Any]]:
        payload = await self._get("/odds", {"fixture": fixture_id})
        return parse_bookmaker_blocks(payload)

    async def fetch_fixtures(
        self,
        league_id: int,
        season: int,
        date_from: str,
        date_to: str,
    ) -> List[Dict[str, Any]]:
        payload = await self._get(
            "/fixtures",
            {"league": league_id, "season": season, "from": date_from, "to": date_to},
        )
        fixtures = parse_fixture_items(payload)
        logger.info(
            "API-Football: %d fixtures for league %s season %s (%s → %s)",
            len(fixtures), league_id, season, date_from, date_to,
        )
        return fixtures

    async def fetch_injuries(self, fixture_id: int) -> Optional[List[Dict[str, Any]]]:
        payload = await self._get("/injuries", {"fixture": fixture_id})
        return _response_items(payload)

    async def fetch_team_players(
        self,
        team_id: int,
        season: int,
    ) -> Optional[List[Dict[str, Any]]]:
        payload = await self._get("/players", {"team": team_id, "season": season})
        return _response_items(payload)
