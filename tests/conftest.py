"""Shared fixtures: an in-memory football data source and a fake clock."""

from typing import Dict, List, Optional

import pytest

from football_edge.core.data_source import FixtureMeta, FootballDataSource
from football_edge.core.elo import TeamMatchResult
from football_edge.core.exceptions import UpstreamUnavailableError


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def bookmaker(book_id, name, markets):
    """Raw bookmaker block.  ``markets`` maps provider bet name → {label: odd}."""
    return {
        "id": book_id,
        "name": name,
        "bets": [
            {"name": bet, "values": [{"value": k, "odd": str(v)} for k, v in values.items()]}
            for bet, values in markets.items()
        ],
    }


def full_book(book_id=8, name="Bet365", home=2.10, draw=3.40, away=3.60,
              yes=1.80, no=2.00, over=1.95, under=1.85):
    return bookmaker(
        book_id,
        name,
        {
            "Match Winner": {"Home": home, "Draw": draw, "Away": away},
            "Both Teams Score": {"Yes": yes, "No": no},
            "Goals Over/Under": {"Over 2.5": over, "Under 2.5": under},
        },
    )


def results(*scores) -> List[TeamMatchResult]:
    return [TeamMatchResult(goals_for=gf, goals_against=ga) for gf, ga in scores]


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDataSource(FootballDataSource):
    """In-memory provider with per-method call counters.

    Every fixture id ``n`` maps to home team ``n * 10 + 1`` and away team
    ``n * 10 + 2`` unless ``metas`` overrides it.
    """

    def __init__(
        self,
        fixtures: Optional[List[Dict]] = None,
        odds: Optional[Dict[int, List[Dict]]] = None,
        recent: Optional[Dict[int, List[TeamMatchResult]]] = None,
        metas: Optional[Dict[int, FixtureMeta]] = None,
        failing_fixtures=(),
        failing_odds=(),
        injuries: Optional[Dict[int, List[Dict]]] = None,
        players: Optional[Dict[int, List[Dict]]] = None,
        season: int = 2024,
    ):
        self.fixtures = fixtures or []
        self.odds = odds or {}
        self.recent = recent or {}
        self.metas = metas or {}
        self.failing_fixtures = set(failing_fixtures)
        self.failing_odds = set(failing_odds)
        self.injuries = injuries
        self.players = players
        self.season = season
        self.calls: Dict[str, int] = {
            "meta": 0, "recent": 0, "odds": 0, "fixtures": 0, "injuries": 0, "players": 0,
        }

    async def fetch_fixture_meta(self, fixture_id):
        self.calls["meta"] += 1
        if fixture_id in self.failing_fixtures:
            raise UpstreamUnavailableError(f"fixture {fixture_id} unavailable", status_code=503)
        if fixture_id in self.metas:
            return self.metas[fixture_id]
        return FixtureMeta(
            fixture_id=fixture_id,
            home_team_id=fixture_id * 10 + 1,
            away_team_id=fixture_id * 10 + 2,
            season=self.season,
            home_team_name=f"Home {fixture_id}",
            away_team_name=f"Away {fixture_id}",
        )

    async def fetch_recent_results(self, team_id, season, last=20):
        self.calls["recent"] += 1
        return list(self.recent.get(team_id, []))[:last]

    async def fetch_odds_for_fixture(self, fixture_id):
        self.calls["odds"] += 1
        if fixture_id in self.failing_odds:
            raise UpstreamUnavailableError(f"odds for {fixture_id} unavailable", status_code=500)
        return list(self.odds.get(fixture_id, []))

    async def fetch_fixtures(self, league_id, season, date_from, date_to):
        self.calls["fixtures"] += 1
        return list(self.fixtures)

    async def fetch_injuries(self, fixture_id):
        self.calls["injuries"] += 1
        if self.injuries is None:
            return None
        return list(self.injuries.get(fixture_id, []))

    async def fetch_team_players(self, team_id, season):
        self.calls["players"] += 1
        if self.players is None:
            return None
        return list(self.players.get(team_id, []))


@pytest.fixture
def clock():
    return FakeClock()
