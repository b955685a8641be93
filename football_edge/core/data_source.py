"""Dependency-injection interface for the football data provider.

Services accept a :class:`FootballDataSource` at construction time rather
than importing the API-Football client directly.  This enables:

* **Unit testing**: inject a fake source that returns fixed results and
  odds, or raises on chosen fixtures, without touching the network.
* **Provider swap**: a different fixtures/odds vendor only has to
  implement the abstract methods below.

Design choices
--------------
* :class:`FootballDataSource` is an ABC rather than a ``typing.Protocol``
  so that engine authors inherit the optional hooks
  (:meth:`fetch_injuries`, :meth:`fetch_team_players`) with safe defaults.
* All methods are coroutines.  A unit of scan work suspends only while it
  awaits one of these calls; everything else is pure computation.
* Implementations raise
  :class:`~football_edge.core.exceptions.UpstreamUnavailableError` on
  transport failures or non-success statuses.  They never retry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from football_edge.core.elo import TeamMatchResult


@dataclass(frozen=True, slots=True)
class FixtureMeta:
    """Teams, ids and season of a single fixture."""

    fixture_id: int
    home_team_id: int
    away_team_id: int
    season: int
    home_team_name: str
    away_team_name: str


class FootballDataSource(ABC):
    """Contract every football data provider must satisfy."""

    @abstractmethod
    async def fetch_fixture_meta(self, fixture_id: int) -> FixtureMeta:
        """Basic metadata of one fixture.

        Raises:
            UpstreamUnavailableError: The provider call failed.
            IncompleteDataError: Teams, ids or season are missing.
        """

    @abstractmethod
    async def fetch_recent_results(
        self,
        team_id: int,
        season: int,
        last: int = 20,
    ) -> List[TeamMatchResult]:
        """The team's last ``last`` completed matches in ``season``."""

    @abstractmethod
    async def fetch_odds_for_fixture(self, fixture_id: int) -> List[Dict[str, Any]]:
        """Raw bookmaker blocks for a fixture.

        Each block looks like ``{"id": 8, "name": "Bet365", "bets": [{"name":
        "Match Winner", "values": [{"value": "Home", "odd": "2.10"}, …]}]}``.
        An empty list means the provider has no odds for the fixture.
        """

    @abstractmethod
    async def fetch_fixtures(
        self,
        league_id: int,
        season: int,
        date_from: str,
        date_to: str,
    ) -> List[Dict[str, Any]]:
        """Normalised fixture list items for a league and date range."""

    async def fetch_injuries(self, fixture_id: int) -> Optional[List[Dict[str, Any]]]:
        """Raw injury entries for a fixture; ``None`` when unsupported."""
        return None

    async def fetch_team_players(
        self,
        team_id: int,
        season: int,
    ) -> Optional[List[Dict[str, Any]]]:
        """Raw player statistics for a team; ``None`` when unsupported."""
        return None
