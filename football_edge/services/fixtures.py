"""
Fixture listing for a league and date range, with a short-lived cache.

The scanner resolves its work list through here.  A cache hit returns the
stored payload annotated ``cached: True``; the scanner uses the fixture
list as-is and does not normalise it again.
"""

import logging
import os
from typing import Any, Dict

from football_edge.core.data_source import FootballDataSource
from football_edge.core.leagues import get_league
from football_edge.services.cache import ExpiringCache

logger = logging.getLogger(__name__)

FIXTURES_CACHE_TTL_SECONDS = float(os.getenv("FIXTURES_CACHE_TTL_SECONDS", "60"))


class FixtureService:
    """League fixture lists backed by a ``FootballDataSource``."""

    def __init__(self, source: FootballDataSource, cache: ExpiringCache):
        self.source = source
        self.cache = cache

    async def get_fixtures(
        self,
        league_key: str,
        season: int,
        date_from: str,
        date_to: str,
    ) -> Dict[str, Any]:
        """
        Fixtures for ``league_key`` between ``date_from`` and ``date_to``.

        Returns:
            ``{"count", "fixtures", "cached"}``.

        Raises:
            IncompleteDataError: Unknown league key.
            UpstreamUnavailableError: The provider call failed.
        """
        key = f"{league_key}|{season}|{date_from}|{date_to}"
        hit = self.cache.get(key)
        if hit is not None:
            return {**hit, "cached": True}

        league = get_league(league_key)
        fixtures = await self.source.fetch_fixtures(league.id, season, date_from, date_to)

        payload = {"count": len(fixtures), "fixtures": fixtures, "cached": False}
        self.cache.set(key, payload)
        return payload
